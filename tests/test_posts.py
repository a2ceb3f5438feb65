"""
Tests — bilingual blog posts.

Covers:
    - Create (JSON and multipart with image), validation messages
    - Public list: drafts hidden, filters, search, sort, language projection
    - Admin list and stats
    - Single post: view counter, drafts hidden from readers
    - Update (image replacement), delete
    - Like toggle and comments
"""

import io

import pytest

from ictforum.models.post import Post
from ictforum.services import post_service

LONG_EN = "Digital Nepal needs reliable broadband in every palika. " * 2
LONG_NP = "डिजिटल नेपालका लागि हरेक पालिकामा भरपर्दो ब्रोडब्यान्ड आवश्यक छ।"


def _payload(**kw):
    payload = {
        "title_en": "Broadband for all palikas",
        "content_en": LONG_EN,
        "category": "technology",
    }
    payload.update(kw)
    return payload


def _create(client, headers, **kw):
    res = client.post("/api/v1/posts", json=_payload(**kw), headers=headers)
    assert res.status_code == 201, res.get_json()
    return res.get_json()["data"]


# ═════════════════════════════════════════════════════════════════════════════
# CREATE
# ═════════════════════════════════════════════════════════════════════════════

class TestCreatePost:
    def test_create_json(self, client, admin_headers, admin_user):
        data = _create(client, admin_headers, title_np="सबै पालिकाका लागि ब्रोडब्यान्ड",
                       tags="policy, broadband ,", featured=True)
        assert data["title_en"] == "Broadband for all palikas"
        assert data["title_np"] == "सबै पालिकाका लागि ब्रोडब्यान्ड"
        assert data["tags"] == ["policy", "broadband"]
        assert data["featured"] is True
        assert data["published"] is True
        assert data["views"] == 0
        assert data["author"]["id"] == admin_user.id
        assert data["comments"] == []

    def test_create_multipart_with_image(self, client, admin_headers, blob_store):
        form = _payload(tags='["events"]', published="false")
        form["image"] = (io.BytesIO(b"png-bytes"), "cover.png", "image/png")
        res = client.post("/api/v1/posts", data=form, headers=admin_headers,
                          content_type="multipart/form-data")
        assert res.status_code == 201
        data = res.get_json()["data"]
        assert data["image"].startswith("http://testserver/uploads/posts/")
        assert data["tags"] == ["events"]
        assert data["published"] is False
        assert len(blob_store.blobs) == 1

    def test_create_rejects_bad_image_extension(self, client, admin_headers, blob_store):
        form = _payload()
        form["image"] = (io.BytesIO(b"exe"), "cover.exe", "application/octet-stream")
        res = client.post("/api/v1/posts", data=form, headers=admin_headers,
                          content_type="multipart/form-data")
        assert res.status_code == 400
        assert blob_store.blobs == {}

    @pytest.mark.parametrize("field,value,message", [
        ("title_en", "Hi", "English title must be between 5 and 200 characters"),
        ("content_en", "too short", "English content must be at least 50 characters"),
        ("category", "gossip", "Please select a valid category"),
    ])
    def test_validation_messages(self, client, admin_headers, field, value, message):
        res = client.post("/api/v1/posts", json=_payload(**{field: value}), headers=admin_headers)
        assert res.status_code == 400
        assert res.get_json()["error"] == message

    def test_create_requires_admin(self, client, student_headers):
        res = client.post("/api/v1/posts", json=_payload(), headers=student_headers)
        assert res.status_code == 403


# ═════════════════════════════════════════════════════════════════════════════
# READ
# ═════════════════════════════════════════════════════════════════════════════

class TestListPosts:
    def test_public_list_hides_drafts(self, client, admin_headers):
        _create(client, admin_headers, title_en="Published one")
        _create(client, admin_headers, title_en="Draft post here", published=False)
        res = client.get("/api/v1/posts")
        body = res.get_json()
        assert body["success"] is True
        assert body["total"] == 1
        assert body["count"] == 1
        assert body["pagination"] == {"page": 1, "limit": 10, "pages": 1}
        assert body["data"][0]["title"] == "Published one"

    def test_admin_list_includes_drafts(self, client, admin_headers):
        _create(client, admin_headers)
        _create(client, admin_headers, published=False)
        body = client.get("/api/v1/posts/admin", headers=admin_headers).get_json()
        assert body["total"] == 2
        assert body["pagination"]["limit"] == 12
        assert {p["published"] for p in body["data"]} == {True, False}

    def test_language_projection_with_fallback(self, client, admin_headers):
        _create(client, admin_headers, title_np="नेपाली शीर्षक", content_np=LONG_NP)
        _create(client, admin_headers, title_en="English only post")
        res = client.get("/api/v1/posts?language=np&sort=createdAt")
        titles = [p["title"] for p in res.get_json()["data"]]
        assert titles == ["नेपाली शीर्षक", "English only post"]

    def test_invalid_language(self, client):
        assert client.get("/api/v1/posts?language=fr").status_code == 400

    def test_filters_and_search(self, client, admin_headers):
        _create(client, admin_headers, title_en="Startup grants announced", category="startups", featured=True)
        _create(client, admin_headers, title_en="Cyber policy draft", category="policy")
        assert client.get("/api/v1/posts?category=policy").get_json()["total"] == 1
        assert client.get("/api/v1/posts?featured=true").get_json()["data"][0]["category"] == "startups"
        assert client.get("/api/v1/posts?search=GRANTS").get_json()["total"] == 1

    def test_sort_by_views(self, client, admin_headers):
        a = _create(client, admin_headers, title_en="Less viewed post")
        b = _create(client, admin_headers, title_en="Most viewed post")
        for _ in range(3):
            client.get(f"/api/v1/posts/{b['id']}")
        client.get(f"/api/v1/posts/{a['id']}")
        data = client.get("/api/v1/posts?sort=-views").get_json()["data"]
        assert [p["id"] for p in data] == [b["id"], a["id"]]

    def test_invalid_sort(self, client):
        assert client.get("/api/v1/posts?sort=random").status_code == 400


class TestGetPost:
    def test_view_increments(self, client, admin_headers):
        post = _create(client, admin_headers)
        first = client.get(f"/api/v1/posts/{post['id']}").get_json()["data"]
        second = client.get(f"/api/v1/posts/{post['id']}").get_json()["data"]
        assert first["views"] == 1
        assert second["views"] == 2
        assert second["comments"] == []

    def test_draft_hidden_from_readers(self, client, admin_headers):
        post = _create(client, admin_headers, published=False)
        assert client.get(f"/api/v1/posts/{post['id']}").status_code == 404
        assert client.get(f"/api/v1/posts/{post['id']}", headers=admin_headers).status_code == 200

    def test_unknown(self, client):
        assert client.get("/api/v1/posts/999").status_code == 404


class TestStats:
    def test_stats(self, client, admin_headers):
        p = _create(client, admin_headers, featured=True)
        _create(client, admin_headers, published=False)
        client.get(f"/api/v1/posts/{p['id']}")
        data = client.get("/api/v1/posts/stats", headers=admin_headers).get_json()["data"]
        assert data["totalPosts"] == 2
        assert data["publishedPosts"] == 1
        assert data["draftPosts"] == 1
        assert data["featuredPosts"] == 1
        assert data["totalViews"] == 1
        assert data["totalUsers"] == 1


# ═════════════════════════════════════════════════════════════════════════════
# UPDATE / DELETE
# ═════════════════════════════════════════════════════════════════════════════

class TestUpdateDelete:
    def test_partial_update(self, client, admin_headers):
        post = _create(client, admin_headers)
        res = client.put(f"/api/v1/posts/{post['id']}", json={"excerpt_en": "Short summary"},
                         headers=admin_headers)
        assert res.status_code == 200
        data = res.get_json()["data"]
        assert data["excerpt_en"] == "Short summary"
        assert data["title_en"] == "Broadband for all palikas"

    def test_update_validates(self, client, admin_headers):
        post = _create(client, admin_headers)
        res = client.put(f"/api/v1/posts/{post['id']}", json={"title_en": "x"}, headers=admin_headers)
        assert res.status_code == 400

    def test_image_replacement_deletes_old_blob(self, client, admin_headers, blob_store):
        form = _payload()
        form["image"] = (io.BytesIO(b"old"), "old.jpg", "image/jpeg")
        post = client.post("/api/v1/posts", data=form, headers=admin_headers,
                           content_type="multipart/form-data").get_json()["data"]
        old_key = post_service.get_post(post["id"]).image_key

        res = client.put(
            f"/api/v1/posts/{post['id']}",
            data={"image": (io.BytesIO(b"new"), "new.webp", "image/webp")},
            headers=admin_headers,
            content_type="multipart/form-data",
        )
        assert res.status_code == 200
        assert old_key in blob_store.deleted
        assert list(blob_store.blobs) == [post_service.get_post(post["id"]).image_key]

    def test_delete(self, client, admin_headers):
        post = _create(client, admin_headers)
        res = client.delete(f"/api/v1/posts/{post['id']}", headers=admin_headers)
        assert res.status_code == 200
        assert Post.query.count() == 0


# ═════════════════════════════════════════════════════════════════════════════
# LIKES & COMMENTS
# ═════════════════════════════════════════════════════════════════════════════

class TestLikes:
    def test_toggle_by_client_id(self, client, admin_headers):
        post = _create(client, admin_headers)
        url = f"/api/v1/posts/{post['id']}/like"
        first = client.put(url, json={"userId": "visitor-1"}).get_json()
        assert first["likes"] == 1
        assert first["message"] == "Post liked"
        second = client.put(url, json={"userId": "visitor-1"}).get_json()
        assert second["likes"] == 0
        assert second["message"] == "Post unliked"

    def test_signed_in_and_anonymous_likes(self, client, admin_headers, student_headers):
        post = _create(client, admin_headers)
        url = f"/api/v1/posts/{post['id']}/like"
        client.put(url, headers=student_headers)
        res = client.put(url)
        assert res.get_json()["likes"] == 2

    def test_like_unknown_post(self, client):
        assert client.put("/api/v1/posts/404/like").status_code == 404


class TestComments:
    def test_guest_comment(self, client, admin_headers):
        post = _create(client, admin_headers)
        res = client.post(f"/api/v1/posts/{post['id']}/comments", json={"text": "Great read", "userName": "Bimal"})
        assert res.status_code == 201
        assert res.get_json()["data"]["userName"] == "Bimal"

    def test_default_name_and_newest_first(self, client, admin_headers):
        post = _create(client, admin_headers)
        url = f"/api/v1/posts/{post['id']}/comments"
        client.post(url, json={"text": "first"})
        client.post(url, json={"text": "second", "userName": ""})
        data = client.get(f"/api/v1/posts/{post['id']}").get_json()["data"]
        assert [c["text"] for c in data["comments"]] == ["second", "first"]
        assert {c["userName"] for c in data["comments"]} == {"Anonymous"}

    def test_signed_in_user_comments_under_account_name(self, client, admin_headers, student_headers):
        post = _create(client, admin_headers)
        res = client.post(f"/api/v1/posts/{post['id']}/comments", json={"text": "Nice", "userName": "Impostor"},
                          headers=student_headers)
        assert res.get_json()["data"]["userName"] == "Sita Student"

    def test_comment_validation(self, client, admin_headers):
        post = _create(client, admin_headers)
        url = f"/api/v1/posts/{post['id']}/comments"
        assert client.post(url, json={"text": "   "}).status_code == 400
        assert client.post(url, json={"text": "x" * 501}).status_code == 400
        assert client.post(url, json={"text": "ok", "userName": "n" * 51}).status_code == 400
