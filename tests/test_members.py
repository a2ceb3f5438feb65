"""
Tests — ICT Forum membership applications.

Covers:
    - Submit (JSON sections, multipart with JSON-string sections + documents)
    - Field validation collected into dotted-path details
    - Duplicate citizenship id / email → 409
    - Admin list filters + pagination envelope, stats
    - Status update, section update with re-validation, delete with documents
"""

import io
import json

from ictforum.models.member import MemberApplication
from ictforum.services import member_service


def _sections(citizenship_id="12-01-75-00123", email="gita@example.com", **overrides):
    sections = {
        "generalInfo": {
            "fullName": "Gita Sharma",
            "gender": "Female",
            "dateOfBirth": "1990-05-01",
            "citizenshipId": citizenship_id,
            "contactNumber": "9841000000",
            "email": email,
            "permanentAddress": {
                "province": "Bagmati",
                "district": "Lalitpur",
                "palika": "Lalitpur Metropolitan City",
                "wardNo": "3",
            },
            "currentAddress": "Kupondole, Lalitpur",
        },
        "professionalDetails": {
            "organizationName": "Nepal Telecom",
            "designation": "Network Engineer",
            "organizationType": "Government",
            "workExperience": "7",
            "areaOfExpertise": ["Networking", "Cybersecurity"],
        },
        "membershipDetails": {
            "membershipLevel": "Provincial",
            "provincePalikaName": "Bagmati Province",
            "membershipType": "General",
            "preferredWorkingDomain": ["Digital Literacy"],
            "motivation": "Bridge the rural digital divide",
        },
        "endorsement": {},
        "declaration": {"agreed": True, "signature": "Gita Sharma"},
    }
    sections.update(overrides)
    return sections


def _submit(client, **kw):
    return client.post("/api/v1/members", json=_sections(**kw))


# ═════════════════════════════════════════════════════════════════════════════
# SUBMISSION
# ═════════════════════════════════════════════════════════════════════════════

class TestSubmitApplication:
    def test_submit_json(self, client):
        res = _submit(client)
        assert res.status_code == 201
        data = res.get_json()["data"]
        assert data["status"] == "pending"
        general = data["generalInfo"]
        assert general["permanentAddress"]["wardNo"] == 3
        assert general["dateOfBirth"] == "1990-05-01"
        assert data["professionalDetails"]["workExperience"] == 7
        assert data["endorsement"]["provinceCoordinator"]["position"] == "Province / Palika ICT Coordinator"
        assert data["declaration"]["date"]
        assert data["documents"] == {}

    def test_submit_multipart_with_documents(self, client, blob_store):
        form = {key: json.dumps(value) for key, value in _sections().items()}
        form["photo"] = (io.BytesIO(b"jpeg"), "me.jpg", "image/jpeg")
        form["resume"] = (io.BytesIO(b"%PDF-1.4"), "cv.pdf", "application/pdf")
        res = client.post("/api/v1/members", data=form, content_type="multipart/form-data")
        assert res.status_code == 201
        docs = res.get_json()["data"]["documents"]
        assert set(docs) == {"photo", "resume"}
        assert docs["resume"]["filename"] == "cv.pdf"
        assert docs["resume"]["url"].startswith("http://testserver/uploads/members/")
        assert "key" not in docs["resume"]
        assert len(blob_store.blobs) == 2

    def test_bad_document_type(self, client, blob_store):
        form = {key: json.dumps(value) for key, value in _sections().items()}
        form["photo"] = (io.BytesIO(b"gif"), "me.gif", "image/gif")
        res = client.post("/api/v1/members", data=form, content_type="multipart/form-data")
        assert res.status_code == 400
        assert blob_store.blobs == {}

    def test_invalid_section_json(self, client):
        res = client.post("/api/v1/members", data={"generalInfo": "{not json"},
                          content_type="multipart/form-data")
        assert res.status_code == 400
        assert res.get_json()["details"] == {"generalInfo": "invalid JSON"}

    def test_collects_field_errors(self, client):
        sections = _sections()
        sections["generalInfo"]["gender"] = "Unknown"
        del sections["generalInfo"]["contactNumber"]
        sections["professionalDetails"]["workExperience"] = "-2"
        sections["declaration"] = {"agreed": False}
        res = client.post("/api/v1/members", json=sections)
        assert res.status_code == 400
        details = res.get_json()["details"]
        assert "generalInfo.gender" in details
        assert details["generalInfo.contactNumber"] == "is required"
        assert "professionalDetails.workExperience" in details
        assert details["declaration.agreed"] == "must be accepted"
        assert details["declaration.signature"] == "is required"

    def test_duplicate_citizenship_id(self, client):
        assert _submit(client).status_code == 201
        res = _submit(client, email="other@example.com")
        assert res.status_code == 409
        body = res.get_json()
        assert body["error"] == "Member with this Citizenship ID or Email already exists"
        assert body["details"] == {"field": "citizenshipId"}

    def test_duplicate_email(self, client):
        _submit(client)
        res = _submit(client, citizenship_id="99-99")
        assert res.status_code == 409
        assert res.get_json()["details"] == {"field": "email"}


# ═════════════════════════════════════════════════════════════════════════════
# ADMIN
# ═════════════════════════════════════════════════════════════════════════════

class TestAdminMembers:
    def test_list_requires_admin(self, client, student_headers):
        assert client.get("/api/v1/members").status_code == 401
        assert client.get("/api/v1/members", headers=student_headers).status_code == 403

    def test_list_filters_and_pagination(self, client, admin_headers):
        _submit(client)
        second = _sections(citizenship_id="2", email="hari@example.com")
        second["generalInfo"]["fullName"] = "Hari Karki"
        second["generalInfo"]["permanentAddress"]["province"] = "Koshi"
        client.post("/api/v1/members", json=second)

        body = client.get("/api/v1/members?limit=1", headers=admin_headers).get_json()
        assert body["pagination"] == {
            "currentPage": 1, "totalPages": 2, "totalMembers": 2, "hasNext": True, "hasPrev": False,
        }
        assert body["data"][0]["generalInfo"]["fullName"] == "Hari Karki"

        assert client.get("/api/v1/members?province=Koshi", headers=admin_headers) \
            .get_json()["pagination"]["totalMembers"] == 1
        assert client.get("/api/v1/members?search=GITA", headers=admin_headers) \
            .get_json()["data"][0]["generalInfo"]["email"] == "gita@example.com"
        assert client.get("/api/v1/members?status=weird", headers=admin_headers).status_code == 400

    def test_status_update_and_stats(self, client, admin_headers):
        member_id = _submit(client).get_json()["data"]["id"]
        res = client.put(f"/api/v1/members/{member_id}/status", json={"status": "approved"},
                         headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json()["message"] == "Member application approved successfully"

        stats = client.get("/api/v1/members/stats", headers=admin_headers).get_json()["data"]
        assert stats["total"] == 1
        assert stats["approved"] == 1
        assert stats["pending"] == 0
        assert stats["byMembershipLevel"] == [{"_id": "Provincial", "count": 1}]
        assert stats["byProvince"] == [{"_id": "Bagmati", "count": 1}]

    def test_invalid_status(self, client, admin_headers):
        member_id = _submit(client).get_json()["data"]["id"]
        res = client.put(f"/api/v1/members/{member_id}/status", json={"status": "maybe"},
                         headers=admin_headers)
        assert res.status_code == 400

    def test_update_sections_revalidates(self, client, admin_headers):
        member_id = _submit(client).get_json()["data"]["id"]
        membership = _sections()["membershipDetails"]
        membership["membershipLevel"] = "Institutional"
        res = client.put(f"/api/v1/members/{member_id}", json={"membershipDetails": membership},
                         headers=admin_headers)
        assert res.status_code == 200
        assert member_service.get_application(member_id).membership_level == "Institutional"

        membership["membershipLevel"] = "Galactic"
        res = client.put(f"/api/v1/members/{member_id}", json={"membershipDetails": membership},
                         headers=admin_headers)
        assert res.status_code == 400

    def test_get_and_delete_with_documents(self, client, admin_headers, blob_store):
        form = {key: json.dumps(value) for key, value in _sections().items()}
        form["citizenshipCopy"] = (io.BytesIO(b"scan"), "citizenship.png", "image/png")
        member_id = client.post("/api/v1/members", data=form,
                                content_type="multipart/form-data").get_json()["data"]["id"]

        assert client.get(f"/api/v1/members/{member_id}", headers=admin_headers).status_code == 200
        res = client.delete(f"/api/v1/members/{member_id}", headers=admin_headers)
        assert res.status_code == 200
        assert MemberApplication.query.count() == 0
        assert blob_store.blobs == {}
        assert client.get(f"/api/v1/members/{member_id}", headers=admin_headers).status_code == 404
