"""
Post Service — bilingual blog posts, likes and comments.

Readers see published posts only; administrators also see drafts. Viewing a
single post bumps its view counter. Likes are a toggle per liker id (the
signed-in user's id, a client-supplied id, or ``anonymous-user``).

Images are validated before upload and stored under the ``posts`` folder of
the blob store; replaced and deleted images are removed best-effort.
"""

import json
import logging
import os

from sqlalchemy import func, or_, select, update

from ictforum.core.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from ictforum.models import db
from ictforum.models.post import LANGUAGES, POST_CATEGORIES, Post, PostComment, PostLike
from ictforum.models.user import User
from ictforum.services import user_service
from ictforum.services.blob_store import delete_quietly, get_blob_store
from ictforum.utils.helpers import commit_or_raise, like_pattern, paginate, parse_bool

logger = logging.getLogger(__name__)

TITLE_MIN = 5
TITLE_MAX = 200
TITLE_NP_MAX = 500
CONTENT_MIN = 50
EXCERPT_MAX = 1000
COMMENT_MAX = 500
USER_NAME_MAX = 50
DEFAULT_USER_NAME = "Anonymous"
ANONYMOUS_LIKER = "anonymous-user"

IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "webp", "gif"})
IMAGE_MAX_BYTES = 10 * 1024 * 1024
IMAGE_FOLDER = "posts"

SORTS = {
    "createdAt": (Post.created_at.asc(),),
    "-createdAt": (Post.created_at.desc(),),
    "views": (Post.views.asc(),),
    "-views": (Post.views.desc(),),
    "title": (Post.title_en.asc(),),
    "-title": (Post.title_en.desc(),),
}


# ── Validation helpers ────────────────────────────────────────────────────────


def _text(value, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", details={field: "type"})
    return value.strip()


def _check_len(value: str | None, field: str, min_len: int = 0, max_len: int | None = None, message=None):
    length = len(value or "")
    if length < min_len or (max_len is not None and length > max_len):
        raise ValidationError(message or f"{field} has an invalid length", details={field: length})


def _validate_category(category):
    if category not in POST_CATEGORIES:
        raise ValidationError("Please select a valid category", details={"category": category})
    return category


def _parse_tags(value) -> list[str]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        raw = value.strip()
        if raw.startswith("["):
            try:
                value = json.loads(raw)
            except ValueError as exc:
                raise ValidationError("tags must be a list or a comma-separated string") from exc
        else:
            value = raw.split(",")
    if not isinstance(value, list):
        raise ValidationError("tags must be a list or a comma-separated string")
    return [str(t).strip() for t in value if str(t).strip()]


def _validate_image(image) -> None:
    ext = os.path.splitext(image.filename or "")[1].lower().lstrip(".")
    if ext not in IMAGE_EXTENSIONS:
        raise ValidationError(
            f"Image must be one of: {', '.join(sorted(IMAGE_EXTENSIONS))}", details={"image": image.filename},
        )
    stream = image.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    if size > IMAGE_MAX_BYTES:
        raise ValidationError("Image may not exceed 10 MB", details={"image": size})


def _clean_fields(data: dict, creating: bool) -> dict:
    """Validate supplied post fields and map them to model attributes.

    On create, title_en/content_en/category are required; on update only
    the supplied ones are checked.
    """
    out: dict = {}

    if creating or "title_en" in data:
        title = _text(data.get("title_en"), "title_en")
        _check_len(title, "title_en", TITLE_MIN, TITLE_MAX,
                   f"English title must be between {TITLE_MIN} and {TITLE_MAX} characters")
        out["title_en"] = title
    if creating or "content_en" in data:
        content = _text(data.get("content_en"), "content_en")
        _check_len(content, "content_en", CONTENT_MIN,
                   message=f"English content must be at least {CONTENT_MIN} characters")
        out["content_en"] = content
    if creating or "category" in data:
        out["category"] = _validate_category(data.get("category"))

    if "title_np" in data:
        out["title_np"] = _text(data["title_np"], "title_np") or None
        _check_len(out["title_np"], "title_np", max_len=TITLE_NP_MAX,
                   message=f"Title cannot be more than {TITLE_NP_MAX} characters")
    if "content_np" in data:
        out["content_np"] = _text(data["content_np"], "content_np") or None
    for field in ("excerpt_en", "excerpt_np"):
        if field in data:
            out[field] = _text(data[field], field) or None
            _check_len(out[field], field, max_len=EXCERPT_MAX,
                       message=f"Excerpt cannot be more than {EXCERPT_MAX} characters")
    if "tags" in data:
        out["tags"] = _parse_tags(data["tags"])
    for flag in ("featured", "published"):
        if flag in data:
            value = parse_bool(data[flag])
            if value is None:
                raise ValidationError(f"{flag} must be a boolean", details={flag: data[flag]})
            out[flag] = value
    return out


def _upload_image(image):
    return get_blob_store().put(image.stream, image.filename, image.mimetype, folder=IMAGE_FOLDER)


# ── Queries ───────────────────────────────────────────────────────────────────


def validate_language(language) -> str:
    language = language or "en"
    if language not in LANGUAGES:
        raise ValidationError(f"language must be one of: {', '.join(LANGUAGES)}", details={"language": language})
    return language


def list_posts(
    page: int = 1,
    limit: int = 10,
    category: str | None = None,
    featured=None,
    search: str | None = None,
    sort: str | None = None,
    include_drafts: bool = False,
) -> tuple[list[Post], int]:
    """Paginated post listing.

    ``search`` is a case-insensitive substring match over the English and
    Nepali titles, the English content and the English excerpt.
    """
    stmt = select(Post)
    if not include_drafts:
        stmt = stmt.where(Post.published.is_(True))
    if category:
        stmt = stmt.where(Post.category == _validate_category(category))
    featured_flag = parse_bool(featured)
    if featured_flag is not None:
        stmt = stmt.where(Post.featured.is_(featured_flag))
    if search and search.strip():
        pattern = like_pattern(search)
        stmt = stmt.where(
            or_(
                func.lower(func.coalesce(Post.title_en, "")).like(pattern, escape="\\"),
                func.lower(func.coalesce(Post.title_np, "")).like(pattern, escape="\\"),
                func.lower(func.coalesce(Post.content_en, "")).like(pattern, escape="\\"),
                func.lower(func.coalesce(Post.excerpt_en, "")).like(pattern, escape="\\"),
            )
        )
    sort = sort or "-createdAt"
    if sort not in SORTS:
        raise ValidationError(f"sort must be one of: {', '.join(SORTS)}", details={"sort": sort})
    stmt = stmt.order_by(*SORTS[sort], Post.id.desc())
    return paginate(stmt, page, limit)


def get_post(post_id: int, include_drafts: bool = False) -> Post:
    post = db.session.get(Post, post_id)
    if not post or (not post.published and not include_drafts):
        raise NotFoundError(resource="Post", resource_id=post_id)
    return post


def view_post(post_id: int, include_drafts: bool = False) -> Post:
    """Fetch a post for reading and increment its view counter."""
    post = get_post(post_id, include_drafts)
    db.session.execute(
        update(Post)
        .where(Post.id == post.id)
        .values(views=Post.views + 1, updated_at=Post.updated_at)
    )
    commit_or_raise("Post")
    db.session.refresh(post)
    return post


def stats() -> dict:
    total = db.session.query(Post).count()
    published = db.session.query(Post).filter(Post.published.is_(True)).count()
    featured = db.session.query(Post).filter(Post.featured.is_(True)).count()
    total_views = db.session.execute(select(func.coalesce(func.sum(Post.views), 0))).scalar_one()
    total_users = user_service.count_users()
    return {
        "totalPosts": total,
        "publishedPosts": published,
        "draftPosts": total - published,
        "featuredPosts": featured,
        "totalViews": int(total_views),
        "totalUsers": total_users,
        "monthlyPosts": total // 12,
        "monthlyViews": int(total_views) // 12,
    }


# ── Mutations ─────────────────────────────────────────────────────────────────


def create_post(data: dict, image=None, author_id: int | None = None) -> Post:
    """Create a post. The image, if any, is uploaded after validation."""
    fields = _clean_fields(data, creating=True)
    if image is not None:
        _validate_image(image)

    post = Post(author_id=author_id, **fields)
    blob = _upload_image(image) if image is not None else None
    if blob is not None:
        post.image = blob.url
        post.image_key = blob.key

    db.session.add(post)
    try:
        commit_or_raise("Post")
    except (ConflictError, StorageError):
        if blob is not None:
            delete_quietly(blob.key)
        raise
    logger.info("Created post id=%s category=%s", post.id, post.category)
    return post


def update_post(post_id: int, data: dict, image=None) -> Post:
    """Partial update. A new image replaces the old one, which is then deleted."""
    post = get_post(post_id, include_drafts=True)
    fields = _clean_fields(data, creating=False)
    if image is not None:
        _validate_image(image)

    old_key = post.image_key
    blob = _upload_image(image) if image is not None else None
    for attr, value in fields.items():
        setattr(post, attr, value)
    if blob is not None:
        post.image = blob.url
        post.image_key = blob.key

    try:
        commit_or_raise("Post")
    except (ConflictError, StorageError):
        if blob is not None:
            delete_quietly(blob.key)
        raise
    if blob is not None and old_key:
        delete_quietly(old_key)
    logger.info("Updated post id=%s fields=%s", post.id, sorted(fields))
    return post


def delete_post(post_id: int) -> None:
    post = get_post(post_id, include_drafts=True)
    image_key = post.image_key
    db.session.delete(post)
    commit_or_raise("Post")
    delete_quietly(image_key)
    logger.info("Deleted post id=%s", post_id)


def toggle_like(post_id: int, liker: str | None) -> tuple[bool, int]:
    """Like or unlike. Returns (liked_now, like_count)."""
    post = get_post(post_id)
    liker = str(liker) if liker else ANONYMOUS_LIKER
    existing = db.session.execute(
        select(PostLike).where(PostLike.post_id == post.id, PostLike.liker == liker)
    ).scalar_one_or_none()
    if existing:
        db.session.delete(existing)
        liked = False
    else:
        db.session.add(PostLike(post_id=post.id, liker=liker))
        liked = True
    commit_or_raise("Like")
    return liked, post.likes.count()


def add_comment(post_id: int, text, user_name=None, user_id: int | None = None) -> PostComment:
    """Add a comment; signed-in users comment under their account name."""
    text = _text(text, "text")
    if not text:
        raise ValidationError("Comment text is required", details={"text": "required"})
    _check_len(text, "text", 1, COMMENT_MAX,
               f"Comment must be between 1 and {COMMENT_MAX} characters")

    if user_id is not None:
        user = db.session.get(User, user_id)
        user_name = user.name[:USER_NAME_MAX] if user else None
    else:
        user_name = _text(user_name, "userName") or None
        if user_name is not None:
            _check_len(user_name, "userName", 1, USER_NAME_MAX,
                       f"User name must be between 1 and {USER_NAME_MAX} characters")
    post = get_post(post_id)

    comment = PostComment(post_id=post.id, user_id=user_id, user_name=user_name or DEFAULT_USER_NAME, text=text)
    db.session.add(comment)
    commit_or_raise("Comment")
    return comment
