"""
Blog post models — bilingual (English / Nepali) articles.

    Post         title/content/excerpt in ``en`` and ``np``
    PostLike     one row per (post, liker) pair; toggled
    PostComment  newest-first comment thread
"""

from datetime import datetime, timezone
from enum import Enum

from ictforum.models import db


def _utcnow():
    return datetime.now(timezone.utc)


class PostCategory(str, Enum):
    TECHNOLOGY = "technology"
    DIGITAL_TRANSFORMATION = "digitalTransformation"
    SOCIAL_JUSTICE = "socialJustice"
    EVENTS = "events"
    INNOVATION = "innovation"
    POLICY = "policy"
    EDUCATION = "education"
    STARTUPS = "startups"


POST_CATEGORIES: tuple[str, ...] = tuple(c.value for c in PostCategory)
LANGUAGES = ("en", "np")


class Post(db.Model):
    __tablename__ = "posts"

    id = db.Column(db.Integer, primary_key=True)
    title_en = db.Column(db.String(500))
    title_np = db.Column(db.String(500))
    content_en = db.Column(db.Text)
    content_np = db.Column(db.Text)
    excerpt_en = db.Column(db.String(1000))
    excerpt_np = db.Column(db.String(1000))
    category = db.Column(db.String(40), index=True)
    image = db.Column(db.String(1000))
    image_key = db.Column(db.String(500))  # blob-store key of ``image``
    author_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    tags = db.Column(db.JSON, default=list)
    featured = db.Column(db.Boolean, nullable=False, default=False, index=True)
    published = db.Column(db.Boolean, nullable=False, default=True, index=True)
    views = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=_utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    author = db.relationship("User")
    likes = db.relationship(
        "PostLike", back_populates="post", lazy="dynamic", cascade="all, delete-orphan",
    )
    comments = db.relationship(
        "PostComment",
        back_populates="post",
        cascade="all, delete-orphan",
        order_by=lambda: [PostComment.created_at.desc(), PostComment.id.desc()],
    )

    def author_dict(self):
        if self.author is None:
            return {"name": "System Admin", "email": None}
        return {"id": self.author.id, "name": self.author.name, "email": self.author.email}

    def localized(self, field, language):
        """``title``/``content``/``excerpt`` in *language*, falling back to English."""
        return getattr(self, f"{field}_{language}", None) or getattr(self, f"{field}_en")

    def to_dict(self, language="en"):
        """Reader projection: single-language fields and counters."""
        return {
            "id": self.id,
            "title": self.localized("title", language),
            "content": self.localized("content", language),
            "excerpt": self.localized("excerpt", language),
            "category": self.category,
            "image": self.image,
            "author": self.author_dict(),
            "tags": self.tags or [],
            "featured": self.featured,
            "views": self.views,
            "likes": self.likes.count(),
            "comments": len(self.comments),
            "publishedAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_admin_dict(self):
        """Editor projection: both languages, draft flag and full comment thread."""
        return {
            "id": self.id,
            "title_en": self.title_en,
            "title_np": self.title_np,
            "content_en": self.content_en,
            "content_np": self.content_np,
            "excerpt_en": self.excerpt_en,
            "excerpt_np": self.excerpt_np,
            "category": self.category,
            "image": self.image,
            "author": self.author_dict(),
            "tags": self.tags or [],
            "featured": self.featured,
            "published": self.published,
            "views": self.views,
            "likes": self.likes.count(),
            "comments": [c.to_dict() for c in self.comments],
            "publishedAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class PostLike(db.Model):
    __tablename__ = "post_likes"

    id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    liker = db.Column(db.String(100), nullable=False)  # user id or anonymous identifier
    created_at = db.Column(db.DateTime, default=_utcnow)

    __table_args__ = (
        db.UniqueConstraint("post_id", "liker", name="uq_post_like_liker"),
    )

    post = db.relationship("Post", back_populates="likes")


class PostComment(db.Model):
    __tablename__ = "post_comments"

    id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(
        db.Integer, db.ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    user_name = db.Column(db.String(50), nullable=False, default="Anonymous")
    text = db.Column(db.String(1000), nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow)

    post = db.relationship("Post", back_populates="comments")

    def to_dict(self):
        return {
            "id": self.id,
            "user": self.user_id,
            "userName": self.user_name,
            "text": self.text,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
