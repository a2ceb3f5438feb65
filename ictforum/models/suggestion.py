"""
Suggestion models — the suggestion box.

    Suggestion        one submission (anonymous or attributed)
    SuggestionMedia   0..5 image/video attachments owned by a suggestion

``assigned_department`` stores the department *name*; it is validated
against the active registry by the service layer whenever it is set.
The projections exposed over HTTP live in
``ictforum.services.suggestion_visibility``, not here.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from ictforum.models import db


def _uuid():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


class SuggestionCategory(str, Enum):
    ACADEMIC = "academic"
    ADMINISTRATIVE = "administrative"
    INFRASTRUCTURE = "infrastructure"
    OTHER = "other"


class SuggestionStatus(str, Enum):
    RECEIVED = "Received"
    IN_PROCESS = "In Process"
    RESOLVED = "Resolved"


CATEGORIES: tuple[str, ...] = tuple(c.value for c in SuggestionCategory)
STATUSES: tuple[str, ...] = tuple(s.value for s in SuggestionStatus)

DESCRIPTION_MIN = 10
DESCRIPTION_MAX = 5000
ACTION_TAKEN_MAX = 20000


class Suggestion(db.Model):
    __tablename__ = "suggestions"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    anonymous = db.Column(db.Boolean, nullable=False, default=True)
    category = db.Column(db.String(30), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False)
    status = db.Column(
        db.String(20), nullable=False, default=SuggestionStatus.RECEIVED.value, index=True,
    )
    assigned_department = db.Column(db.String(100), nullable=True, index=True)
    assigned_to = db.Column(db.String(200), nullable=True)
    action_taken = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=_utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow, index=True)

    media = db.relationship(
        "SuggestionMedia",
        back_populates="suggestion",
        cascade="all, delete-orphan",
        order_by="SuggestionMedia.position",
    )

    def to_dict(self):
        """Full record. Callers go through suggestion_visibility for HTTP output."""
        return {
            "id": self.id,
            "user": self.user_id,
            "anonymous": self.anonymous,
            "category": self.category,
            "description": self.description,
            "status": self.status,
            "assignedDepartment": self.assigned_department,
            "assignedTo": self.assigned_to,
            "actionTaken": self.action_taken,
            "media": [m.to_dict() for m in self.media],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Suggestion {self.id} [{self.status}] {self.category}>"


class SuggestionMedia(db.Model):
    __tablename__ = "suggestion_media"

    id = db.Column(db.Integer, primary_key=True)
    suggestion_id = db.Column(
        db.String(36), db.ForeignKey("suggestions.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    type = db.Column(db.String(10), nullable=False)  # image | video
    url = db.Column(db.String(1000), nullable=False)
    filename = db.Column(db.String(255), nullable=False)
    mimetype = db.Column(db.String(100), nullable=False)
    size = db.Column(db.Integer, nullable=False)
    storage_key = db.Column(db.String(500), nullable=False)

    suggestion = db.relationship("Suggestion", back_populates="media")

    def to_dict(self):
        return {
            "type": self.type,
            "url": self.url,
            "filename": self.filename,
            "mimetype": self.mimetype,
            "size": self.size,
        }
