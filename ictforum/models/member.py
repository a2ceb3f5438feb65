"""
Membership application model.

The five form sections are stored as JSON documents, as submitted. The
fields used for lookups, uniqueness and admin filters are copied into
their own indexed columns when the application is written:

    full_name, email, citizenship_id   — search / duplicate detection
    province                           — generalInfo.permanentAddress.province
    membership_level                   — membershipDetails.membershipLevel
"""

from datetime import datetime, timezone
from enum import Enum

from ictforum.models import db


def _utcnow():
    return datetime.now(timezone.utc)


class MemberStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


MEMBER_STATUSES: tuple[str, ...] = tuple(s.value for s in MemberStatus)

GENDERS = ("Male", "Female", "Other")
ORGANIZATION_TYPES = ("Government", "Private", "NGO/INGO", "Academic", "Freelancer")
AREAS_OF_EXPERTISE = (
    "ICT Policy", "Networking", "Software", "Cybersecurity", "Data / AI", "e-Governance", "Other",
)
MEMBERSHIP_LEVELS = ("Provincial", "Local (Palika)", "Institutional", "Individual")
MEMBERSHIP_TYPES = ("General", "Executive", "Advisory", "Lifetime")
WORKING_DOMAINS = (
    "Digital Literacy", "E-Governance", "Infrastructure",
    "Policy & Research", "Innovation & Startups", "Cyber Awareness",
)
DOCUMENT_FIELDS = ("citizenshipCopy", "photo", "recommendationLetter", "resume")


class MemberApplication(db.Model):
    __tablename__ = "member_applications"

    id = db.Column(db.Integer, primary_key=True)

    general_info = db.Column(db.JSON, nullable=False, default=dict)
    professional_details = db.Column(db.JSON, nullable=False, default=dict)
    membership_details = db.Column(db.JSON, nullable=False, default=dict)
    endorsement = db.Column(db.JSON, nullable=False, default=dict)
    declaration = db.Column(db.JSON, nullable=False, default=dict)
    # {field: {filename, url, key}} for each uploaded document
    documents = db.Column(db.JSON, nullable=False, default=dict)

    full_name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(200), nullable=False, unique=True)
    citizenship_id = db.Column(db.String(100), nullable=False, unique=True)
    province = db.Column(db.String(100), index=True)
    membership_level = db.Column(db.String(50), index=True)

    status = db.Column(db.String(20), nullable=False, default=MemberStatus.PENDING.value, index=True)
    created_at = db.Column(db.DateTime, default=_utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        documents = {
            name: {"filename": doc.get("filename"), "url": doc.get("url")}
            for name, doc in (self.documents or {}).items()
        }
        return {
            "id": self.id,
            "generalInfo": self.general_info or {},
            "professionalDetails": self.professional_details or {},
            "membershipDetails": self.membership_details or {},
            "endorsement": self.endorsement or {},
            "declaration": self.declaration or {},
            "documents": documents,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<MemberApplication {self.id}: {self.full_name} [{self.status}]>"
