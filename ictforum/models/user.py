"""
User model — forum accounts that can sign in.

Roles are a closed set; ``admin`` is never self-assigned at registration and
is granted via ``flask create-admin``. The admin-equivalent role set used for
route protection is configured separately (ADMIN_ROLES).
"""

from datetime import datetime, timezone
from enum import Enum

from ictforum.models import db


class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    STAFF = "staff"
    ALUMNI = "alumni"
    ADMIN = "admin"


ROLES: tuple[str, ...] = tuple(r.value for r in UserRole)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(200), nullable=False, unique=True)
    role = db.Column(db.String(20), nullable=False, default=UserRole.STUDENT.value, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    department = db.Column(db.String(100))  # profile.department
    phone = db.Column(db.String(50))        # profile.phone
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self):
        """Safe projection — never includes the password hash."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "profile": {
                "department": self.department,
                "phone": self.phone,
            },
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<User {self.id}: {self.email} ({self.role})>"
