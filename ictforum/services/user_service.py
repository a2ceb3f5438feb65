"""
User Service — registration, authentication, admin provisioning.
"""

import logging

from email_validator import EmailNotValidError, validate_email
from flask import current_app
from sqlalchemy import select

from ictforum.core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ictforum.models import db
from ictforum.models.user import ROLES, User, UserRole
from ictforum.utils.crypto import hash_password, verify_password
from ictforum.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)

NAME_MIN = 2
NAME_MAX = 100
PASSWORD_MIN = 6


def normalize_email(email: str) -> str:
    """Validate the shape of an address and return it lower-cased.

    Raises ValidationError for a malformed address.
    """
    raw = str(email or "").strip()
    try:
        valid = validate_email(raw, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError(f"Invalid email: {exc}", details={"email": raw}) from exc
    return valid.normalized.lower()


def _validate_name(name) -> str:
    name = str(name or "").strip()
    if not (NAME_MIN <= len(name) <= NAME_MAX):
        raise ValidationError(
            f"name must be between {NAME_MIN} and {NAME_MAX} characters",
            details={"name": name},
        )
    return name


def _validate_password(password) -> str:
    if not isinstance(password, str) or len(password) < PASSWORD_MIN:
        raise ValidationError(f"password must be at least {PASSWORD_MIN} characters")
    return password


def _rounds() -> int:
    return current_app.config.get("BCRYPT_ROUNDS", 12)


def get_user_by_email(email: str) -> User | None:
    return db.session.execute(
        select(User).where(User.email == str(email or "").strip().lower())
    ).scalar_one_or_none()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError(resource="User", resource_id=user_id)
    return user


def register_user(
    name: str,
    email: str,
    password: str,
    role: str | None = None,
    department: str | None = None,
    phone: str | None = None,
) -> User:
    """Create a self-registered account.

    Unknown roles and ``admin`` fall back to ``student``: administrators are
    provisioned with ``flask create-admin`` only.
    """
    if not name or not email or not password:
        raise ValidationError("name, email, password are required")
    name = _validate_name(name)
    email = normalize_email(email)
    _validate_password(password)

    if role not in ROLES or role == UserRole.ADMIN.value:
        role = UserRole.STUDENT.value

    if get_user_by_email(email):
        raise ConflictError("User", "email", email, message="Email already registered")

    user = User(
        name=name,
        email=email,
        role=role,
        password_hash=hash_password(password, rounds=_rounds()),
        department=department,
        phone=phone,
    )
    db.session.add(user)
    commit_or_raise("User")
    logger.info("Registered user id=%s role=%s", user.id, user.role)
    return user


def authenticate(email: str, password: str) -> User:
    """Return the user for valid credentials, else raise AuthenticationError."""
    if not email or not isinstance(password, str) or not password:
        raise ValidationError("email and password are required")
    user = get_user_by_email(email)
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", str(email).strip().lower())
        raise AuthenticationError("Invalid credentials")
    return user


def ensure_admin(email: str, name: str, password: str | None = None) -> tuple[User, bool]:
    """Create an admin account, or promote an existing user to admin.

    Returns (user, created).
    """
    email = normalize_email(email)
    user = get_user_by_email(email)
    if user:
        user.role = UserRole.ADMIN.value
        if password:
            user.password_hash = hash_password(_validate_password(password), rounds=_rounds())
        commit_or_raise("User")
        logger.info("Promoted user id=%s to admin", user.id)
        return user, False

    user = User(
        name=_validate_name(name),
        email=email,
        role=UserRole.ADMIN.value,
        password_hash=hash_password(_validate_password(password), rounds=_rounds()),
    )
    db.session.add(user)
    commit_or_raise("User")
    logger.info("Created admin user id=%s", user.id)
    return user, True


def count_users() -> int:
    return db.session.query(User).count()
