"""
Department Registry Service.

Business context:
    Departments are the routing targets for suggestions. A suggestion stores
    the department *name*, so:
      - names are unique across active and inactive departments;
      - a department that any suggestion references cannot be deleted or
        renamed, only deactivated;
      - only active departments are offered publicly or accepted by the
        routing validator (see suggestion_service.validate_department).

Layer contract:
    All commits happen here; blueprints only parse input and serialise.
"""

import logging

from sqlalchemy import func, or_, select

from ictforum.core.exceptions import ConflictError, NotFoundError, ValidationError
from ictforum.models import db
from ictforum.models.department import Department
from ictforum.models.suggestion import Suggestion
from ictforum.services.user_service import normalize_email
from ictforum.utils.helpers import commit_or_raise, like_pattern, paginate, parse_bool

logger = logging.getLogger(__name__)

NAME_MIN = 2
NAME_MAX = 100
DESCRIPTION_MAX = 500
HEAD_MAX = 100

UPDATABLE_FIELDS = ("name", "description", "head", "email", "phone", "isActive")

DEFAULT_DEPARTMENTS: list[dict] = [
    {"name": "Academic Affairs", "description": "Curriculum, teaching and examinations"},
    {"name": "Administration", "description": "Registrar, records and general administration"},
    {"name": "Finance", "description": "Fees, scholarships and accounts"},
    {"name": "Infrastructure", "description": "Buildings, classrooms and maintenance"},
    {"name": "IT Services", "description": "Network, labs and campus systems"},
    {"name": "Library", "description": "Library services and resources"},
    {"name": "Student Welfare", "description": "Counselling, clubs and student support"},
]


# ── Validation helpers ────────────────────────────────────────────────────────


def _clean_name(name) -> str:
    if name is None or not str(name).strip():
        raise ValidationError("Department name is required", details={"name": "required"})
    name = str(name).strip()
    if not (NAME_MIN <= len(name) <= NAME_MAX):
        raise ValidationError(
            f"Department name must be between {NAME_MIN} and {NAME_MAX} characters",
            details={"name": name},
        )
    return name


def _clean_optional(value, field: str, max_len: int | None = None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    if max_len is not None and len(value) > max_len:
        raise ValidationError(
            f"{field} cannot exceed {max_len} characters", details={field: len(value)},
        )
    return value or None


def _clean_email(value) -> str | None:
    if value is None or not str(value).strip():
        return None
    return normalize_email(value)


def _clean_active(value) -> bool:
    # form bodies carry "true"/"false" strings
    flag = parse_bool(value)
    if flag is None:
        raise ValidationError("isActive must be a boolean", details={"isActive": value})
    return flag


def _name_taken(name: str, exclude_id: int | None = None) -> bool:
    stmt = select(Department.id).where(Department.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Department.id != exclude_id)
    return db.session.execute(stmt.limit(1)).first() is not None


def reference_count(name: str) -> int:
    """Number of suggestions whose assignedDepartment equals ``name``."""
    return db.session.execute(
        select(func.count(Suggestion.id)).where(Suggestion.assigned_department == name)
    ).scalar_one()


# ── Public service functions ──────────────────────────────────────────────────


def create_department(
    name,
    description=None,
    head=None,
    email=None,
    phone=None,
    is_active=True,
) -> Department:
    """Create a department.

    Raises:
        ValidationError: name missing/out of bounds, bad email, over-long fields.
        ConflictError:   the trimmed name already exists (active or not).
    """
    name = _clean_name(name)
    dept = Department(
        name=name,
        description=_clean_optional(description, "description", DESCRIPTION_MAX),
        head=_clean_optional(head, "head", HEAD_MAX),
        email=_clean_email(email),
        phone=_clean_optional(phone, "phone", 50),
        is_active=True if is_active is None else _clean_active(is_active),
    )
    if _name_taken(name):
        raise ConflictError("Department", "name", name, message="Department name already exists")

    db.session.add(dept)
    commit_or_raise("Department")
    logger.info("Created department id=%s", dept.id, extra={"department": dept.name})
    return dept


def get_department(dept_id: int) -> Department:
    dept = db.session.get(Department, dept_id)
    if not dept:
        raise NotFoundError(resource="Department", resource_id=dept_id)
    return dept


def lookup_active(name) -> Department | None:
    """Return the active department with exactly this name, else None."""
    if not name:
        return None
    return db.session.execute(
        select(Department).where(Department.name == name, Department.is_active.is_(True))
    ).scalar_one_or_none()


def update_department(dept_id: int, fields: dict) -> Department:
    """Apply a partial update. Unknown keys are ignored.

    All supplied fields are validated before anything is changed.

    Raises:
        NotFoundError:   no such department.
        ValidationError: any supplied field is invalid.
        ConflictError:   new name taken by another department, or the
                         department is referenced by suggestions and the
                         name would change.
    """
    dept = get_department(dept_id)
    changes: dict = {}

    if "name" in fields:
        new_name = _clean_name(fields["name"])
        if new_name != dept.name:
            if _name_taken(new_name, exclude_id=dept.id):
                raise ConflictError("Department", "name", new_name, message="Department name already exists")
            if reference_count(dept.name):
                raise ConflictError(
                    "Department", "name", dept.name,
                    message="Department is referenced by suggestions and cannot be renamed; deactivate it instead",
                )
        changes["name"] = new_name
    if "description" in fields:
        changes["description"] = _clean_optional(fields["description"], "description", DESCRIPTION_MAX)
    if "head" in fields:
        changes["head"] = _clean_optional(fields["head"], "head", HEAD_MAX)
    if "email" in fields:
        changes["email"] = _clean_email(fields["email"])
    if "phone" in fields:
        changes["phone"] = _clean_optional(fields["phone"], "phone", 50)
    if "isActive" in fields:
        changes["is_active"] = _clean_active(fields["isActive"])

    for attr, value in changes.items():
        setattr(dept, attr, value)
    commit_or_raise("Department")
    logger.info("Updated department id=%s fields=%s", dept.id, sorted(changes))
    return dept


def deactivate_department(dept_id: int) -> Department:
    """Soft-delete: set isActive=false. Idempotent."""
    dept = get_department(dept_id)
    if dept.is_active:
        dept.is_active = False
        commit_or_raise("Department")
        logger.info("Deactivated department id=%s", dept.id, extra={"department": dept.name})
    return dept


def delete_department(dept_id: int) -> None:
    """Hard-delete a department that no suggestion references.

    Raises:
        NotFoundError: no such department.
        ConflictError: suggestions reference it; callers deactivate instead.
    """
    dept = get_department(dept_id)
    refs = reference_count(dept.name)
    if refs:
        raise ConflictError(
            "Department", "assignedDepartment", dept.name,
            message=f"Department is assigned to {refs} suggestion(s); deactivate it instead",
        )
    db.session.delete(dept)
    commit_or_raise("Department")
    logger.info("Deleted department id=%s", dept_id, extra={"department": dept.name})


def list_departments(
    active: bool | None = None,
    q: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Department], int]:
    """Admin listing ordered by name.

    ``q`` matches name, description or head as a case-insensitive substring.

    Returns:
        (items, total)
    """
    stmt = select(Department)
    if active is not None:
        stmt = stmt.where(Department.is_active.is_(active))
    if q:
        pattern = like_pattern(q)
        stmt = stmt.where(
            or_(
                func.lower(Department.name).like(pattern, escape="\\"),
                func.lower(func.coalesce(Department.description, "")).like(pattern, escape="\\"),
                func.lower(func.coalesce(Department.head, "")).like(pattern, escape="\\"),
            )
        )
    stmt = stmt.order_by(Department.name, Department.id)
    return paginate(stmt, page, limit)


def list_active_public() -> list[Department]:
    """Active departments by name — feeds the public suggestion form."""
    return list(
        db.session.execute(
            select(Department).where(Department.is_active.is_(True)).order_by(Department.name)
        ).scalars()
    )


def seed_defaults() -> int:
    """Insert DEFAULT_DEPARTMENTS that don't exist yet. Returns number created."""
    created = 0
    for entry in DEFAULT_DEPARTMENTS:
        if _name_taken(entry["name"]):
            continue
        db.session.add(Department(name=entry["name"], description=entry["description"]))
        created += 1
    commit_or_raise("Department")
    logger.info("Seeded %d default department(s)", created)
    return created
