"""
Suggestion Service — store, routing validator and lifecycle controller.

Business context:
    Anyone may drop a suggestion in the box, anonymously or signed in.
    Staff triage it: re-categorise, route it to a department, assign a
    person, record the action taken and move the status along
    Received → In Process → Resolved (any transition is allowed).
    Resolved suggestions are published on the transparency page.

Invariants enforced here:
    - a non-null assignedDepartment names an existing *active* department
      at the moment it is set (validate_department, unconditional);
    - an anonymous suggestion never stores a submitter;
    - submit validates everything before touching the blob store, and never
      persists a suggestion with partial media;
    - update_fields validates every supplied field before changing any.

Concurrency:
    No locking. Concurrent updates are last-write-wins per field, and a
    department deactivated between validation and commit is not detected.

Projection to JSON is done by ``suggestion_visibility``.
"""

import logging
import os

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError

from ictforum.core.exceptions import AuthenticationError, NotFoundError, StorageError, ValidationError
from ictforum.models import db
from ictforum.models.suggestion import (
    ACTION_TAKEN_MAX,
    CATEGORIES,
    DESCRIPTION_MAX,
    DESCRIPTION_MIN,
    STATUSES,
    Suggestion,
    SuggestionMedia,
    SuggestionStatus,
)
from ictforum.services import department_service
from ictforum.services.blob_store import delete_quietly, get_blob_store
from ictforum.services.suggestion_visibility import to_tracking_view
from ictforum.utils.helpers import commit_or_raise, like_pattern, paginate, parse_datetime_bound

logger = logging.getLogger(__name__)

MAX_MEDIA_FILES = 5
MAX_MEDIA_TOTAL_BYTES = 15 * 1024 * 1024
ASSIGNED_TO_MAX = 200
MEDIA_FOLDER = "suggestions"

UPDATABLE_FIELDS = ("status", "category", "assignedDepartment", "assignedTo", "actionTaken")


# ── Validation helpers ────────────────────────────────────────────────────────


def validate_department(name: str) -> str:
    """Routing validator: ``name`` must be an existing, active department.

    Raises ValidationError otherwise, including when the registry is empty
    and when ``name`` is not a string.
    """
    if not isinstance(name, str):
        raise ValidationError(
            "Invalid or inactive department",
            details={"assignedDepartment": f"expected a department name, got {type(name).__name__}"},
        )
    if not department_service.lookup_active(name):
        raise ValidationError("Invalid or inactive department", details={"assignedDepartment": name})
    return name


def _validate_category(category) -> str:
    if category not in CATEGORIES:
        raise ValidationError(
            f"Invalid category. Allowed: {', '.join(CATEGORIES)}", details={"category": category},
        )
    return category


def _validate_status(status) -> str:
    if status not in STATUSES:
        raise ValidationError(
            f"Invalid status. Allowed: {', '.join(STATUSES)}", details={"status": status},
        )
    return status


def _validate_description(description) -> str:
    if not isinstance(description, str):
        raise ValidationError("description must be a string")
    description = description.strip()
    if not (DESCRIPTION_MIN <= len(description) <= DESCRIPTION_MAX):
        raise ValidationError(
            f"description must be between {DESCRIPTION_MIN} and {DESCRIPTION_MAX} characters",
            details={"description": len(description)},
        )
    return description


def _validate_action_taken(value) -> str | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError("actionTaken must be a string")
    if len(value) > ACTION_TAKEN_MAX:
        raise ValidationError(
            f"Action taken cannot exceed {ACTION_TAKEN_MAX} characters",
            details={"actionTaken": len(value)},
        )
    return value


def _validate_assigned_to(value) -> str | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError("assignedTo must be a string")
    value = value.strip()
    if len(value) > ASSIGNED_TO_MAX:
        raise ValidationError(f"assignedTo cannot exceed {ASSIGNED_TO_MAX} characters")
    return value or None


def _stream_size(file) -> int:
    stream = file.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def _validate_media(files) -> list[tuple]:
    """Check count, content types and total size. Returns [(file, size), ...]."""
    if len(files) > MAX_MEDIA_FILES:
        raise ValidationError(
            f"At most {MAX_MEDIA_FILES} media files are allowed", details={"media": len(files)},
        )
    checked = []
    total = 0
    for f in files:
        mimetype = (f.mimetype or "").lower()
        if not (mimetype.startswith("image/") or mimetype.startswith("video/")):
            raise ValidationError(
                "Only images and videos are allowed", details={"media": f.filename},
            )
        size = _stream_size(f)
        total += size
        checked.append((f, size))
    if total > MAX_MEDIA_TOTAL_BYTES:
        raise ValidationError(
            f"Media may not exceed {MAX_MEDIA_TOTAL_BYTES // (1024 * 1024)} MB in total",
            details={"media": total},
        )
    return checked


# ── Lifecycle ─────────────────────────────────────────────────────────────────


def submit(
    category,
    description,
    anonymous: bool = True,
    submitter_id: int | None = None,
    assigned_department: str | None = None,
    action_taken: str | None = None,
    files=None,
) -> Suggestion:
    """Create a suggestion in ``Received`` status.

    ``files`` are werkzeug ``FileStorage``-like objects (``filename``,
    ``mimetype``, ``stream``).

    Raises:
        ValidationError:     bad category/description/department/actionTaken/media.
        AuthenticationError: non-anonymous submission without an identity.
        StorageError:        blob upload or database write failed.
    """
    files = list(files or [])
    if not category or not description:
        raise ValidationError("category and description are required")
    category = _validate_category(category)
    description = _validate_description(description)
    if not anonymous and submitter_id is None:
        raise AuthenticationError("Authentication required for non-anonymous submission")
    if assigned_department is not None and assigned_department != "":
        validate_department(assigned_department)
    else:
        assigned_department = None
    action_taken = _validate_action_taken(action_taken)
    checked = _validate_media(files)

    store = get_blob_store()
    stored = []
    for f, size in checked:
        try:
            blob = store.put(f.stream, f.filename, f.mimetype, folder=MEDIA_FOLDER)
        except StorageError as exc:
            for done, _ in stored:
                delete_quietly(done.key, store)
            logger.error("Media upload failed, %d uploaded blob(s) rolled back", len(stored))
            raise StorageError("Failed to upload media") from exc
        stored.append((blob, f))

    suggestion = Suggestion(
        user_id=None if anonymous else submitter_id,
        anonymous=bool(anonymous),
        category=category,
        description=description,
        status=SuggestionStatus.RECEIVED.value,
        assigned_department=assigned_department,
        action_taken=action_taken,
    )
    for position, (blob, f) in enumerate(stored):
        suggestion.media.append(
            SuggestionMedia(
                position=position,
                type="image" if f.mimetype.lower().startswith("image/") else "video",
                url=blob.url,
                filename=f.filename,
                mimetype=f.mimetype,
                size=blob.size,
                storage_key=blob.key,
            )
        )

    db.session.add(suggestion)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error(
            "Failed to persist suggestion; orphaned blobs: %s",
            [blob.key for blob, _ in stored],
        )
        raise StorageError("Failed to save suggestion") from exc

    logger.info(
        "Suggestion submitted category=%s media=%d anonymous=%s",
        category, len(stored), suggestion.anonymous,
        extra={"suggestion_id": suggestion.id},
    )
    return suggestion


def get(suggestion_id: str) -> Suggestion:
    suggestion = db.session.get(Suggestion, suggestion_id)
    if not suggestion:
        raise NotFoundError(resource="Suggestion", resource_id=suggestion_id)
    return suggestion


def update_fields(suggestion_id: str, fields: dict) -> Suggestion:
    """Staff triage update of status/category/assignedDepartment/assignedTo/actionTaken.

    Only keys present in ``fields`` change; explicit None clears the
    department, assignee and action. Everything is validated before the
    record is modified, so a failure leaves it untouched.
    """
    suggestion = get(suggestion_id)
    changes: dict = {}

    if "status" in fields:
        changes["status"] = _validate_status(fields["status"])
    if "category" in fields:
        changes["category"] = _validate_category(fields["category"])
    if "assignedDepartment" in fields:
        name = fields["assignedDepartment"]
        changes["assigned_department"] = None if name is None or name == "" else validate_department(name)
    if "assignedTo" in fields:
        changes["assigned_to"] = _validate_assigned_to(fields["assignedTo"])
    if "actionTaken" in fields:
        changes["action_taken"] = _validate_action_taken(fields["actionTaken"])

    for attr, value in changes.items():
        setattr(suggestion, attr, value)
    commit_or_raise("Suggestion")
    logger.info(
        "Suggestion updated fields=%s", sorted(changes),
        extra={"suggestion_id": suggestion.id},
    )
    return suggestion


def track_public(suggestion_id: str) -> dict:
    """Minimal status view for anyone holding the suggestion id."""
    return to_tracking_view(get(suggestion_id))


def delete(suggestion_id: str) -> None:
    """Remove the record and its media rows, then delete the blobs best-effort."""
    suggestion = get(suggestion_id)
    keys = [m.storage_key for m in suggestion.media]
    db.session.delete(suggestion)
    commit_or_raise("Suggestion")
    for key in keys:
        delete_quietly(key)
    logger.info("Suggestion deleted (%d blob(s))", len(keys), extra={"suggestion_id": suggestion_id})


# ── Queries ───────────────────────────────────────────────────────────────────


def list_for_submitter(user_id: int) -> list[Suggestion]:
    """The caller's own attributed suggestions, newest first."""
    return list(
        db.session.execute(
            select(Suggestion)
            .where(Suggestion.user_id == user_id, Suggestion.anonymous.is_(False))
            .order_by(Suggestion.created_at.desc(), Suggestion.id)
        ).scalars()
    )


def list_resolved_public(page: int = 1, limit: int = 10) -> tuple[list[Suggestion], int]:
    """Resolved suggestions, most recently updated first; ``id`` breaks ties."""
    stmt = (
        select(Suggestion)
        .where(Suggestion.status == SuggestionStatus.RESOLVED.value)
        .order_by(Suggestion.updated_at.desc(), Suggestion.id)
    )
    return paginate(stmt, page, limit)


def list_admin(
    category: str | None = None,
    status: str | None = None,
    assigned_department: str | None = None,
    q: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Suggestion], int]:
    """Staff listing with filters, newest first.

    ``q`` is a case-insensitive substring of description or actionTaken.
    ``date_from``/``date_to`` bound createdAt inclusively; a date-only
    ``date_to`` covers that whole day.
    """
    stmt = select(Suggestion)
    if category:
        stmt = stmt.where(Suggestion.category == _validate_category(category))
    if status:
        stmt = stmt.where(Suggestion.status == _validate_status(status))
    if assigned_department:
        stmt = stmt.where(Suggestion.assigned_department == assigned_department)

    lower = parse_datetime_bound(date_from, field="from")
    upper = parse_datetime_bound(date_to, end_of_day=True, field="to")
    if lower is not None:
        stmt = stmt.where(Suggestion.created_at >= lower)
    if upper is not None:
        stmt = stmt.where(Suggestion.created_at <= upper)

    if q and q.strip():
        pattern = like_pattern(q)
        stmt = stmt.where(
            or_(
                func.lower(Suggestion.description).like(pattern, escape="\\"),
                func.lower(func.coalesce(Suggestion.action_taken, "")).like(pattern, escape="\\"),
            )
        )
    stmt = stmt.order_by(Suggestion.created_at.desc(), Suggestion.id)
    return paginate(stmt, page, limit)
