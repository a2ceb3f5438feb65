"""Shared utility functions used by blueprints and services.

parse_date / parse_datetime_bound:  query-string date parsing
parse_bool:                         form/query boolean parsing
page_params / paginate:             page+limit pagination
like_pattern:                       escaped substring pattern for LIKE
commit_or_raise:                    service-layer commit with exception mapping
"""
import logging
import math
from datetime import date, datetime, time, timezone

from sqlalchemy import func, select

from ictforum.core.exceptions import ConflictError, StorageError, ValidationError
from ictforum.models import db

logger = logging.getLogger(__name__)

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


def parse_date(value):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD.MM.YYYY
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError):
        return None


def parse_datetime_bound(value, *, end_of_day=False, field="date"):
    """Parse a ``from``/``to`` filter value into a naive UTC datetime.

    A bare date expands to the start of that day, or to its last instant when
    ``end_of_day`` is set, so ``to=2025-01-31`` includes the whole day.
    Raises ValidationError for unparseable input.
    """
    if not value:
        return None
    raw = str(value).strip()
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
    if parsed is not None and ("T" in raw or " " in raw):
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed

    day = parse_date(raw)
    if day is None:
        raise ValidationError(
            f"Invalid {field} value {raw!r}. Use YYYY-MM-DD or an ISO datetime.",
            details={field: raw},
        )
    return datetime.combine(day, time.max if end_of_day else time.min)


def parse_bool(value, default=None):
    """Interpret form/query booleans ("true", "false", "1", ...).

    Returns ``default`` for None/empty and for unrecognised strings.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    return default


def page_params(args, *, default_limit=20, max_limit=100):
    """Read ``page`` / ``limit`` from a query mapping.

    page  — 1-based, values below 1 become 1
    limit — clamped to [1, max_limit]; garbage falls back to default_limit

    Returns:
        (page, limit)
    """
    try:
        page = max(int(args.get("page", 1)), 1)
    except (ValueError, TypeError):
        page = 1
    try:
        limit = min(max(int(args.get("limit", default_limit)), 1), max_limit)
    except (ValueError, TypeError):
        limit = default_limit
    return page, limit


def paginate(stmt, page, limit):
    """Apply skip/limit pagination to a ``select()`` statement.

    The total is counted over the unordered statement in one extra query.

    Returns:
        (items_list, total_count)
    """
    total = db.session.execute(
        select(func.count()).select_from(stmt.order_by(None).subquery())
    ).scalar_one()
    items = db.session.execute(stmt.offset((page - 1) * limit).limit(limit)).scalars().all()
    return list(items), total


def page_count(total, limit):
    """Number of pages needed for ``total`` rows at ``limit`` per page."""
    return math.ceil(total / limit) if limit else 0


# ── Database commit helper ───────────────────────────────────────────────────

def commit_or_raise(resource="Record"):
    """Commit the current session, translating DB failures into service errors.

    IntegrityError   → ConflictError (duplicate / constraint violation)
    Other SQLAlchemy → StorageError
    The session is rolled back before raising.
    """
    from sqlalchemy.exc import IntegrityError, SQLAlchemyError

    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit (%s): %s", resource, exc.orig)
        raise ConflictError(resource, "unique", message=f"{resource} violates a uniqueness constraint") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Database error on commit (%s)", resource)
        raise StorageError(f"Failed to persist {resource.lower()}") from exc


def like_pattern(text):
    """Lower-cased ``%text%`` pattern with LIKE wildcards escaped (escape char ``\\``)."""
    escaped = (
        str(text).strip().lower()
        .replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )
    return f"%{escaped}%"
