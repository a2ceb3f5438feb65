"""
Report Service — suggestion summary for the admin dashboard.

    byStatus / byCategory / byDepartment   [{"_id": key, "count": n}, ...]
    monthly                                last 12 calendar months incl. the
                                           current one, [{year, month, count}]
                                           ascending; empty months omitted
    departmentStats                        {total, active}
    actionStats                            {withAction, withoutAction}
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import case, extract, func, select

from ictforum.models import db
from ictforum.models.department import Department
from ictforum.models.suggestion import Suggestion

logger = logging.getLogger(__name__)

MONTHS_BACK = 12


def _group_counts(column, *criteria) -> list[dict]:
    stmt = select(column, func.count(Suggestion.id)).group_by(column).order_by(column)
    for criterion in criteria:
        stmt = stmt.where(criterion)
    return [{"_id": key, "count": count} for key, count in db.session.execute(stmt).all()]


def _window_start(now: datetime) -> datetime:
    """First instant of the month ``MONTHS_BACK - 1`` months before ``now``."""
    month_index = now.year * 12 + (now.month - 1) - (MONTHS_BACK - 1)
    return datetime(month_index // 12, month_index % 12 + 1, 1)


def monthly_counts(now: datetime | None = None) -> list[dict]:
    now = now or datetime.now(timezone.utc).replace(tzinfo=None)
    year = extract("year", Suggestion.created_at)
    month = extract("month", Suggestion.created_at)
    stmt = (
        select(year, month, func.count(Suggestion.id))
        .where(Suggestion.created_at >= _window_start(now))
        .group_by(year, month)
        .order_by(year, month)
    )
    return [
        {"year": int(y), "month": int(m), "count": count}
        for y, m, count in db.session.execute(stmt).all()
    ]


def department_stats() -> dict:
    total, active = db.session.execute(
        select(
            func.count(Department.id),
            func.coalesce(func.sum(case((Department.is_active.is_(True), 1), else_=0)), 0),
        )
    ).one()
    return {"total": total, "active": int(active)}


def action_stats() -> dict:
    with_action, without_action = db.session.execute(
        select(
            func.coalesce(func.sum(case((Suggestion.action_taken.is_not(None), 1), else_=0)), 0),
            func.coalesce(func.sum(case((Suggestion.action_taken.is_(None), 1), else_=0)), 0),
        )
    ).one()
    return {"withAction": int(with_action), "withoutAction": int(without_action)}


def build_summary(now: datetime | None = None) -> dict:
    """Assemble the admin report. ``now`` is injectable for tests."""
    summary = {
        "byStatus": _group_counts(Suggestion.status),
        "byCategory": _group_counts(Suggestion.category),
        "byDepartment": _group_counts(
            Suggestion.assigned_department, Suggestion.assigned_department.is_not(None),
        ),
        "monthly": monthly_counts(now),
        "departmentStats": department_stats(),
        "actionStats": action_stats(),
    }
    logger.debug("Built suggestion summary: %d status buckets", len(summary["byStatus"]))
    return summary
