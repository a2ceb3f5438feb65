"""
Permission Decorators — JWT-aware role checks for route protection.

Relies on ``jwt_auth`` having populated g.jwt_user_id / g.jwt_role.

Usage:
    @bp.route("/api/v1/suggestions/my", methods=["GET"])
    @require_login
    def my_suggestions():
        ...

    @bp.route("/api/v1/admin/suggestions", methods=["GET"])
    @require_admin
    def list_admin():
        ...

The admin-equivalent role set comes from the ADMIN_ROLES config value.
"""

import functools
import logging

from flask import current_app, g, request

from ictforum.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def admin_roles() -> frozenset[str]:
    """Return the configured admin-equivalent role names."""
    raw = current_app.config.get("ADMIN_ROLES", "admin")
    if isinstance(raw, (set, frozenset, list, tuple)):
        return frozenset(raw)
    return frozenset(r.strip() for r in str(raw).split(",") if r.strip())


def current_user_id() -> int | None:
    return getattr(g, "jwt_user_id", None)


def current_role() -> str | None:
    return getattr(g, "jwt_role", None)


def is_admin() -> bool:
    """True when the request carries a valid token with an admin-equivalent role."""
    return current_user_id() is not None and current_role() in admin_roles()


def _unauthenticated():
    reason = getattr(g, "jwt_error", None)
    if reason:
        return api_error(E.UNAUTHENTICATED, "Invalid or expired token")
    return api_error(E.UNAUTHENTICATED, "Unauthorized")


def require_login(f):
    """Decorator: require a valid bearer token."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if current_user_id() is None:
            return _unauthenticated()
        return f(*args, **kwargs)
    return decorated


def _check_roles(allowed: frozenset[str], endpoint: str):
    if current_user_id() is None:
        return _unauthenticated()
    role = current_role()
    if role not in allowed:
        logger.warning(
            "Access denied: role '%s' tried to access %s (%s)",
            role, request.path, endpoint,
        )
        return api_error(E.FORBIDDEN, "Forbidden", details={"required_any": sorted(allowed)})
    return None


def require_admin(f):
    """Decorator: require an admin-equivalent role (ADMIN_ROLES)."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        err = _check_roles(admin_roles(), f.__name__)
        if err:
            return err
        return f(*args, **kwargs)
    return decorated
