"""
JWT Auth Middleware — Parses JWT from Authorization header, sets g.jwt_*.

Authentication is optional at this layer: requests without a token proceed
as guests (anonymous suggestions, public reads). Endpoints that need an
identity enforce it with the decorators in ``permission_required``.

Context set on every /api request:
    g.jwt_user_id  — int user id, or None
    g.jwt_role     — role string, or None
    g.jwt_error    — "expired" / "invalid" when a Bearer token was sent
                     but rejected, else None
"""

import logging

import jwt as pyjwt
from flask import g, request

from ictforum.services.jwt_service import identity_from_token

logger = logging.getLogger(__name__)

# Paths that skip JWT parsing entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/auth/login",
    "/api/v1/auth/register",
    "/api/v1/health",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.jwt_user_id = None
        g.jwt_role = None
        g.jwt_error = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return  # guest request

        token = auth_header[7:].strip()

        try:
            g.jwt_user_id, g.jwt_role = identity_from_token(token)
        except pyjwt.ExpiredSignatureError:
            g.jwt_error = "expired"
        except pyjwt.InvalidTokenError:
            g.jwt_error = "invalid"
            logger.debug("Rejected bearer token on %s", path)
