"""
JWT Service — bearer tokens for forum accounts.

One token kind only: the access token handed out by register and login.
There is no refresh flow and no server-side revocation; logging out means
the client forgets the token, which then lives until ``exp``.

Claims:
    sub   user id (string, as PyJWT expects)
    role  the account role at issue time; a later promotion needs a new login
    type  always "access"
    iat / exp / jti
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

ALGORITHM = "HS256"
TOKEN_TYPE = "access"
DEFAULT_ACCESS_EXPIRES = 7 * 24 * 3600


def _signing_key() -> str:
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def generate_access_token(user_id: int, role: str) -> str:
    issued = datetime.now(timezone.utc)
    lifetime = current_app.config.get("JWT_ACCESS_EXPIRES", DEFAULT_ACCESS_EXPIRES)
    claims = {
        "sub": str(user_id),
        "role": role,
        "type": TOKEN_TYPE,
        "iat": issued,
        "exp": issued + timedelta(seconds=lifetime),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, _signing_key(), algorithm=ALGORITHM)


def issue_for(user) -> str:
    """Token for a ``User`` row, carrying its current role."""
    return generate_access_token(user.id, user.role)


def decode_token(token: str, expected_type: str = TOKEN_TYPE) -> dict:
    """
    Verify signature and expiry, then the ``type`` claim.

    PyJWT errors propagate (``ExpiredSignatureError`` is a subclass of
    ``InvalidTokenError``); a wrong type is reported as ``InvalidTokenError``.
    """
    claims = jwt.decode(token, _signing_key(), algorithms=[ALGORITHM])
    if claims.get("type") != expected_type:
        raise jwt.InvalidTokenError(f"token type {claims.get('type')!r} is not {expected_type!r}")
    return claims


def decode_access_token(token: str) -> dict:
    return decode_token(token, expected_type=TOKEN_TYPE)


def identity_from_token(token: str) -> tuple[int, str | None]:
    """Return ``(user_id, role)``; a non-numeric subject is an invalid token."""
    claims = decode_access_token(token)
    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise jwt.InvalidTokenError("token subject is not a user id") from exc
    return user_id, claims.get("role")
