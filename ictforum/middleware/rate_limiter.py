"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in ictforum/__init__.py with no default
limits; this module applies granular limits per route category.

Usage:
    from ictforum.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

# Credential endpoints: brute-force protection
AUTH_LIMIT = "20/minute"

# Public write endpoints (suggestion box, comments, likes, applications)
PUBLIC_WRITE_LIMIT = "30/minute"

# Everything else under /api
DEFAULT_API_LIMIT = "200/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - auth:                       20/minute
        - suggestions/posts/members:  30/minute
        - admin + read blueprints:    200/minute
        - health, uploads:            exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    bp = app.blueprints.get("auth")
    if bp:
        limiter.limit(AUTH_LIMIT)(bp)

    for bp_name in ("suggestions", "posts", "members"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(PUBLIC_WRITE_LIMIT, methods=["POST", "PUT", "PATCH"])(bp)

    for bp_name in ("departments", "reports"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(DEFAULT_API_LIMIT)(bp)

    for bp_name in ("health", "uploads"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured — auth: %s, public writes: %s, default: %s",
        AUTH_LIMIT, PUBLIC_WRITE_LIMIT, DEFAULT_API_LIMIT,
    )
