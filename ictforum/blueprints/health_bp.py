"""
Health check blueprint.

Endpoints:
    GET /api/v1/health        — plain liveness ping
    GET /api/v1/health/ready  — simple 200 for load balancers
    GET /api/v1/health/live   — detailed system health (DB, blob store)
"""

import logging
import time

from flask import Blueprint, current_app, jsonify

from ictforum.core.exceptions import StorageError
from ictforum.models import db
from ictforum.services.blob_store import get_blob_store

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")


@health_bp.route("", methods=["GET"])
def health():
    return jsonify({"status": "OK", "message": "ICT Forum API is running"}), 200


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe — always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Detailed liveness check with dependency status."""
    checks = {}
    overall = True

    # ── Database ─────────────────────────────────────────────────────
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
        checks["database"] = {"status": "ok", "latency_ms": round(db_ms, 1)}
    except Exception as exc:
        checks["database"] = {"status": "error", "detail": str(exc)}
        overall = False
        logger.error("Health check — database failed: %s", exc)

    # ── Blob store ───────────────────────────────────────────────────
    try:
        get_blob_store().ping()
        checks["blob_store"] = {"status": "ok"}
    except StorageError as exc:
        checks["blob_store"] = {"status": "error", "detail": str(exc)}
        overall = False
        logger.error("Health check — blob store failed: %s", exc)

    checks["app"] = {
        "name": "ICT Forum API",
        "debug": current_app.debug,
        "testing": current_app.testing,
    }

    status = "healthy" if overall else "degraded"
    return jsonify({"status": status, "checks": checks}), 200 if overall else 503
