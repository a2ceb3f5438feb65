"""
Suggestion Blueprint — the suggestion box and its admin triage surface.

Endpoints:
    POST   /api/v1/suggestions                 — submit (multipart or JSON; files under "media")
    GET    /api/v1/suggestions/my              — caller's own suggestions (login)
    GET    /api/v1/suggestions/track/<id>      — minimal status view (public)
    GET    /api/v1/public/resolved             — resolved suggestions, paginated (public)
    GET    /api/v1/admin/suggestions           — filtered listing (admin)
    GET    /api/v1/admin/suggestions/<id>      — single record (admin)
    PATCH  /api/v1/admin/suggestions/<id>      — triage update (admin)
    DELETE /api/v1/admin/suggestions/<id>      — delete record and media (admin)

Every suggestion in a response is projected by suggestion_visibility.
"""

import logging

from flask import Blueprint, jsonify, request

from ictforum.blueprints import request_data, request_page
from ictforum.core.exceptions import ValidationError
from ictforum.middleware.permission_required import current_user_id, require_admin, require_login
from ictforum.services import suggestion_service
from ictforum.services.suggestion_visibility import to_public_list, to_public_view
from ictforum.utils.helpers import parse_bool

logger = logging.getLogger(__name__)

suggestion_bp = Blueprint("suggestions", __name__, url_prefix="/api/v1")


def _anonymous_flag(value) -> bool:
    """Anonymous unless the client explicitly says otherwise."""
    if value is None or value == "":
        return True
    flag = parse_bool(value)
    if flag is None:
        raise ValidationError("anonymous must be true or false", details={"anonymous": value})
    return flag


@suggestion_bp.route("/suggestions", methods=["POST"])
def submit():
    data = request_data()
    files = [f for f in request.files.getlist("media") if f and f.filename]
    suggestion = suggestion_service.submit(
        category=data.get("category"),
        description=data.get("description"),
        anonymous=_anonymous_flag(data.get("anonymous")),
        submitter_id=current_user_id(),
        assigned_department=data.get("assignedDepartment"),
        action_taken=data.get("actionTaken"),
        files=files,
    )
    return jsonify({"suggestion": to_public_view(suggestion)}), 201


@suggestion_bp.route("/suggestions/my", methods=["GET"])
@require_login
def my_suggestions():
    items = suggestion_service.list_for_submitter(current_user_id())
    return jsonify({"suggestions": to_public_list(items)}), 200


@suggestion_bp.route("/suggestions/track/<suggestion_id>", methods=["GET"])
def track(suggestion_id):
    return jsonify({"suggestion": suggestion_service.track_public(suggestion_id)}), 200


@suggestion_bp.route("/public/resolved", methods=["GET"])
def resolved():
    page, limit = request_page(default_limit=10, max_limit=100)
    items, total = suggestion_service.list_resolved_public(page, limit)
    return jsonify({
        "page": page,
        "limit": limit,
        "total": total,
        "suggestions": to_public_list(items),
    }), 200


@suggestion_bp.route("/admin/suggestions", methods=["GET"])
@require_admin
def list_admin():
    page, limit = request_page(default_limit=20, max_limit=200)
    args = request.args
    items, total = suggestion_service.list_admin(
        category=args.get("category"),
        status=args.get("status"),
        assigned_department=args.get("assignedDepartment"),
        q=args.get("q"),
        date_from=args.get("from"),
        date_to=args.get("to"),
        page=page,
        limit=limit,
    )
    return jsonify({
        "page": page,
        "limit": limit,
        "total": total,
        "suggestions": to_public_list(items),
    }), 200


@suggestion_bp.route("/admin/suggestions/<suggestion_id>", methods=["GET"])
@require_admin
def get(suggestion_id):
    return jsonify({"suggestion": to_public_view(suggestion_service.get(suggestion_id))}), 200


@suggestion_bp.route("/admin/suggestions/<suggestion_id>", methods=["PATCH"])
@require_admin
def update(suggestion_id):
    data = request_data()
    fields = {k: data[k] for k in suggestion_service.UPDATABLE_FIELDS if k in data}
    suggestion = suggestion_service.update_fields(suggestion_id, fields)
    return jsonify({"suggestion": to_public_view(suggestion)}), 200


@suggestion_bp.route("/admin/suggestions/<suggestion_id>", methods=["DELETE"])
@require_admin
def delete(suggestion_id):
    suggestion_service.delete(suggestion_id)
    return jsonify({"message": "Deleted"}), 200
