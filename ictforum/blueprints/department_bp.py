"""
Department Blueprint — public department list and the admin registry.

Endpoints:
    GET    /api/v1/departments                              — active, by name (public)
    GET    /api/v1/admin/departments?q&isActive&page&limit  — all, paginated
    POST   /api/v1/admin/departments                        — create
    GET    /api/v1/admin/departments/<id>                   — single
    PUT    /api/v1/admin/departments/<id>                   — partial update
    DELETE /api/v1/admin/departments/<id>                   — hard delete (409 if referenced)
    POST   /api/v1/admin/departments/<id>/deactivate        — soft delete (idempotent)

Layer contract:
    - No ORM calls here — all DB work delegated to department_service.
    - Service exceptions propagate to the app-level error handlers.
"""

import logging

from flask import Blueprint, jsonify, request

from ictforum.blueprints import request_data, request_page
from ictforum.core.exceptions import ValidationError
from ictforum.middleware.permission_required import require_admin
from ictforum.services import department_service
from ictforum.utils.helpers import parse_bool

logger = logging.getLogger(__name__)

department_bp = Blueprint("departments", __name__, url_prefix="/api/v1")


@department_bp.route("/departments", methods=["GET"])
def list_public():
    departments = department_service.list_active_public()
    return jsonify({"departments": [d.to_dict() for d in departments]}), 200


@department_bp.route("/admin/departments", methods=["GET"])
@require_admin
def list_admin():
    page, limit = request_page(default_limit=20, max_limit=100)
    raw_active = request.args.get("isActive")
    active = parse_bool(raw_active)
    if raw_active not in (None, "") and active is None:
        raise ValidationError("isActive must be true or false", details={"isActive": raw_active})
    items, total = department_service.list_departments(
        active=active, q=request.args.get("q"), page=page, limit=limit,
    )
    return jsonify({
        "page": page,
        "limit": limit,
        "total": total,
        "departments": [d.to_dict() for d in items],
    }), 200


@department_bp.route("/admin/departments", methods=["POST"])
@require_admin
def create():
    data = request_data()
    dept = department_service.create_department(
        name=data.get("name"),
        description=data.get("description"),
        head=data.get("head"),
        email=data.get("email"),
        phone=data.get("phone"),
        is_active=data.get("isActive", True),
    )
    return jsonify({"department": dept.to_dict()}), 201


@department_bp.route("/admin/departments/<int:dept_id>", methods=["GET"])
@require_admin
def get(dept_id):
    return jsonify({"department": department_service.get_department(dept_id).to_dict()}), 200


@department_bp.route("/admin/departments/<int:dept_id>", methods=["PUT"])
@require_admin
def update(dept_id):
    data = request_data()
    fields = {k: data[k] for k in department_service.UPDATABLE_FIELDS if k in data}
    dept = department_service.update_department(dept_id, fields)
    return jsonify({"department": dept.to_dict()}), 200


@department_bp.route("/admin/departments/<int:dept_id>", methods=["DELETE"])
@require_admin
def delete(dept_id):
    department_service.delete_department(dept_id)
    return jsonify({"message": "Department deleted permanently"}), 200


@department_bp.route("/admin/departments/<int:dept_id>/deactivate", methods=["POST"])
@require_admin
def deactivate(dept_id):
    dept = department_service.deactivate_department(dept_id)
    return jsonify({"message": "Department deactivated", "department": dept.to_dict()}), 200
