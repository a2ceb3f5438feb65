"""
Member Blueprint — ICT Forum membership applications.

Endpoints:
    POST   /api/v1/members                 — submit application (public, multipart or JSON)
    GET    /api/v1/members                 — list (admin; status, membershipLevel, province, search)
    GET    /api/v1/members/stats           — counts per status, level, province (admin)
    GET    /api/v1/members/<id>            — single application (admin)
    PUT    /api/v1/members/<id>/status     — approve / reject (admin)
    PUT    /api/v1/members/<id>            — update sections (admin)
    DELETE /api/v1/members/<id>            — delete with documents (admin)
"""

import logging

from flask import Blueprint, jsonify, request

from ictforum.blueprints import request_data, request_file, request_page
from ictforum.middleware.permission_required import require_admin
from ictforum.models.member import DOCUMENT_FIELDS
from ictforum.services import member_service
from ictforum.utils.helpers import page_count

logger = logging.getLogger(__name__)

member_bp = Blueprint("members", __name__, url_prefix="/api/v1/members")


@member_bp.route("", methods=["POST"])
def create_member():
    data = request_data()
    sections = {
        key: member_service.parse_section(data.get(key), key)
        for key in member_service.SECTIONS
    }
    documents = {field: request_file(field) for field in DOCUMENT_FIELDS}
    member = member_service.create_application(sections, documents)
    return jsonify({
        "success": True,
        "message": "Member application submitted successfully",
        "data": member.to_dict(),
    }), 201


@member_bp.route("", methods=["GET"])
@require_admin
def list_members():
    page, limit = request_page(default_limit=10, max_limit=100)
    args = request.args
    items, total = member_service.list_applications(
        page=page,
        limit=limit,
        status=args.get("status"),
        membership_level=args.get("membershipLevel"),
        province=args.get("province"),
        search=args.get("search"),
    )
    pages = page_count(total, limit)
    return jsonify({
        "success": True,
        "data": [m.to_dict() for m in items],
        "pagination": {
            "currentPage": page,
            "totalPages": pages,
            "totalMembers": total,
            "hasNext": page < pages,
            "hasPrev": page > 1,
        },
    }), 200


@member_bp.route("/stats", methods=["GET"])
@require_admin
def member_stats():
    return jsonify({"success": True, "data": member_service.stats()}), 200


@member_bp.route("/<int:member_id>", methods=["GET"])
@require_admin
def get_member(member_id):
    member = member_service.get_application(member_id)
    return jsonify({"success": True, "data": member.to_dict()}), 200


@member_bp.route("/<int:member_id>/status", methods=["PUT"])
@require_admin
def update_member_status(member_id):
    status = request_data().get("status")
    member = member_service.update_status(member_id, status)
    return jsonify({
        "success": True,
        "message": f"Member application {status} successfully",
        "data": member.to_dict(),
    }), 200


@member_bp.route("/<int:member_id>", methods=["PUT"])
@require_admin
def update_member(member_id):
    member = member_service.update_application(member_id, request_data())
    return jsonify({
        "success": True,
        "message": "Member updated successfully",
        "data": member.to_dict(),
    }), 200


@member_bp.route("/<int:member_id>", methods=["DELETE"])
@require_admin
def delete_member(member_id):
    member_service.delete_application(member_id)
    return jsonify({"success": True, "message": "Member deleted successfully"}), 200
