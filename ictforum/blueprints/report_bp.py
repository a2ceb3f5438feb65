"""
Report Blueprint — admin analytics.

    GET /api/v1/admin/reports/summary — suggestion counts by status, category,
                                        department and month, plus department
                                        and action-taken statistics
"""

from flask import Blueprint, jsonify

from ictforum.middleware.permission_required import require_admin
from ictforum.services import report_service

report_bp = Blueprint("reports", __name__, url_prefix="/api/v1/admin/reports")


@report_bp.route("/summary", methods=["GET"])
@require_admin
def summary():
    return jsonify(report_service.build_summary()), 200
