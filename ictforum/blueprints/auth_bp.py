"""
Auth Blueprint — account registration and JWT sign-in.

  POST /api/v1/auth/register    — create account → {user, token}
  POST /api/v1/auth/login       — email + password → {user, token}
  POST /api/v1/auth/logout      — stateless; client discards the token
  GET  /api/v1/auth/me          — current user profile
"""

from flask import Blueprint, jsonify

from ictforum.blueprints import request_data
from ictforum.middleware.permission_required import current_user_id, require_login
from ictforum.services import user_service
from ictforum.services.jwt_service import issue_for

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@auth_bp.route("/register", methods=["POST"])
def register():
    """
    Body: { "name": "...", "email": "...", "password": "...", "role": "student",
            "profile": {"department": "...", "phone": "..."} }
    """
    data = request_data()
    profile = data.get("profile") if isinstance(data.get("profile"), dict) else {}
    user = user_service.register_user(
        name=data.get("name"),
        email=data.get("email"),
        password=data.get("password"),
        role=data.get("role"),
        department=profile.get("department"),
        phone=profile.get("phone"),
    )
    token = issue_for(user)
    return jsonify({"user": user.to_dict(), "token": token}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    """Body: { "email": "...", "password": "..." }"""
    data = request_data()
    user = user_service.authenticate(data.get("email", ""), data.get("password", ""))
    token = issue_for(user)
    return jsonify({"user": user.to_dict(), "token": token}), 200


@auth_bp.route("/logout", methods=["POST"])
@require_login
def logout():
    return jsonify({"message": "Logged out (client should discard token)"}), 200


@auth_bp.route("/me", methods=["GET"])
@require_login
def me():
    user = user_service.get_user(current_user_id())
    return jsonify({"user": user.to_dict()}), 200
