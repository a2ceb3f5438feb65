"""
Post Blueprint — bilingual blog.

Endpoints:
    GET    /api/v1/posts                  — published posts (language, sort, search, filters)
    GET    /api/v1/posts/admin            — all posts incl. drafts, both languages (admin)
    GET    /api/v1/posts/stats            — dashboard counters (admin)
    GET    /api/v1/posts/<id>             — single post; increments views
    POST   /api/v1/posts                  — create (admin; JSON or multipart with "image")
    PUT    /api/v1/posts/<id>             — update (admin)
    DELETE /api/v1/posts/<id>             — delete (admin)
    PUT    /api/v1/posts/<id>/like        — toggle like
    POST   /api/v1/posts/<id>/comments    — add comment
"""

import logging

from flask import Blueprint, jsonify, request

from ictforum.blueprints import request_data, request_file, request_page
from ictforum.middleware.permission_required import current_user_id, is_admin, require_admin
from ictforum.services import post_service
from ictforum.utils.helpers import page_count

logger = logging.getLogger(__name__)

post_bp = Blueprint("posts", __name__, url_prefix="/api/v1/posts")


def _listing(items, total, page, limit, serialize):
    return {
        "success": True,
        "count": len(items),
        "total": total,
        "pagination": {"page": page, "limit": limit, "pages": page_count(total, limit)},
        "data": [serialize(p) for p in items],
    }


@post_bp.route("", methods=["GET"])
def list_posts():
    args = request.args
    language = post_service.validate_language(args.get("language"))
    page, limit = request_page(default_limit=10, max_limit=100)
    items, total = post_service.list_posts(
        page=page,
        limit=limit,
        category=args.get("category"),
        featured=args.get("featured"),
        search=args.get("search"),
        sort=args.get("sort"),
    )
    return jsonify(_listing(items, total, page, limit, lambda p: p.to_dict(language))), 200


@post_bp.route("/admin", methods=["GET"])
@require_admin
def list_admin():
    args = request.args
    page, limit = request_page(default_limit=12, max_limit=100)
    items, total = post_service.list_posts(
        page=page,
        limit=limit,
        category=args.get("category"),
        featured=args.get("featured"),
        search=args.get("search"),
        sort=args.get("sort"),
        include_drafts=True,
    )
    return jsonify(_listing(items, total, page, limit, lambda p: p.to_admin_dict())), 200


@post_bp.route("/stats", methods=["GET"])
@require_admin
def stats():
    return jsonify({"success": True, "data": post_service.stats()}), 200


@post_bp.route("/<int:post_id>", methods=["GET"])
def get_post(post_id):
    language = post_service.validate_language(request.args.get("language"))
    post = post_service.view_post(post_id, include_drafts=is_admin())
    data = post.to_dict(language)
    data["comments"] = [c.to_dict() for c in post.comments]
    return jsonify({"success": True, "data": data}), 200


@post_bp.route("", methods=["POST"])
@require_admin
def create_post():
    post = post_service.create_post(
        request_data(), image=request_file("image"), author_id=current_user_id(),
    )
    return jsonify({
        "success": True,
        "message": "Post created successfully",
        "data": post.to_admin_dict(),
    }), 201


@post_bp.route("/<int:post_id>", methods=["PUT"])
@require_admin
def update_post(post_id):
    post = post_service.update_post(post_id, request_data(), image=request_file("image"))
    return jsonify({
        "success": True,
        "message": "Post updated successfully",
        "data": post.to_admin_dict(),
    }), 200


@post_bp.route("/<int:post_id>", methods=["DELETE"])
@require_admin
def delete_post(post_id):
    post_service.delete_post(post_id)
    return jsonify({"success": True, "message": "Post deleted successfully"}), 200


@post_bp.route("/<int:post_id>/like", methods=["PUT"])
def like_post(post_id):
    liker = current_user_id()
    if liker is None:
        liker = request_data().get("userId")
    liked, count = post_service.toggle_like(post_id, liker)
    return jsonify({
        "success": True,
        "message": "Post liked" if liked else "Post unliked",
        "likes": count,
    }), 200


@post_bp.route("/<int:post_id>/comments", methods=["POST"])
def add_comment(post_id):
    data = request_data()
    comment = post_service.add_comment(
        post_id,
        text=data.get("text"),
        user_name=data.get("userName"),
        user_id=current_user_id(),
    )
    return jsonify({
        "success": True,
        "message": "Comment added successfully",
        "data": comment.to_dict(),
    }), 201
