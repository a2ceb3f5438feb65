"""
Uploads blueprint — serves blobs written by the local blob store.

    GET /uploads/<key>

Only meaningful for ``LocalBlobStore``; other stores hand out their own URLs.
"""

from flask import Blueprint, abort, send_from_directory

from ictforum.services.blob_store import LocalBlobStore, get_blob_store

uploads_bp = Blueprint("uploads", __name__)


@uploads_bp.route("/uploads/<path:key>", methods=["GET"])
def serve_upload(key):
    store = get_blob_store()
    if not isinstance(store, LocalBlobStore):
        abort(404)
    return send_from_directory(store.root, key)
