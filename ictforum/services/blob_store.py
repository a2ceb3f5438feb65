"""
Blob Store — where uploaded media and documents live.

Interface:
    put(stream, filename, content_type, folder) -> StoredBlob(key, url, size)
    delete(key)
Both raise StorageError on failure.

The active store is ``app.extensions["blob_store"]``; ``create_app`` installs
a ``LocalBlobStore`` rooted at UPLOAD_FOLDER whose files are served by the
uploads blueprint at ``/uploads/<key>``. Tests install their own store.
"""

import logging
import os
import shutil
import uuid
from dataclasses import dataclass

from flask import current_app, has_request_context, request
from werkzeug.utils import secure_filename

from ictforum.core.exceptions import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredBlob:
    key: str
    url: str
    size: int


class BlobStore:
    """Base class for blob stores."""

    def put(self, stream, filename: str, content_type: str, folder: str = "") -> StoredBlob:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def ping(self) -> None:
        """Raise StorageError when the store is unusable. Used by health checks."""


def public_url(key: str, base_url: str = "") -> str:
    """Absolute URL for a stored key under ``/uploads/``.

    Uses ``base_url`` when configured, else the current request's host, else
    a root-relative path.
    """
    if base_url:
        return f"{base_url.rstrip('/')}/uploads/{key}"
    if has_request_context():
        return f"{request.host_url.rstrip('/')}/uploads/{key}"
    return f"/uploads/{key}"


class LocalBlobStore(BlobStore):
    """Stores blobs as files under ``root``; keys are ``<folder>/<hex>-<name>``."""

    def __init__(self, root: str, base_url: str = ""):
        self.root = os.path.abspath(root)
        self.base_url = base_url

    def _path(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self.root, key))
        if os.path.commonpath([self.root, path]) != self.root:
            raise StorageError(f"Invalid blob key {key!r}")
        return path

    def put(self, stream, filename, content_type, folder=""):
        safe_name = secure_filename(filename or "") or "upload"
        key = f"{uuid.uuid4().hex}-{safe_name}"
        if folder:
            key = f"{secure_filename(folder) or 'misc'}/{key}"
        path = self._path(key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as fh:
                shutil.copyfileobj(stream, fh)
            size = os.path.getsize(path)
        except OSError as exc:
            logger.error("Blob write failed for %s: %s", key, exc)
            raise StorageError("Failed to store uploaded file") from exc
        logger.info("Stored blob %s (%s, %d bytes)", key, content_type, size)
        return StoredBlob(key=key, url=public_url(key, self.base_url), size=size)

    def delete(self, key):
        path = self._path(key)
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug("Blob %s already gone", key)
        except OSError as exc:
            raise StorageError(f"Failed to delete blob {key}") from exc

    def ping(self):
        try:
            os.makedirs(self.root, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Upload folder unavailable: {exc}") from exc
        if not os.access(self.root, os.W_OK):
            raise StorageError("Upload folder is not writable")


def get_blob_store() -> BlobStore:
    """Return the blob store installed on the current app."""
    return current_app.extensions["blob_store"]


def delete_quietly(key: str | None, store: BlobStore | None = None) -> bool:
    """Best-effort delete: failures are logged at WARNING and never raised.

    Returns True when the delete call succeeded.
    """
    if not key:
        return False
    store = store or get_blob_store()
    try:
        store.delete(key)
        return True
    except StorageError as exc:
        logger.warning("Could not delete blob %s: %s", key, exc)
        return False
