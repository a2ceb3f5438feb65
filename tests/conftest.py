"""
Shared pytest fixtures for the ICT Forum backend test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - blob_store: in-memory blob store installed on the app, reset per test
    - client: Flask test client (function-scoped)
    - admin_user / admin_headers: admin account and its bearer header
    - student_user / student_headers: self-registered account and its header
"""

import itertools

import pytest

from ictforum import create_app
from ictforum.core.exceptions import StorageError
from ictforum.models import db as _db
from ictforum.services.blob_store import BlobStore, StoredBlob
from ictforum.services.jwt_service import generate_access_token


class FakeBlobStore(BlobStore):
    """Keeps blobs in a dict; failures are switched on per test."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.blobs = {}
        self.deleted = []
        self.fail_put_after = None   # number of puts that succeed before failing
        self.fail_delete = False
        self.fail_ping = False
        self._seq = itertools.count(1)
        self._puts = 0

    def put(self, stream, filename, content_type, folder=""):
        if self.fail_put_after is not None and self._puts >= self.fail_put_after:
            raise StorageError("simulated upload failure")
        self._puts += 1
        data = stream.read()
        key = f"{folder}/{next(self._seq)}-{filename}"
        self.blobs[key] = data
        return StoredBlob(key=key, url=f"http://testserver/uploads/{key}", size=len(data))

    def delete(self, key):
        if self.fail_delete:
            raise StorageError("simulated delete failure")
        self.blobs.pop(key, None)
        self.deleted.append(key)

    def ping(self):
        if self.fail_ping:
            raise StorageError("blob store offline")


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    application.extensions["blob_store"] = FakeBlobStore()
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    app.extensions["blob_store"].reset()
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def blob_store(app):
    return app.extensions["blob_store"]


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


def bearer(user):
    return {"Authorization": f"Bearer {generate_access_token(user.id, user.role)}"}


@pytest.fixture()
def admin_user():
    from ictforum.services.user_service import ensure_admin
    user, _ = ensure_admin(email="admin@example.com", name="Forum Admin", password="admin-pass")
    return user


@pytest.fixture()
def admin_headers(admin_user):
    return bearer(admin_user)


@pytest.fixture()
def student_user():
    from ictforum.services.user_service import register_user
    return register_user(
        name="Sita Student", email="sita@example.com", password="student-pass", role="student",
    )


@pytest.fixture()
def student_headers(student_user):
    return bearer(student_user)


@pytest.fixture()
def departments():
    """Two active departments and one inactive one."""
    from ictforum.services.department_service import create_department
    return {
        "library": create_department("Library", description="Books and reading rooms"),
        "it": create_department("IT Services", head="R. Shrestha"),
        "old": create_department("Old Hostel Office", is_active=False),
    }
