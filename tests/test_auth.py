"""
Tests — authentication and role guards.

Covers:
    - Password hashing (bcrypt)
    - JWT generation / verification / expiry
    - Register, login, logout, me
    - Admin role cannot be self-assigned
    - require_login / require_admin responses (401 / 403)
    - create-admin CLI command
"""

import jwt as pyjwt
import pytest

from ictforum.models.user import User
from ictforum.services import user_service
from ictforum.services.jwt_service import (
    decode_access_token,
    decode_token,
    generate_access_token,
    identity_from_token,
)
from ictforum.utils.crypto import hash_password, verify_password


def _register(client, **kw):
    payload = {"name": "Ram Bahadur", "email": "ram@example.com", "password": "secret123"}
    payload.update(kw)
    return client.post("/api/v1/auth/register", json=payload)


# ═════════════════════════════════════════════════════════════════════════════
# PASSWORDS & TOKENS
# ═════════════════════════════════════════════════════════════════════════════

class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret!", rounds=4)
        assert hashed != "s3cret!"
        assert verify_password("s3cret!", hashed)
        assert not verify_password("wrong", hashed)

    def test_verify_rejects_empty_and_garbage(self):
        assert not verify_password("", "")
        assert not verify_password("x", "not-a-bcrypt-hash")


class TestJWT:
    def test_roundtrip_claims(self):
        token = generate_access_token(42, "staff")
        payload = decode_access_token(token)
        assert payload["sub"] == "42"
        assert payload["role"] == "staff"
        assert payload["type"] == "access"

    def test_wrong_type_rejected(self):
        token = generate_access_token(1, "student")
        with pytest.raises(pyjwt.InvalidTokenError):
            decode_token(token, expected_type="refresh")

    def test_expired_token_rejected(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "JWT_ACCESS_EXPIRES", -10)
        token = generate_access_token(1, "student")
        with pytest.raises(pyjwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_identity_from_token(self):
        assert identity_from_token(generate_access_token(7, "teacher")) == (7, "teacher")
        with pytest.raises(pyjwt.InvalidTokenError):
            identity_from_token(generate_access_token("not-a-number", "student"))


# ═════════════════════════════════════════════════════════════════════════════
# AUTH API
# ═════════════════════════════════════════════════════════════════════════════

class TestRegister:
    def test_register_returns_user_and_token(self, client):
        res = _register(client, role="teacher", profile={"department": "Physics", "phone": "9800000000"})
        assert res.status_code == 201
        data = res.get_json()
        assert data["token"]
        assert data["user"]["email"] == "ram@example.com"
        assert data["user"]["role"] == "teacher"
        assert data["user"]["profile"] == {"department": "Physics", "phone": "9800000000"}
        assert "password" not in data["user"]
        assert "password_hash" not in data["user"]

    def test_email_is_normalised(self, client):
        res = _register(client, email="  Ram@Example.COM ")
        assert res.status_code == 201
        assert res.get_json()["user"]["email"] == "ram@example.com"

    def test_admin_role_cannot_be_self_assigned(self, client):
        res = _register(client, role="admin")
        assert res.status_code == 201
        assert res.get_json()["user"]["role"] == "student"

    def test_unknown_role_falls_back_to_student(self, client):
        res = _register(client, role="wizard")
        assert res.get_json()["user"]["role"] == "student"

    def test_missing_fields(self, client):
        res = client.post("/api/v1/auth/register", json={"email": "x@example.com"})
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_short_password(self, client):
        res = _register(client, password="123")
        assert res.status_code == 400

    def test_invalid_email(self, client):
        res = _register(client, email="not-an-email")
        assert res.status_code == 400

    def test_duplicate_email(self, client):
        assert _register(client).status_code == 201
        res = _register(client, email="RAM@example.com")
        assert res.status_code == 409
        assert res.get_json()["error"] == "Email already registered"


class TestLogin:
    def test_login_success(self, client):
        _register(client)
        res = client.post("/api/v1/auth/login", json={"email": "ram@example.com", "password": "secret123"})
        assert res.status_code == 200
        data = res.get_json()
        assert data["user"]["name"] == "Ram Bahadur"
        assert decode_access_token(data["token"])["sub"] == str(data["user"]["id"])

    def test_login_wrong_password(self, client):
        _register(client)
        res = client.post("/api/v1/auth/login", json={"email": "ram@example.com", "password": "nope"})
        assert res.status_code == 401
        assert res.get_json()["error"] == "Invalid credentials"

    def test_login_unknown_email(self, client):
        res = client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": "whatever"})
        assert res.status_code == 401


class TestMeAndLogout:
    def test_me(self, client, student_user, student_headers):
        res = client.get("/api/v1/auth/me", headers=student_headers)
        assert res.status_code == 200
        assert res.get_json()["user"]["id"] == student_user.id

    def test_me_without_token(self, client):
        res = client.get("/api/v1/auth/me")
        assert res.status_code == 401
        assert res.get_json()["error"] == "Unauthorized"

    def test_me_with_garbage_token(self, client):
        res = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
        assert res.status_code == 401
        assert res.get_json()["error"] == "Invalid or expired token"

    def test_me_with_expired_token(self, app, client, student_user, monkeypatch):
        monkeypatch.setitem(app.config, "JWT_ACCESS_EXPIRES", -10)
        token = generate_access_token(student_user.id, student_user.role)
        res = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401
        assert res.get_json()["error"] == "Invalid or expired token"

    def test_logout(self, client, student_headers):
        res = client.post("/api/v1/auth/logout", headers=student_headers)
        assert res.status_code == 200


# ═════════════════════════════════════════════════════════════════════════════
# ROLE GUARDS
# ═════════════════════════════════════════════════════════════════════════════

class TestAdminGuard:
    def test_no_token_is_401(self, client):
        res = client.get("/api/v1/admin/suggestions")
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_UNAUTHENTICATED"

    def test_non_admin_is_403(self, client, student_headers):
        res = client.get("/api/v1/admin/suggestions", headers=student_headers)
        assert res.status_code == 403
        body = res.get_json()
        assert body["code"] == "ERR_FORBIDDEN"
        assert body["details"]["required_any"] == ["admin"]

    def test_admin_allowed(self, client, admin_headers):
        res = client.get("/api/v1/admin/suggestions", headers=admin_headers)
        assert res.status_code == 200

    def test_admin_roles_are_configurable(self, app, client, student_headers, monkeypatch):
        monkeypatch.setitem(app.config, "ADMIN_ROLES", "admin,student")
        res = client.get("/api/v1/admin/suggestions", headers=student_headers)
        assert res.status_code == 200


# ═════════════════════════════════════════════════════════════════════════════
# CLI
# ═════════════════════════════════════════════════════════════════════════════

class TestCreateAdminCommand:
    def test_creates_admin(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "create-admin", "--email", "root@example.com", "--name", "Root User", "--password", "rootpass",
        ])
        assert result.exit_code == 0, result.output
        user = user_service.get_user_by_email("root@example.com")
        assert user is not None
        assert user.role == "admin"
        assert user_service.authenticate("root@example.com", "rootpass").id == user.id

    def test_promotes_existing_user(self, app, student_user):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "create-admin", "--email", "sita@example.com", "--password", "newpass1",
        ])
        assert result.exit_code == 0, result.output
        assert User.query.count() == 1
        assert user_service.get_user(student_user.id).role == "admin"
