"""
Tests — shared helpers, error envelope, health endpoints, middleware headers.
"""

import json
import logging
from datetime import datetime

import pytest
from flask import g

from ictforum.core.exceptions import ValidationError
from ictforum.middleware.logging_config import JSONFormatter, RequestContextFilter
from ictforum.utils.helpers import (
    like_pattern,
    page_count,
    page_params,
    parse_bool,
    parse_date,
    parse_datetime_bound,
)


# ═════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═════════════════════════════════════════════════════════════════════════════

class TestParsing:
    def test_parse_bool(self):
        assert parse_bool("true") is True
        assert parse_bool("OFF") is False
        assert parse_bool(False) is False
        assert parse_bool(None) is None
        assert parse_bool("maybe") is None
        assert parse_bool("", default=True) is True

    def test_parse_date_formats(self):
        assert parse_date("2025-03-01").isoformat() == "2025-03-01"
        assert parse_date("01.03.2025").isoformat() == "2025-03-01"
        assert parse_date("2025-03-01T10:00:00").isoformat() == "2025-03-01"
        assert parse_date("garbage") is None

    def test_datetime_bounds(self):
        assert parse_datetime_bound("2025-03-01") == datetime(2025, 3, 1)
        upper = parse_datetime_bound("2025-03-31", end_of_day=True)
        assert (upper.date().isoformat(), upper.hour, upper.minute) == ("2025-03-31", 23, 59)
        assert parse_datetime_bound("2025-03-01T05:45:00+05:45") == datetime(2025, 3, 1)
        assert parse_datetime_bound(None) is None
        with pytest.raises(ValidationError):
            parse_datetime_bound("31/31/2025", field="to")

    def test_page_params(self):
        assert page_params({}, default_limit=10, max_limit=50) == (1, 10)
        assert page_params({"page": "3", "limit": "500"}, default_limit=10, max_limit=50) == (3, 50)
        assert page_params({"page": "0", "limit": "0"}, default_limit=10, max_limit=50) == (1, 1)
        assert page_params({"page": "x", "limit": "y"}, default_limit=10, max_limit=50) == (1, 10)

    def test_page_count(self):
        assert page_count(0, 10) == 0
        assert page_count(11, 10) == 2

    def test_like_pattern_escapes_wildcards(self):
        assert like_pattern(" 50%_OFF ") == "%50\\%\\_off%"


# ═════════════════════════════════════════════════════════════════════════════
# HTTP SURFACE
# ═════════════════════════════════════════════════════════════════════════════

class TestHealth:
    def test_ping(self, client):
        res = client.get("/api/v1/health")
        assert res.status_code == 200
        assert res.get_json()["status"] == "OK"

    def test_ready(self, client):
        assert client.get("/api/v1/health/ready").get_json() == {"status": "ok"}

    def test_live_healthy(self, client):
        res = client.get("/api/v1/health/live")
        assert res.status_code == 200
        data = res.get_json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"]["status"] == "ok"
        assert data["checks"]["blob_store"]["status"] == "ok"

    def test_live_degraded_when_blob_store_down(self, client, blob_store):
        blob_store.fail_ping = True
        res = client.get("/api/v1/health/live")
        assert res.status_code == 503
        assert res.get_json()["checks"]["blob_store"]["status"] == "error"


class TestErrorEnvelope:
    def test_unknown_api_path(self, client):
        res = client.get("/api/v1/nothing-here")
        assert res.status_code == 404
        body = res.get_json()
        assert body["code"] == "ERR_NOT_FOUND"
        assert body["details"] == {"path": "/api/v1/nothing-here"}

    def test_method_not_allowed(self, client):
        assert client.delete("/api/v1/departments").status_code == 405


class TestMiddleware:
    def test_request_id_and_timing_headers(self, client):
        res = client.get("/api/v1/departments", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"
        assert "X-Request-Duration-Ms" in res.headers

    def test_security_headers(self, client):
        res = client.get("/api/v1/departments")
        assert res.headers["X-Content-Type-Options"] == "nosniff"


class TestLogging:
    def test_json_formatter_keeps_context_fields(self):
        record = logging.LogRecord("ictforum.test", logging.INFO, __file__, 1, "hello %s", ("forum",), None)
        record.request_id = "req-1"
        record.suggestion_id = "abc"
        line = json.loads(JSONFormatter().format(record))
        assert line["msg"] == "hello forum"
        assert line["request_id"] == "req-1"
        assert line["suggestion_id"] == "abc"
        assert "user_id" not in line

    def test_filter_stamps_request_context(self, app):
        record = logging.LogRecord("ictforum.test", logging.INFO, __file__, 1, "x", (), None)
        with app.test_request_context("/api/v1/departments"):
            g.request_id = "req-2"
            g.jwt_user_id = 5
            assert RequestContextFilter().filter(record) is True
        assert (record.request_id, record.user_id) == ("req-2", 5)
