"""
Tests for error handling middleware.

Tests:
- Secret scrubbing in messages
- Exception classification
- Envelope and flat admin bodies
- Handlers and the outer ASGI safety net
"""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError, RedisError
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from core.exceptions import (
    AdminError,
    ConflictError,
    ExternalServiceError,
    FeatureDisabled,
    NotFoundError,
    ValidationFailed,
)
from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    ErrorInfo,
    build_error_response,
    classify_exception,
    format_validation_errors,
    sanitize_error_message,
    setup_error_handlers,
)


class TestSensitiveDataSanitization:
    """Secrets never reach the client or the logs."""

    @pytest.mark.parametrize("message", [
        'password="hunter2"',
        "access_token: abc123",
        "api_key=sk_live_12345",
        "api-key=sk_live_12345",
        "client secret=s3cr3t",
        "Authorization: Bearer",
    ])
    def test_redacts_credentials(self, message):
        assert "[REDACTED]" in sanitize_error_message(message)

    def test_redacts_bare_jwt(self):
        message = "bad token eyJhbGciOi.eyJzdWIiOi.c2lnbmF0dXJl in request"

        sanitized = sanitize_error_message(message)

        assert "eyJ" not in sanitized
        assert sanitized.startswith("bad [REDACTED]")

    @pytest.mark.parametrize("message", [
        "Candidate not found",
        "Job is closed",
        "count=12345",
    ])
    def test_safe_messages_unchanged(self, message):
        assert sanitize_error_message(message) == message

    def test_non_string_input(self):
        assert sanitize_error_message(404) == "404"


class TestClassifyException:
    """Each exception maps to a fixed status and code."""

    @pytest.mark.parametrize("exc,status_code,code", [
        (NotFoundError("Candidate not found"), 404, "NOT_FOUND"),
        (ConflictError("Email already registered"), 409, "CONFLICT"),
        (ValidationFailed("Job is closed"), 400, "VALIDATION_FAILED"),
        (FeatureDisabled("Search is disabled"), 404, "FEATURE_DISABLED"),
        (ExternalServiceError("Auth backend unavailable"), 502, "EXTERNAL_SERVICE_ERROR"),
    ])
    def test_domain_errors(self, exc, status_code, code):
        info = classify_exception(exc)

        assert info.status_code == status_code
        assert info.code == code
        assert info.message == exc.message
        assert info.envelope is True

    def test_admin_error_is_flat(self):
        info = classify_exception(AdminError("Forbidden: Admins only", status_code=403))

        assert info.status_code == 403
        assert info.envelope is False

    def test_default_message_from_docstring(self):
        assert classify_exception(NotFoundError()).message == "Resource not found."

    def test_http_exception(self):
        info = classify_exception(HTTPException(status_code=418, detail="teapot"))

        assert info.status_code == 418
        assert info.code == "HTTP_EXCEPTION"
        assert info.message == "teapot"

    def test_integrity_error(self):
        exc = IntegrityError("INSERT INTO candidates", {}, Exception("duplicate key"))
        info = classify_exception(exc)

        assert info.status_code == 409
        assert info.code == "INTEGRITY_ERROR"
        assert "duplicate" not in info.message

    def test_operational_error(self):
        exc = OperationalError("SELECT 1", {}, Exception("connection refused"))
        info = classify_exception(exc)

        assert info.status_code == 503
        assert info.message == "Database service temporarily unavailable"

    def test_generic_database_error(self):
        info = classify_exception(SQLAlchemyError("boom"))

        assert info.status_code == 500
        assert info.code == "DATABASE_ERROR"

    def test_redis_errors(self):
        assert classify_exception(RedisConnectionError("down")).status_code == 503
        assert classify_exception(RedisError("oops")).code == "CACHE_ERROR"

    def test_builtin_errors(self):
        assert classify_exception(ValueError("bad stage")).status_code == 400
        assert classify_exception(ValueError("bad stage")).message == "bad stage"
        assert classify_exception(PermissionError()).status_code == 403
        assert classify_exception(TimeoutError()).status_code == 504

    def test_unknown_error_hides_details(self):
        info = classify_exception(RuntimeError("password=hunter2"))

        assert info.status_code == 500
        assert info.code == "INTERNAL_SERVER_ERROR"
        assert info.message == "An unexpected error occurred"
        assert info.details is None

    def test_debug_details_are_scrubbed(self):
        info = classify_exception(RuntimeError("password=hunter2"), debug=True)

        assert info.details["type"] == "RuntimeError"
        assert "hunter2" not in info.details["message"]


class TestValidationErrors:
    def test_flattens_locations(self):
        exc = RequestValidationError([
            {"loc": ("body", "email"), "msg": "value is not a valid email", "type": "value_error", "input": "x"},
        ])

        assert format_validation_errors(exc) == [
            {"field": "body.email", "message": "value is not a valid email", "type": "value_error", "input": "x"},
        ]

    def test_sensitive_input_dropped(self):
        exc = RequestValidationError([
            {"loc": ("body", "note"), "msg": "too long", "type": "string_too_long", "input": "token=abc"},
        ])

        assert "input" not in format_validation_errors(exc)[0]

    def test_complex_input_dropped(self):
        exc = RequestValidationError([
            {"loc": ("body",), "msg": "bad", "type": "model_type", "input": {"a": 1}},
        ])

        assert "input" not in format_validation_errors(exc)[0]


class TestErrorResponse:
    def test_envelope(self):
        response = build_error_response(
            ErrorInfo(404, "NOT_FOUND", "Job not found"), "/api/v1/jobs/x", "GET", "req-1"
        )

        assert response.status_code == 404
        assert response.body == (
            b'{"error":{"code":"NOT_FOUND","message":"Job not found",'
            b'"path":"/api/v1/jobs/x","method":"GET","request_id":"req-1"}}'
        )

    def test_flat(self):
        response = build_error_response(
            ErrorInfo(403, "ADMIN_ERROR", "Forbidden: Admins only", envelope=False),
            "/api/v1/admin/users", "GET",
        )

        assert response.body == b'{"error":"Forbidden: Admins only"}'


@pytest.fixture
def app():
    app = FastAPI()
    setup_error_handlers(app)

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Candidate not found")

    @app.get("/admin")
    async def admin():
        raise AdminError("Cannot delete your own account", status_code=400)

    @app.get("/crash")
    async def crash():
        raise RuntimeError("secret=abc")

    @app.get("/items")
    async def items(limit: int):
        return {"limit": limit}

    return app


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


class TestErrorHandlers:
    """Handlers registered on the application."""

    def test_domain_error(self, client):
        response = client.get("/missing")

        assert response.status_code == 404
        assert response.json() == {
            "error": {
                "code": "NOT_FOUND",
                "message": "Candidate not found",
                "path": "/missing",
                "method": "GET",
            }
        }

    def test_admin_error_flat(self, client):
        response = client.get("/admin")

        assert response.status_code == 400
        assert response.json() == {"error": "Cannot delete your own account"}

    def test_unhandled_error(self, client):
        response = client.get("/crash")

        assert response.status_code == 500
        assert response.json()["error"]["message"] == "An unexpected error occurred"
        assert "abc" not in response.text

    def test_unknown_route(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "HTTP_EXCEPTION"

    def test_validation_error(self, client):
        response = client.get("/items", params={"limit": "many"})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == "query.limit"
        assert error["details"][0]["input"] == "many"


class TestErrorHandlingMiddleware:
    """The raw ASGI wrapper catches what escapes other middleware."""

    @staticmethod
    def _failing_app(exc):
        async def app(scope, receive, send):
            raise exc
        return app

    def test_catches_and_renders(self):
        client = TestClient(ErrorHandlingMiddleware(self._failing_app(ConflictError("Duplicate"))))

        response = client.get("/api/v1/jobs", headers={"X-Request-ID": "req-9"})

        assert response.status_code == 409
        assert response.json()["error"] == {
            "code": "CONFLICT",
            "message": "Duplicate",
            "path": "/api/v1/jobs",
            "method": "GET",
            "request_id": "req-9",
        }

    def test_unexpected_error(self):
        client = TestClient(ErrorHandlingMiddleware(self._failing_app(KeyError("x"))))

        response = client.post("/api/v1/candidates")

        assert response.status_code == 500
        assert response.json()["error"]["method"] == "POST"

    def test_debug_includes_details(self):
        middleware = ErrorHandlingMiddleware(self._failing_app(RuntimeError("boom")), debug=True)

        response = TestClient(middleware).get("/")

        assert response.json()["error"]["details"]["type"] == "RuntimeError"
