"""
Tests for authentication middleware.

Tests:
- Token extraction from the Authorization header and the auth cookie
- Public endpoint exemptions
- Profile loading and first-sight provisioning
- Error bodies, including the flat admin shape
"""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import jwt as pyjwt
import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from core.config import settings
from core.middleware.authentication import (
    AuthenticationMiddleware,
    TokenExpiredError,
    TokenInvalidError,
    extract_token,
    load_profile,
    verify_token,
)
from core.security import TokenPayload, create_access_token
from database.models.profiles import Profile, ProfileRole
from tests.factories import make_profile


@pytest.fixture
def app():
    """Create test FastAPI app."""
    app = FastAPI()

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/api/v1/jobs")
    async def protected(request: Request):
        user = request.scope["user"]
        return {"user_id": str(user.id), "role": user.role.value}

    @app.get("/api/v1/admin/users")
    async def admin(request: Request):
        return {"ok": True}

    app.add_middleware(AuthenticationMiddleware)
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def profile():
    return make_profile(ProfileRole.CUSTOMER, "hr@acme.com")


def _session_factory(session):
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return Mock(return_value=context)


class TestAuthenticationMiddleware:
    """Test authentication middleware."""

    def test_public_endpoint_no_auth(self, client):
        response = client.get("/health")
        assert response.status_code == 200

    def test_protected_endpoint_requires_auth(self, client):
        response = client.get("/api/v1/jobs")

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == "NOT_AUTHENTICATED"
        assert error["message"] == "Unauthorized: No session found"
        assert "timestamp" in error

    def test_valid_bearer_token(self, client, profile):
        token = create_access_token(profile.id, profile.email)

        with patch(
            "core.middleware.authentication.load_profile", AsyncMock(return_value=profile)
        ) as mock_load:
            response = client.get("/api/v1/jobs", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {"user_id": str(profile.id), "role": "customer"}
        payload = mock_load.await_args.args[0]
        assert payload.user_id == profile.id

    def test_valid_cookie_token(self, client, profile):
        token = create_access_token(profile.id, profile.email)
        client.cookies.set(settings.auth_cookie_name, token)

        with patch("core.middleware.authentication.load_profile", AsyncMock(return_value=profile)):
            response = client.get("/api/v1/jobs")

        assert response.status_code == 200

    def test_expired_token(self, client, profile):
        token = create_access_token(profile.id, profile.email, expires_in=timedelta(minutes=-5))

        response = client.get("/api/v1/jobs", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_EXPIRED"
        assert response.json()["error"]["message"] == "Unauthorized: Session expired"

    def test_invalid_signature(self, client, profile):
        token = pyjwt.encode(
            {"sub": str(profile.id), "aud": "authenticated", "exp": 9999999999},
            "wrong-secret-key-that-is-long-enough",
            algorithm="HS256",
        )

        response = client.get("/api/v1/jobs", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_INVALID"

    def test_malformed_token(self, client):
        response = client.get("/api/v1/jobs", headers={"Authorization": "Bearer not.a.jwt"})
        assert response.status_code == 401

    def test_non_bearer_scheme_ignored(self, client):
        response = client.get("/api/v1/jobs", headers={"Authorization": "Basic dXNlcjpwYXNz"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"

    def test_admin_paths_get_flat_error(self, client):
        response = client.get("/api/v1/admin/users")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized: No session found"}

    def test_options_preflight_passes(self, client):
        response = client.options("/api/v1/jobs")
        # No CORS middleware here, so the route itself answers
        assert response.status_code == 405

    def test_unprovisionable_token_rejected(self, client, profile):
        token = create_access_token(profile.id, profile.email)

        with patch(
            "core.middleware.authentication.load_profile",
            AsyncMock(side_effect=TokenInvalidError("Token missing email for a new user")),
        ):
            response = client.get("/api/v1/jobs", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Unauthorized: Invalid session"


class TestTokenExtraction:
    """Test token extraction."""

    def _request(self, headers=None, cookies=None):
        request = Mock()
        request.headers = headers or {}
        request.cookies = cookies or {}
        return request

    def test_extract_from_bearer_header(self):
        request = self._request({"Authorization": "Bearer abc.def.ghi"})
        assert extract_token(request) == "abc.def.ghi"

    def test_header_wins_over_cookie(self):
        request = self._request(
            {"Authorization": "Bearer from-header"}, {settings.auth_cookie_name: "from-cookie"}
        )
        assert extract_token(request) == "from-header"

    def test_extract_from_cookie(self):
        request = self._request(cookies={settings.auth_cookie_name: "from-cookie"})
        assert extract_token(request) == "from-cookie"

    def test_empty_bearer(self):
        assert extract_token(self._request({"Authorization": "Bearer "})) is None

    def test_no_token(self):
        assert extract_token(self._request()) is None


class TestVerifyToken:
    def test_maps_expired(self):
        token = create_access_token(uuid.uuid4(), "a@b.com", expires_in=timedelta(seconds=-1))
        with pytest.raises(TokenExpiredError):
            verify_token(token)

    def test_maps_invalid(self):
        with pytest.raises(TokenInvalidError):
            verify_token("garbage")

    def test_returns_payload(self):
        user_id = uuid.uuid4()
        assert verify_token(create_access_token(user_id, "a@b.com")).user_id == user_id


class TestLoadProfile:
    """Test profile lookup and first-sight provisioning."""

    @pytest.mark.asyncio
    async def test_existing_profile(self, profile):
        session = AsyncMock()
        session.get = AsyncMock(return_value=profile)

        with patch("core.middleware.authentication.AsyncSessionLocal", _session_factory(session)):
            result = await load_profile(TokenPayload(sub=str(profile.id), email=profile.email))

        assert result is profile
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provisions_customer_by_default(self):
        session = AsyncMock()
        session.get = AsyncMock(return_value=None)
        session.add = Mock()
        user_id = uuid.uuid4()

        with patch("core.middleware.authentication.AsyncSessionLocal", _session_factory(session)):
            result = await load_profile(TokenPayload(sub=str(user_id), email="new@acme.com"))

        assert isinstance(result, Profile)
        assert result.id == user_id
        assert result.role == ProfileRole.CUSTOMER
        session.add.assert_called_once_with(result)
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_provisions_admin_from_metadata(self):
        session = AsyncMock()
        session.get = AsyncMock(return_value=None)
        session.add = Mock()

        with patch("core.middleware.authentication.AsyncSessionLocal", _session_factory(session)):
            result = await load_profile(
                TokenPayload(sub=str(uuid.uuid4()), email="root@acme.com", role="admin")
            )

        assert result.role == ProfileRole.ADMIN

    @pytest.mark.asyncio
    async def test_unknown_metadata_role_falls_back(self):
        session = AsyncMock()
        session.get = AsyncMock(return_value=None)
        session.add = Mock()

        with patch("core.middleware.authentication.AsyncSessionLocal", _session_factory(session)):
            result = await load_profile(
                TokenPayload(sub=str(uuid.uuid4()), email="x@acme.com", role="superuser")
            )

        assert result.role == ProfileRole.CUSTOMER

    @pytest.mark.asyncio
    async def test_new_user_without_email(self):
        session = AsyncMock()
        session.get = AsyncMock(return_value=None)

        with patch("core.middleware.authentication.AsyncSessionLocal", _session_factory(session)):
            with pytest.raises(TokenInvalidError):
                await load_profile(TokenPayload(sub=str(uuid.uuid4())))

    @pytest.mark.asyncio
    async def test_concurrent_provisioning(self, profile):
        """A duplicate insert falls back to the row the other request created."""
        session = AsyncMock()
        session.get = AsyncMock(return_value=None)
        session.add = Mock()
        session.commit = AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("duplicate")))
        result_mock = MagicMock()
        result_mock.scalar_one.return_value = profile
        session.execute = AsyncMock(return_value=result_mock)

        with patch("core.middleware.authentication.AsyncSessionLocal", _session_factory(session)):
            result = await load_profile(TokenPayload(sub=str(profile.id), email=profile.email))

        assert result is profile
        session.rollback.assert_awaited_once()

