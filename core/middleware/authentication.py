"""
Authentication middleware for hosted-auth access tokens.

This middleware:
1. Reads the access token from the Authorization header or the auth cookie
2. Verifies it with the shared JWT secret
3. Loads the caller's profile, provisioning it on first sight
4. Puts the profile into ``scope["user"]`` for the route dependencies
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import jwt
from fastapi import Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from core.config import settings
from core.security import TokenPayload, decode_access_token
from database.engine import AsyncSessionLocal
from database.models.profiles import Profile, ProfileRole

logger = logging.getLogger(__name__)

# Public endpoints that don't require authentication
PUBLIC_ENDPOINTS = [
    "/",
    "/health",
    "/ready",
    "/api/v1/config",
    "/docs",
    "/redoc",
    "/openapi.json",
]

# Routes whose clients expect a flat {"error": message} body
FLAT_ERROR_PREFIXES = ("/api/v1/admin",)


class AuthenticationError(Exception):
    """Base exception for authentication errors."""
    pass


class TokenExpiredError(AuthenticationError):
    """Raised when JWT token has expired."""
    pass


class TokenInvalidError(AuthenticationError):
    """Raised when JWT token is invalid."""
    pass


class MissingTokenError(AuthenticationError):
    """Raised when the request carries no token at all."""
    pass


def extract_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the auth cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(settings.auth_cookie_name)


def verify_token(token: str) -> TokenPayload:
    try:
        return decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenInvalidError(f"Invalid token: {e}")


async def load_profile(payload: TokenPayload) -> Profile:
    """
    Fetch the caller's profile, creating it the first time a user is seen.

    The role of a new profile comes from the token's ``user_metadata.role``
    and falls back to customer.
    """
    async with AsyncSessionLocal() as db:
        profile = await db.get(Profile, payload.user_id)
        if profile:
            return profile

        if not payload.email:
            raise TokenInvalidError("Token missing email for a new user")

        role = ProfileRole.ADMIN if payload.role == ProfileRole.ADMIN.value else ProfileRole.CUSTOMER
        profile = Profile(id=payload.user_id, email=payload.email, role=role)
        db.add(profile)
        try:
            await db.commit()
        except IntegrityError:
            # A concurrent request provisioned the same user
            await db.rollback()
            result = await db.execute(select(Profile).where(Profile.id == payload.user_id))
            return result.scalar_one()

        logger.info(f"Provisioned profile {payload.user_id} with role {role.value}")
        await db.refresh(profile)
        return profile


class AuthenticationMiddleware:
    """
    Authenticates every non-public HTTP request.

    WebSocket connections pass through untouched; the notification socket
    authenticates from its ``token`` query parameter.
    """

    def __init__(self, app: Callable):
        self.app = app

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        path = request.url.path

        if self._is_public_endpoint(path) or request.method == "OPTIONS":
            await self.app(scope, receive, send)
            return

        try:
            token = extract_token(request)
            if not token:
                raise MissingTokenError("No authentication token provided")

            payload = verify_token(token)
            scope["user"] = await load_profile(payload)
            scope["jwt_payload"] = payload
        except MissingTokenError:
            await self._send_error_response(
                scope, receive, send,
                status_code=status.HTTP_401_UNAUTHORIZED,
                code="NOT_AUTHENTICATED",
                message="Unauthorized: No session found",
            )
            return
        except TokenExpiredError:
            await self._send_error_response(
                scope, receive, send,
                status_code=status.HTTP_401_UNAUTHORIZED,
                code="TOKEN_EXPIRED",
                message="Unauthorized: Session expired",
            )
            return
        except TokenInvalidError as e:
            logger.warning(f"Invalid token on {path}: {e}")
            await self._send_error_response(
                scope, receive, send,
                status_code=status.HTTP_401_UNAUTHORIZED,
                code="TOKEN_INVALID",
                message="Unauthorized: Invalid session",
            )
            return

        await self.app(scope, receive, send)

    def _is_public_endpoint(self, path: str) -> bool:
        if path in PUBLIC_ENDPOINTS:
            return True
        public_prefixes = ["/health", "/docs", "/redoc", "/openapi"]
        return any(path.startswith(prefix) for prefix in public_prefixes)

    async def _send_error_response(
        self,
        scope: dict,
        receive: Callable,
        send: Callable,
        status_code: int,
        code: str,
        message: str,
    ) -> None:
        if scope.get("path", "").startswith(FLAT_ERROR_PREFIXES):
            content = {"error": message}
        else:
            content = {
                "error": {
                    "code": code,
                    "message": message,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                }
            }

        response = JSONResponse(status_code=status_code, content=content)
        await response(scope, receive, send)
