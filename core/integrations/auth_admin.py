"""Client for the hosted auth service's admin API."""

import logging
import uuid
from typing import Any, Dict, Optional

import httpx

from core.config import settings
from core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class AuthAdminError(ExternalServiceError):
    """Auth service rejected the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = status_code


class HostedAuthAdmin:
    """
    Creates, fetches and deletes auth users with the service-role key.

    The key bypasses every access rule in the hosted backend, so this client
    is only reachable from admin routes and management scripts.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        service_role_key: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.service_role_key = service_role_key or settings.supabase_service_role_key
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        if not self.service_role_key:
            raise AuthAdminError("Missing service role configuration")
        return {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {self.service_role_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}/auth/v1/admin{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Auth admin request failed: {method} {path}: {e}")
            raise AuthAdminError(f"Auth service unavailable: {e}")

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.warning(f"Auth admin {method} {path} returned {response.status_code}: {message}")
            raise AuthAdminError(message, response.status_code)

        return response.json() if response.content else None

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"Auth service error ({response.status_code})"
        for key in ("msg", "message", "error_description", "error"):
            if isinstance(body.get(key), str):
                return body[key]
        return f"Auth service error ({response.status_code})"

    async def create_user(
        self,
        email: str,
        password: str,
        role: str = "customer",
        email_confirm: bool = True,
    ) -> Dict[str, Any]:
        """
        Create a confirmed user with ``user_metadata.role`` set.

        Returns the auth user object (``id``, ``email``, ``user_metadata``...).
        """
        user = await self._request(
            "POST",
            "/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": email_confirm,
                "user_metadata": {"role": role},
            },
        )
        logger.info(f"Created auth user {user.get('id')} with role {role}")
        return user

    async def get_user(self, user_id: uuid.UUID | str) -> Dict[str, Any]:
        return await self._request("GET", f"/users/{user_id}")

    async def delete_user(self, user_id: uuid.UUID | str) -> None:
        await self._request("DELETE", f"/users/{user_id}")
        logger.info(f"Deleted auth user {user_id}")


def get_auth_admin() -> HostedAuthAdmin:
    return HostedAuthAdmin()
