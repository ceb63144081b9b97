"""FastAPI dependencies for dependency injection."""

from typing import Callable, Optional

from fastapi import Query, Request

from api.schemas.common import PaginationParams
from core.config import settings
from core.exceptions import FeatureDisabled
from core.middleware.authorization import AuthorizationError, require_admin
from core.security import AuditContext
from database.models.profiles import Profile

__all__ = [
    "get_current_user",
    "require_authenticated_user",
    "require_admin_user",
    "require_feature",
    "get_pagination",
    "get_audit_context",
]

require_admin_user = require_admin


async def get_current_user(request: Request) -> Optional[Profile]:
    """
    Profile set on the scope by the authentication middleware.
    Returns None for public paths.
    """
    user = request.scope.get("user")
    return user if isinstance(user, Profile) else None


async def require_authenticated_user(request: Request) -> Profile:
    """Require user to be authenticated."""
    user = await get_current_user(request)
    if user is None:
        raise AuthorizationError("Authentication required")
    return user


def require_feature(flag: str) -> Callable:
    """
    Dependency that 404s a router while its feature flag is off.

    Usage:
        router = APIRouter(dependencies=[Depends(require_feature("enable_search"))])
    """
    async def dependency() -> None:
        if not getattr(settings, flag):
            raise FeatureDisabled(f"Feature disabled: {flag.removeprefix('enable_')}")

    return dependency


def get_pagination(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(settings.default_page_size, ge=1, description="Items per page"),
) -> PaginationParams:
    """Pagination query parameters; page_size is capped rather than rejected."""
    return PaginationParams(page=page, page_size=min(page_size, settings.max_page_size))


def get_audit_context(request: Request) -> AuditContext:
    return AuditContext(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
