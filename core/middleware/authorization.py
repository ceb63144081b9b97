"""
Role-based authorization and tenant scoping.

Two roles exist: platform admins see every tenant, customers only see rows
whose ``customer_id`` is their own profile id.
"""

import logging
import uuid
from enum import Enum
from typing import Any, Callable, List, Set

from fastapi import Request
from sqlalchemy import true
from sqlalchemy.sql.elements import ColumnElement

from core.exceptions import ATSError, AdminError
from database.models.profiles import Profile, ProfileRole

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    """System-wide permissions."""

    CANDIDATES_READ = "candidates:read"
    CANDIDATES_WRITE = "candidates:write"
    CANDIDATES_DELETE = "candidates:delete"

    JOBS_READ = "jobs:read"
    JOBS_WRITE = "jobs:write"
    JOBS_DELETE = "jobs:delete"

    INTERVIEWS_READ = "interviews:read"
    INTERVIEWS_WRITE = "interviews:write"
    INTERVIEWS_DELETE = "interviews:delete"

    ADMIN_READ = "admin:read"
    ADMIN_WRITE = "admin:write"
    USERS_MANAGE = "users:manage"


# Customers may delete candidates and jobs, but only inside their own
# tenant; services enforce that through tenant_filter.
ROLE_PERMISSIONS: dict[ProfileRole, Set[Permission]] = {
    ProfileRole.ADMIN: set(Permission),
    ProfileRole.CUSTOMER: {
        Permission.CANDIDATES_READ, Permission.CANDIDATES_WRITE, Permission.CANDIDATES_DELETE,
        Permission.JOBS_READ, Permission.JOBS_WRITE, Permission.JOBS_DELETE,
        Permission.INTERVIEWS_READ, Permission.INTERVIEWS_WRITE,
    },
}


class AuthorizationError(ATSError):
    """User not authenticated."""

    status_code = 401
    code = "NOT_AUTHENTICATED"


class InsufficientPermissions(ATSError):
    """You don't have permission to perform this action."""

    status_code = 403
    code = "INSUFFICIENT_PERMISSIONS"


def has_permission(role: ProfileRole | str, permission: Permission) -> bool:
    try:
        return permission in ROLE_PERMISSIONS[ProfileRole(role)]
    except ValueError:
        return False


def get_role_permissions(role: ProfileRole | str) -> List[Permission]:
    """Permissions of a role, in declaration order."""
    try:
        granted = ROLE_PERMISSIONS[ProfileRole(role)]
    except ValueError:
        return []
    return [permission for permission in Permission if permission in granted]


def check_data_ownership(user_id: Any, owner_id: Any, is_admin: bool = False) -> bool:
    """True when the user owns the row or is an admin."""
    if is_admin:
        return True
    return str(user_id) == str(owner_id)


def tenant_filter(model: Any, actor: Profile) -> ColumnElement[bool]:
    """
    WHERE clause restricting ``model`` to the actor's tenant.

    Admins get an always-true clause.
    """
    if actor.is_admin:
        return true()
    return model.customer_id == actor.id


def _current_profile(request: Request) -> Profile:
    user = request.scope.get("user")
    if not isinstance(user, Profile):
        raise AuthorizationError()
    return user


def require_permission(*required_permissions: Permission) -> Callable:
    """
    Dependency to require permissions.

    Usage:
        @router.delete("/{interview_id}")
        async def delete_interview(
            user: Profile = Depends(require_permission(Permission.INTERVIEWS_DELETE)),
        ):
            ...
    """
    async def dependency(request: Request) -> Profile:
        user = _current_profile(request)
        missing = [p for p in required_permissions if not has_permission(user.role, p)]
        if missing:
            logger.warning(
                f"User {user.id} with role {user.role.value} denied: "
                f"missing {', '.join(p.value for p in missing)}"
            )
            raise InsufficientPermissions(
                f"Missing permission: {', '.join(p.value for p in missing)}"
            )
        return user

    return dependency


async def require_admin(request: Request) -> Profile:
    """
    Dependency for the admin API.

    Failures use the flat admin error body.
    """
    user = request.scope.get("user")
    if not isinstance(user, Profile):
        raise AdminError("Unauthorized: No session found", status_code=401)
    if not user.is_admin:
        logger.warning(f"Non-admin {user.id} attempted admin access to {request.url.path}")
        raise AdminError("Forbidden: Admins only", status_code=403)
    return user


def owns(actor: Profile, customer_id: uuid.UUID) -> bool:
    return check_data_ownership(actor.id, customer_id, actor.is_admin)
