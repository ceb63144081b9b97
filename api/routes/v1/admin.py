"""
Platform administration endpoints.

Every route requires an admin profile. Errors use the flat
``{"error": message}`` body admin clients expect.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_audit_context, require_admin_user
from api.schemas.profiles import (
    AdminUserResponse,
    AuditLogResponse,
    CreateUserRequest,
    DeleteUserRequest,
    PlatformStats,
    ProfileResponse,
    RoleUpdateRequest,
)
from api.services import users as user_service
from core.security import AuditContext
from database.engine import get_db
from database.models.profiles import Profile

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=List[AdminUserResponse], summary="List Users")
async def list_users(
    current_user: Profile = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """All profiles with their job and candidate counts."""
    return await user_service.list_users(db)


@router.get("/stats", response_model=PlatformStats, summary="Platform Stats")
async def get_stats(
    current_user: Profile = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_platform_stats(db)


@router.post("/create-user", summary="Create User")
async def create_user(
    data: CreateUserRequest,
    current_user: Profile = Depends(require_admin_user),
    audit: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a confirmed account in the hosted auth service.

    Returns ``{"user": <auth user>}``.
    """
    user = await user_service.create_user(
        db, current_user, str(data.email), data.password, role=data.role, audit=audit
    )
    return {"user": user}


@router.delete("/delete-user", summary="Delete User")
async def delete_user(
    data: Optional[DeleteUserRequest] = Body(None),
    current_user: Profile = Depends(require_admin_user),
    audit: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    """Delete an account and everything its tenant owns. Body: ``{"userId": ...}``."""
    await user_service.delete_user(db, current_user, data.userId if data else None, audit=audit)
    return {"success": True, "message": "User deleted successfully"}


@router.patch("/users/{user_id}/role", response_model=ProfileResponse, summary="Change Role")
async def update_role(
    data: RoleUpdateRequest,
    user_id: UUID = Path(...),
    current_user: Profile = Depends(require_admin_user),
    audit: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.update_role(db, current_user, user_id, data.role, audit=audit)


@router.get("/audit-logs", response_model=List[AuditLogResponse], summary="Audit Logs")
async def list_audit_logs(
    resource: Optional[str] = Query(None, description="Filter by resource type"),
    user_id: Optional[UUID] = Query(None, description="Filter by acting user"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: Profile = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.list_audit_logs(
        db, limit=limit, offset=offset, resource=resource, user_id=user_id
    )
