"""
Admin user management

Accounts live in the hosted auth service. These functions call its admin
API and keep the matching profiles rows in step. Errors are raised as
AdminError so admin clients get the flat ``{"error": message}`` body.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import AdminError
from core.integrations.auth_admin import AuthAdminError, HostedAuthAdmin, get_auth_admin
from core.security import (
    AuditAction,
    AuditContext,
    ResourceType,
    create_audit_log,
    validate_password_strength,
)
from database.models.audit import AuditLog
from database.models.candidates import Candidate
from database.models.interviews import Interview
from database.models.jobs import Job
from database.models.profiles import Profile, ProfileRole

logger = logging.getLogger(__name__)


async def _count(db: AsyncSession, model: Any, *conditions) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*conditions))
    return result.scalar() or 0


async def list_users(db: AsyncSession) -> List[Dict[str, Any]]:
    """
    Every profile ordered by role, with its job and candidate counts.

    Two count queries per profile; fine at admin-page scale.
    """
    result = await db.execute(select(Profile).order_by(Profile.role, Profile.created_at))

    users = []
    for profile in result.scalars().all():
        users.append({
            "id": profile.id,
            "email": profile.email,
            "role": profile.role,
            "full_name": profile.full_name,
            "company_name": profile.company_name,
            "avatar_url": profile.avatar_url,
            "created_at": profile.created_at,
            "job_count": await _count(db, Job, Job.customer_id == profile.id),
            "candidate_count": await _count(db, Candidate, Candidate.customer_id == profile.id),
        })
    return users


async def get_platform_stats(db: AsyncSession) -> Dict[str, int]:
    return {
        "profiles": await _count(db, Profile),
        "customers": await _count(db, Profile, Profile.role == ProfileRole.CUSTOMER),
        "admins": await _count(db, Profile, Profile.role == ProfileRole.ADMIN),
        "jobs": await _count(db, Job),
        "candidates": await _count(db, Candidate),
        "interviews": await _count(db, Interview),
    }


async def create_user(
    db: AsyncSession,
    actor: Profile,
    email: str,
    password: str,
    role: ProfileRole = ProfileRole.CUSTOMER,
    audit: Optional[AuditContext] = None,
    auth_admin: Optional[HostedAuthAdmin] = None,
) -> Dict[str, Any]:
    """
    Create a confirmed auth user and its profile.

    Returns the auth service's user object.
    """
    strength = validate_password_strength(password)
    if not strength.is_valid:
        raise AdminError(f"Weak password: {'; '.join(strength.feedback)}")

    auth_admin = auth_admin or get_auth_admin()
    try:
        user = await auth_admin.create_user(email, password, role=role.value, email_confirm=True)
    except AuthAdminError as e:
        raise AdminError(e.message)

    user_id = uuid.UUID(user["id"])
    profile = await db.get(Profile, user_id)
    if profile is None:
        profile = Profile(id=user_id, email=email, role=role)
        db.add(profile)
    else:
        profile.email = email
        profile.role = role

    create_audit_log(
        db, actor.id, AuditAction.CREATE, ResourceType.USER, user_id,
        {"email": email, "role": role.value}, audit,
    )
    await db.commit()

    logger.info(f"Admin {actor.id} created user {user_id} ({role.value})")
    return user


async def delete_user(
    db: AsyncSession,
    actor: Profile,
    user_id: Optional[uuid.UUID | str],
    audit: Optional[AuditContext] = None,
    auth_admin: Optional[HostedAuthAdmin] = None,
) -> None:
    """
    Delete the auth user, then the profile. Tenant rows cascade with the
    profile.
    """
    if not user_id:
        raise AdminError("User ID is required")
    try:
        user_id = uuid.UUID(str(user_id))
    except ValueError:
        raise AdminError(f"Invalid user ID: {user_id}")
    if user_id == actor.id:
        raise AdminError("Cannot delete your own account")

    auth_admin = auth_admin or get_auth_admin()
    try:
        await auth_admin.delete_user(user_id)
    except AuthAdminError as e:
        raise AdminError(e.message)

    profile = await db.get(Profile, user_id)
    if profile is not None:
        await db.delete(profile)

    create_audit_log(db, actor.id, AuditAction.DELETE, ResourceType.USER, user_id, None, audit)
    await db.commit()

    logger.info(f"Admin {actor.id} deleted user {user_id}")


async def update_role(
    db: AsyncSession,
    actor: Profile,
    user_id: uuid.UUID,
    role: ProfileRole,
    audit: Optional[AuditContext] = None,
) -> Profile:
    profile = await db.get(Profile, user_id)
    if profile is None:
        raise AdminError("User not found", status_code=404)
    if profile.id == actor.id and role != ProfileRole.ADMIN:
        raise AdminError("Cannot remove your own admin role")

    previous = profile.role
    profile.role = role
    create_audit_log(
        db, actor.id, AuditAction.ROLE_CHANGE, ResourceType.USER, user_id,
        {"from": previous.value, "to": role.value}, audit,
    )
    await db.commit()
    await db.refresh(profile)

    logger.info(f"Admin {actor.id} changed role of {user_id}: {previous.value} -> {role.value}")
    return profile


async def list_audit_logs(
    db: AsyncSession,
    limit: int = 50,
    offset: int = 0,
    resource: Optional[str] = None,
    user_id: Optional[uuid.UUID] = None,
) -> List[AuditLog]:
    query = select(AuditLog)
    if resource:
        query = query.where(AuditLog.resource == resource)
    if user_id:
        query = query.where(AuditLog.user_id == user_id)

    result = await db.execute(query.order_by(AuditLog.created_at.desc()).limit(limit).offset(offset))
    return list(result.scalars().all())
