"""Signed-in user's profile and the public client configuration."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_authenticated_user
from api.schemas.profiles import MeResponse, ProfileResponse, ProfileUpdate
from core.config import settings
from core.exceptions import NotFoundError
from core.integrations.meet import GOOGLE_OAUTH_SCOPES
from core.middleware.authorization import get_role_permissions
from core.stages import get_stage_config, get_stage_css_vars
from database.engine import get_db
from database.models.profiles import Profile

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profile"])


@router.get("/me", response_model=MeResponse, summary="Current Profile")
async def get_me(current_user: Profile = Depends(require_authenticated_user)):
    """The caller's profile and the permissions its role grants."""
    return MeResponse(
        **ProfileResponse.model_validate(current_user).model_dump(),
        permissions=[p.value for p in get_role_permissions(current_user.role)],
    )


@router.patch("/me", response_model=ProfileResponse, summary="Update Profile")
async def update_me(
    data: ProfileUpdate,
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await db.get(Profile, current_user.id)
    if profile is None:
        raise NotFoundError("Profile not found")

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(profile, field, value)

    await db.commit()
    await db.refresh(profile)

    logger.info(f"Profile {profile.id} updated: {', '.join(changes) or 'no changes'}")
    return profile


@router.get("/config", summary="Client Configuration")
async def get_client_config():
    """Public settings a client needs before sign-in. No secrets."""
    return {
        "app_name": settings.app_name,
        "features": {
            "notifications": settings.enable_notifications,
            "interviews": settings.enable_interviews,
            "search": settings.enable_search,
        },
        "stages": get_stage_config(),
        "stage_css_vars": get_stage_css_vars(),
        "upload": {
            "max_file_size_mb": settings.max_file_size_mb,
            "allowed_file_types": settings.allowed_file_types,
            "allowed_file_extensions": settings.allowed_file_extensions,
        },
        "interviews": {
            "default_duration": settings.default_interview_duration,
            "min_duration": settings.min_interview_duration,
            "max_duration": settings.max_interview_duration,
            "working_hours_start": settings.working_hours_start,
            "working_hours_end": settings.working_hours_end,
            "google_client_id": settings.google_client_id,
            "google_scopes": GOOGLE_OAUTH_SCOPES,
        },
        "search": {
            "min_query_length": settings.min_search_length,
            "max_results": settings.max_search_results,
        },
    }
