"""
Interview scheduling endpoints.

Open slots, schedulable candidates, scheduling with notification and
stage update, and meeting link generation.
"""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_audit_context, require_authenticated_user, require_feature
from api.schemas.interviews import (
    InterviewCreate,
    InterviewResponse,
    InterviewUpdate,
    MeetingLinkRequest,
    MeetingLinkResponse,
    SchedulableCandidate,
    SlotsResponse,
)
from api.services import interviews as interview_service
from core.integrations.meet import generate_meeting_link
from core.middleware.authorization import Permission, require_permission
from core.security import AuditContext
from database.engine import get_db
from database.models.interviews import InterviewStatus
from database.models.profiles import Profile

router = APIRouter(
    prefix="/interviews",
    tags=["interviews"],
    dependencies=[Depends(require_feature("enable_interviews"))],
)


@router.get(
    "",
    response_model=List[InterviewResponse],
    summary="List Interviews",
    dependencies=[Depends(require_permission(Permission.INTERVIEWS_READ))],
)
async def list_interviews(
    upcoming: bool = Query(False, description="Only scheduled interviews from now on"),
    status: Optional[InterviewStatus] = Query(None),
    candidate_id: Optional[UUID] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.list_interviews(
        db,
        current_user,
        upcoming=upcoming,
        status=status,
        candidate_id=candidate_id,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )


@router.get(
    "/slots",
    response_model=SlotsResponse,
    summary="Available Slots",
    description="Half-hour slots during working hours (UTC), lunch hour excluded.",
    dependencies=[Depends(require_permission(Permission.INTERVIEWS_READ))],
)
async def get_available_slots(
    day: date = Query(..., alias="date", description="Day to check, YYYY-MM-DD"),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    slots = await interview_service.get_available_slots(db, current_user, day)
    return SlotsResponse(date=day, slots=slots)


@router.get(
    "/candidates",
    response_model=List[SchedulableCandidate],
    summary="Schedulable Candidates",
    description="Candidates in screening or interview stage.",
    dependencies=[Depends(require_permission(Permission.INTERVIEWS_READ))],
)
async def list_schedulable_candidates(
    job_id: Optional[UUID] = Query(None),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    candidates = await interview_service.list_schedulable_candidates(db, current_user, job_id)
    return [
        SchedulableCandidate(
            id=c.id,
            full_name=c.full_name,
            email=c.email,
            stage=c.stage.value,
            job_id=c.job_id,
            job_title=c.job_title,
        )
        for c in candidates
    ]


@router.post(
    "",
    response_model=InterviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule Interview",
    description=(
        "Schedule an interview, notify the scheduler and move the candidate "
        "to the interview stage."
    ),
    dependencies=[Depends(require_permission(Permission.INTERVIEWS_WRITE))],
)
async def schedule_interview(
    data: InterviewCreate,
    current_user: Profile = Depends(require_authenticated_user),
    audit: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.schedule_interview(db, current_user, data, audit)


@router.post(
    "/meeting-link",
    response_model=MeetingLinkResponse,
    summary="Generate Meeting Link",
    dependencies=[Depends(require_permission(Permission.INTERVIEWS_WRITE))],
)
async def create_meeting_link(data: MeetingLinkRequest):
    return MeetingLinkResponse(
        provider=data.provider,
        meeting_link=generate_meeting_link(data.provider, data.meeting_id),
    )


@router.get(
    "/{interview_id}",
    response_model=InterviewResponse,
    summary="Get Interview",
    dependencies=[Depends(require_permission(Permission.INTERVIEWS_READ))],
)
async def get_interview(
    interview_id: UUID = Path(..., description="Interview ID"),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.get_interview(db, current_user, interview_id)


@router.patch(
    "/{interview_id}",
    response_model=InterviewResponse,
    summary="Update Interview",
    description="Record status, feedback or notes, or reschedule.",
    dependencies=[Depends(require_permission(Permission.INTERVIEWS_WRITE))],
)
async def update_interview(
    data: InterviewUpdate,
    interview_id: UUID = Path(..., description="Interview ID"),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    return await interview_service.update_interview(db, current_user, interview_id, data)


@router.delete(
    "/{interview_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Interview",
    description="Requires interviews:delete permission (admins).",
    dependencies=[Depends(require_permission(Permission.INTERVIEWS_DELETE))],
)
async def delete_interview(
    interview_id: UUID = Path(..., description="Interview ID"),
    current_user: Profile = Depends(require_authenticated_user),
    audit: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    await interview_service.delete_interview(db, current_user, interview_id, audit)
