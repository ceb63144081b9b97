"""Interview scheduling service functions."""

import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.interviews import InterviewCreate, InterviewUpdate
from api.services import notifications
from api.services.candidates import change_stage, get_candidate_for_actor, run_side_effect
from core.config import settings
from core.exceptions import NotFoundError, ValidationFailed
from core.integrations.meet import is_valid_meet_url
from core.middleware.authorization import tenant_filter
from core.security import AuditAction, AuditContext, ResourceType, create_audit_log
from core.utils.datetime import end_of_day, iter_slots, now, overlaps, parse_time_of_day, start_of_day
from database.models.candidates import Candidate, CandidateStage
from database.models.interviews import Interview, InterviewStatus, InterviewType
from database.models.profiles import Profile

logger = logging.getLogger(__name__)

SLOT_MINUTES = 30
LUNCH_HOUR = 12
SCHEDULABLE_STAGES = (CandidateStage.SCREENING, CandidateStage.INTERVIEW)


def validate_duration(minutes: int) -> None:
    if not settings.min_interview_duration <= minutes <= settings.max_interview_duration:
        raise ValidationFailed(
            f"Duration must be between {settings.min_interview_duration} "
            f"and {settings.max_interview_duration} minutes"
        )


def validate_meeting_link(link: Optional[str]) -> None:
    """Google Meet URLs pass as is; anything else must at least be http(s)."""
    if not link or is_valid_meet_url(link):
        return
    if not link.startswith("http"):
        raise ValidationFailed("Invalid meeting link")


async def get_interview_for_actor(
    db: AsyncSession, actor: Profile, interview_id: uuid.UUID
) -> Interview:
    result = await db.execute(
        select(Interview).where(Interview.id == interview_id, tenant_filter(Interview, actor))
    )
    interview = result.scalar_one_or_none()
    if not interview:
        raise NotFoundError("Interview not found")
    return interview


async def get_available_slots(db: AsyncSession, actor: Profile, day: date) -> List[Dict[str, Any]]:
    """
    Half-hour slots across working hours on ``day``, minus the noon hour.

    A slot is unavailable when it overlaps a scheduled interview of the
    actor's tenant.
    """
    result = await db.execute(
        select(Interview.scheduled_at, Interview.duration_minutes).where(
            tenant_filter(Interview, actor),
            Interview.status == InterviewStatus.SCHEDULED,
            Interview.scheduled_at < end_of_day(day),
            # Interviews can start the evening before and run past midnight
            Interview.scheduled_at >= start_of_day(day) - timedelta(minutes=settings.max_interview_duration),
        )
    )
    booked = [
        (start, start + timedelta(minutes=duration)) for start, duration in result.all()
    ]

    slots = []
    for start in iter_slots(
        day,
        parse_time_of_day(settings.working_hours_start),
        parse_time_of_day(settings.working_hours_end),
        SLOT_MINUTES,
    ):
        if start.hour == LUNCH_HOUR:
            continue
        end = start + timedelta(minutes=SLOT_MINUTES)
        slots.append({
            "time": start.strftime("%H:%M"),
            "start": start,
            "available": not any(overlaps(start, end, b_start, b_end) for b_start, b_end in booked),
        })
    return slots


async def list_schedulable_candidates(
    db: AsyncSession, actor: Profile, job_id: Optional[uuid.UUID] = None
) -> List[Candidate]:
    """Candidates in screening or interview, by name."""
    query = select(Candidate).where(
        tenant_filter(Candidate, actor),
        Candidate.stage.in_(SCHEDULABLE_STAGES),
    )
    if job_id:
        query = query.where(Candidate.job_id == job_id)

    result = await db.execute(query.order_by(Candidate.full_name))
    return list(result.scalars().all())


async def schedule_interview(
    db: AsyncSession,
    actor: Profile,
    data: InterviewCreate,
    audit: Optional[AuditContext] = None,
) -> Interview:
    """
    Schedule an interview, notify the scheduler and move the candidate to
    the interview stage.

    Only the interview insert can fail the request. The notification and
    the stage move run afterwards; their failures are logged and the
    interview stays.
    """
    validate_duration(data.duration_minutes)
    validate_meeting_link(data.meeting_link)

    candidate = await get_candidate_for_actor(db, actor, data.candidate_id)

    interview = Interview(
        candidate_id=candidate.id,
        job_id=candidate.job_id,
        customer_id=candidate.customer_id,
        scheduled_at=data.scheduled_at,
        duration_minutes=data.duration_minutes,
        type=data.type,
        location=data.location if data.type == InterviewType.ONSITE else None,
        meeting_link=data.meeting_link if data.type == InterviewType.VIDEO else None,
        interviewers=[str(actor.id)],
        notes=data.notes,
        status=InterviewStatus.SCHEDULED,
    )
    db.add(interview)
    await db.flush()

    create_audit_log(
        db, actor.id, AuditAction.SCHEDULE, ResourceType.INTERVIEW, interview.id,
        {"candidate_id": str(candidate.id), "scheduled_at": data.scheduled_at.isoformat()}, audit,
    )
    await db.commit()
    await db.refresh(interview)

    actor_id = actor.id
    interview_id = interview.id
    candidate_id = candidate.id
    logger.info(f"Interview {interview_id} scheduled for candidate {candidate_id}")

    await run_side_effect(
        db,
        notifications.notify_interview_scheduled(
            db,
            actor_id,
            candidate.full_name,
            interview.scheduled_at,
            interview_id,
            candidate_id,
            interview.meeting_link,
        ),
        f"send interview notification for {interview_id}",
        interview,
    )
    await run_side_effect(
        db,
        change_stage(db, actor, candidate_id, CandidateStage.INTERVIEW),
        f"move candidate {candidate_id} to interview stage",
        interview,
    )

    return interview


async def list_interviews(
    db: AsyncSession,
    actor: Profile,
    upcoming: bool = False,
    status: Optional[InterviewStatus] = None,
    candidate_id: Optional[uuid.UUID] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    limit: int = 100,
) -> List[Interview]:
    """
    Tenant interviews.

    ``upcoming`` keeps scheduled interviews from now on, soonest first;
    otherwise the newest come first.
    """
    query = select(Interview).where(tenant_filter(Interview, actor))
    if upcoming:
        query = query.where(
            Interview.scheduled_at >= now(),
            Interview.status == InterviewStatus.SCHEDULED,
        )
    if status:
        query = query.where(Interview.status == status)
    if candidate_id:
        query = query.where(Interview.candidate_id == candidate_id)
    if date_from:
        query = query.where(Interview.scheduled_at >= date_from)
    if date_to:
        query = query.where(Interview.scheduled_at <= date_to)

    order = Interview.scheduled_at.asc() if upcoming else Interview.scheduled_at.desc()
    result = await db.execute(query.order_by(order).limit(limit))
    return list(result.scalars().all())


async def get_interview(db: AsyncSession, actor: Profile, interview_id: uuid.UUID) -> Interview:
    return await get_interview_for_actor(db, actor, interview_id)


async def update_interview(
    db: AsyncSession,
    actor: Profile,
    interview_id: uuid.UUID,
    data: InterviewUpdate,
) -> Interview:
    """Record status, feedback and notes, or reschedule."""
    interview = await get_interview_for_actor(db, actor, interview_id)

    changes = data.model_dump(exclude_unset=True)
    for required in ("scheduled_at", "duration_minutes", "type", "status"):
        if changes.get(required) is None:
            changes.pop(required, None)

    if "duration_minutes" in changes:
        validate_duration(changes["duration_minutes"])
    if changes.get("meeting_link"):
        validate_meeting_link(changes["meeting_link"])

    for field, value in changes.items():
        setattr(interview, field, value)

    if interview.type != InterviewType.ONSITE:
        interview.location = None
    if interview.type != InterviewType.VIDEO:
        interview.meeting_link = None

    await db.commit()
    await db.refresh(interview)

    logger.info(f"Interview {interview.id} updated: {', '.join(changes) or 'no changes'}")
    return interview


async def delete_interview(
    db: AsyncSession,
    actor: Profile,
    interview_id: uuid.UUID,
    audit: Optional[AuditContext] = None,
) -> None:
    interview = await get_interview_for_actor(db, actor, interview_id)

    await db.delete(interview)
    create_audit_log(
        db, actor.id, AuditAction.DELETE, ResourceType.INTERVIEW, interview_id,
        {"candidate_id": str(interview.candidate_id)}, audit,
    )
    await db.commit()

    logger.info(f"Interview {interview_id} deleted by {actor.id}")
