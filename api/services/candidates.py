"""Candidate service functions: CRUD, pipeline moves, the kanban board and resumes."""

import logging
import uuid
from typing import Any, Awaitable, Dict, List, Optional

from sqlalchemy import func, inspect, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.candidates import CandidateCreate, CandidateUpdate
from api.schemas.common import PaginationParams
from api.services import notifications
from api.services.jobs import get_job_for_actor
from core.exceptions import NotFoundError, ValidationFailed
from core.middleware.authorization import tenant_filter
from core.security import (
    AuditAction,
    AuditContext,
    ResourceType,
    create_audit_log,
    sanitize_html,
    validate_file,
    validate_file_extension,
)
from core.stages import get_stage_color, get_stage_label, get_stage_order
from core.storage.resumes import build_resume_key, get_resume_storage
from database.models.candidates import Candidate, CandidateHistory, CandidateStage
from database.models.interviews import Interview
from database.models.jobs import Job, JobStatus
from database.models.profiles import Profile

logger = logging.getLogger(__name__)


async def run_side_effect(
    db: AsyncSession, action: Awaitable[Any], description: str, *keep: Any
) -> bool:
    """
    Await a follow-up write whose failure must not fail the request.

    The primary change is already committed; a failed follow-up is logged
    and left as is. A rollback, here or inside ``action``, expires every
    instance in the session, so the ``keep`` instances are reloaded before
    the caller reads them again.
    """
    try:
        await action
        succeeded = True
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to {description}: {e}")
        succeeded = False

    for instance in keep:
        if inspect(instance).expired:
            await db.refresh(instance)
    return succeeded


def _search_clause(search: str):
    pattern = f"%{search}%"
    return or_(Candidate.full_name.ilike(pattern), Candidate.email.ilike(pattern))


async def get_candidate_for_actor(
    db: AsyncSession, actor: Profile, candidate_id: uuid.UUID
) -> Candidate:
    result = await db.execute(
        select(Candidate).where(Candidate.id == candidate_id, tenant_filter(Candidate, actor))
    )
    candidate = result.scalar_one_or_none()
    if not candidate:
        raise NotFoundError("Candidate not found")
    return candidate


async def list_candidates(
    db: AsyncSession,
    actor: Profile,
    pagination: PaginationParams,
    job_id: Optional[uuid.UUID] = None,
    stage: Optional[CandidateStage] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    filters = [tenant_filter(Candidate, actor)]
    if job_id:
        filters.append(Candidate.job_id == job_id)
    if stage:
        filters.append(Candidate.stage == stage)
    if search:
        filters.append(_search_clause(search))

    total_result = await db.execute(select(func.count()).select_from(Candidate).where(*filters))

    result = await db.execute(
        select(Candidate)
        .where(*filters)
        .order_by(Candidate.created_at.desc())
        .limit(pagination.page_size)
        .offset(pagination.offset)
    )
    return {"items": list(result.scalars().all()), "total": total_result.scalar() or 0}


async def create_candidate(
    db: AsyncSession,
    actor: Profile,
    data: CandidateCreate,
    audit: Optional[AuditContext] = None,
) -> Candidate:
    """
    Add a candidate to a job in the actor's tenant.

    The candidate starts in ``applied`` and the tenant owner is notified.
    """
    job = await get_job_for_actor(db, actor, data.job_id)

    candidate = Candidate(
        job_id=job.id,
        customer_id=job.customer_id,
        full_name=data.full_name,
        email=str(data.email),
        phone=data.phone,
        linkedin_url=data.linkedin_url,
        portfolio_url=data.portfolio_url,
        resume_url=data.resume_url,
        stage=CandidateStage.APPLIED,
        location=data.location,
        current_company=data.current_company,
        current_title=data.current_title,
        years_of_experience=data.years_of_experience,
        skills=data.skills,
        notes=sanitize_html(data.notes) if data.notes else None,
        rating=data.rating,
    )
    db.add(candidate)
    await db.flush()

    create_audit_log(
        db, actor.id, AuditAction.CREATE, ResourceType.CANDIDATE, candidate.id,
        {"job_id": str(job.id)}, audit,
    )
    await db.commit()
    await db.refresh(candidate)

    logger.info(f"Candidate {candidate.id} added to job {job.id}")

    await run_side_effect(
        db,
        notifications.notify_new_application(
            db, job.customer_id, candidate.full_name, job.title, candidate.id
        ),
        f"send application notification for candidate {candidate.id}",
        candidate,
    )
    return candidate


async def get_candidate_detail(
    db: AsyncSession, actor: Profile, candidate_id: uuid.UUID
) -> Dict[str, Any]:
    """Candidate with its job title, stage history and interviews."""
    candidate = await get_candidate_for_actor(db, actor, candidate_id)

    history = await get_history(db, actor, candidate_id, candidate=candidate)
    interviews_result = await db.execute(
        select(Interview)
        .where(Interview.candidate_id == candidate_id)
        .order_by(Interview.scheduled_at.desc())
    )

    return {
        "candidate": candidate,
        "history": history,
        "interviews": list(interviews_result.scalars().all()),
    }


async def get_history(
    db: AsyncSession,
    actor: Profile,
    candidate_id: uuid.UUID,
    candidate: Optional[Candidate] = None,
) -> List[CandidateHistory]:
    if candidate is None:
        await get_candidate_for_actor(db, actor, candidate_id)

    result = await db.execute(
        select(CandidateHistory)
        .where(CandidateHistory.candidate_id == candidate_id)
        .order_by(CandidateHistory.created_at.desc())
    )
    return list(result.scalars().all())


async def update_candidate(
    db: AsyncSession,
    actor: Profile,
    candidate_id: uuid.UUID,
    data: CandidateUpdate,
) -> Candidate:
    """
    Apply a partial update.

    Fields left out (and a null resume_url) keep their stored values. A new
    stage is applied last through ``change_stage``.
    """
    candidate = await get_candidate_for_actor(db, actor, candidate_id)

    changes = data.model_dump(exclude_unset=True)
    new_stage = changes.pop("stage", None)

    for required in ("full_name", "email", "resume_url", "years_of_experience", "skills", "rating", "job_id"):
        if changes.get(required) is None:
            changes.pop(required, None)

    if "job_id" in changes and changes["job_id"] != candidate.job_id:
        job = await get_job_for_actor(db, actor, changes["job_id"])
        candidate.job = job
    if "email" in changes:
        changes["email"] = str(changes["email"])
    if changes.get("notes"):
        changes["notes"] = sanitize_html(changes["notes"])

    for field, value in changes.items():
        setattr(candidate, field, value)

    await db.commit()
    await db.refresh(candidate)

    if new_stage is not None and new_stage != candidate.stage:
        candidate = await change_stage(db, actor, candidate_id, new_stage)

    return candidate


async def delete_candidate(
    db: AsyncSession,
    actor: Profile,
    candidate_id: uuid.UUID,
    audit: Optional[AuditContext] = None,
) -> None:
    candidate = await get_candidate_for_actor(db, actor, candidate_id)

    await db.delete(candidate)
    create_audit_log(
        db, actor.id, AuditAction.DELETE, ResourceType.CANDIDATE, candidate_id,
        {"job_id": str(candidate.job_id)}, audit,
    )
    await db.commit()

    logger.info(f"Candidate {candidate_id} deleted by {actor.id}")


async def change_stage(
    db: AsyncSession,
    actor: Profile,
    candidate_id: uuid.UUID,
    new_stage: CandidateStage,
    notes: Optional[str] = None,
    audit: Optional[AuditContext] = None,
) -> Candidate:
    """
    Move a candidate to ``new_stage``.

    Concurrent moves are last-write-wins on the stage column. Moving to the
    current stage changes nothing.
    """
    candidate = await get_candidate_for_actor(db, actor, candidate_id)
    from_stage = candidate.stage

    if from_stage == new_stage:
        return candidate

    candidate.stage = new_stage
    db.add(CandidateHistory(
        candidate_id=candidate.id,
        changed_by=actor.id,
        from_stage=from_stage,
        to_stage=new_stage,
        notes=notes,
    ))
    create_audit_log(
        db, actor.id, AuditAction.MOVE_STAGE, ResourceType.CANDIDATE, candidate.id,
        {"from_stage": from_stage.value, "to_stage": new_stage.value}, audit,
    )
    await db.commit()
    await db.refresh(candidate)

    logger.info(f"Candidate {candidate.id} moved {from_stage.value} -> {new_stage.value}")

    await run_side_effect(
        db,
        notifications.notify_stage_change(
            db, candidate.customer_id, candidate.full_name,
            from_stage.value, new_stage.value, candidate.id,
        ),
        f"send stage notification for candidate {candidate.id}",
        candidate,
    )
    return candidate


async def move_card(
    db: AsyncSession,
    actor: Profile,
    candidate_id: uuid.UUID,
    stage: CandidateStage,
    audit: Optional[AuditContext] = None,
) -> Candidate:
    """Persist a card dropped on a board column."""
    return await change_stage(db, actor, candidate_id, stage, audit=audit)


async def get_board(
    db: AsyncSession,
    actor: Profile,
    job_id: Optional[uuid.UUID] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Board data: the tenant's active jobs and one column per board stage.

    Candidates are fetched in one query and grouped in memory, newest first.
    """
    jobs_result = await db.execute(
        select(Job.id, Job.title)
        .where(tenant_filter(Job, actor), Job.status == JobStatus.ACTIVE)
        .order_by(Job.created_at.desc())
    )
    jobs = [{"id": job_id_, "title": title} for job_id_, title in jobs_result.all()]

    order = get_stage_order()
    filters = [tenant_filter(Candidate, actor), Candidate.stage.in_(order)]
    if job_id:
        filters.append(Candidate.job_id == job_id)
    if search:
        filters.append(_search_clause(search))

    result = await db.execute(
        select(Candidate).where(*filters).order_by(Candidate.created_at.desc())
    )

    grouped: Dict[CandidateStage, List[Candidate]] = {stage: [] for stage in order}
    for candidate in result.scalars().all():
        grouped[candidate.stage].append(candidate)

    return {
        "jobs": jobs,
        "columns": [
            {
                "stage": stage,
                "label": get_stage_label(stage),
                "color": get_stage_color(stage),
                "count": len(grouped[stage]),
                "candidates": grouped[stage],
            }
            for stage in order
        ],
    }


async def upload_resume(
    db: AsyncSession,
    actor: Profile,
    candidate_id: uuid.UUID,
    filename: str,
    content_type: Optional[str],
    content: bytes,
    audit: Optional[AuditContext] = None,
) -> Dict[str, Any]:
    """
    Validate and store a resume, then point the candidate at it.

    Objects land at ``<customer_id>/<random>.<ext>`` in the resumes bucket.
    """
    candidate = await get_candidate_for_actor(db, actor, candidate_id)

    for check in (validate_file_extension(filename), validate_file(len(content), content_type)):
        if not check.valid:
            raise ValidationFailed(check.error)

    key = build_resume_key(candidate.customer_id, filename)
    await get_resume_storage().upload(content, key, content_type=content_type)

    candidate.resume_url = key
    create_audit_log(
        db, actor.id, AuditAction.UPLOAD, ResourceType.RESUME, candidate.id,
        {"key": key, "size": len(content)}, audit,
    )
    await db.commit()

    logger.info(f"Resume uploaded for candidate {candidate.id}: {key}")
    return {"candidate_id": candidate.id, "resume_url": key}
