"""Job service functions."""

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from api.schemas.jobs import JobCreate, JobUpdate
from core.exceptions import NotFoundError
from core.middleware.authorization import tenant_filter
from core.security import AuditAction, AuditContext, ResourceType, create_audit_log, sanitize_html
from database.models.candidates import Candidate
from database.models.jobs import Job, JobStatus
from database.models.profiles import Profile

logger = logging.getLogger(__name__)


def job_to_dict(job: Job, candidate_count: int = 0) -> Dict[str, Any]:
    return {
        "id": job.id,
        "customer_id": job.customer_id,
        "title": job.title,
        "description": job.description,
        "location": job.location,
        "employment_type": job.employment_type,
        "status": job.status,
        "candidate_count": candidate_count,
        "created_at": job.created_at,
        "updated_at": job.updated_at,
    }


async def _candidate_count(db: AsyncSession, job_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count()).select_from(Candidate).where(Candidate.job_id == job_id)
    )
    return result.scalar() or 0


async def get_job_for_actor(db: AsyncSession, actor: Profile, job_id: uuid.UUID) -> Job:
    """The job if it is in the actor's tenant, else NotFoundError."""
    result = await db.execute(
        select(Job).where(Job.id == job_id, tenant_filter(Job, actor))
    )
    job = result.scalar_one_or_none()
    if not job:
        raise NotFoundError("Job not found")
    return job


async def list_jobs(
    db: AsyncSession,
    actor: Profile,
    pagination: PaginationParams,
    status: Optional[JobStatus] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    """Tenant jobs, newest first, each with its candidate count."""
    filters = [tenant_filter(Job, actor)]
    if status:
        filters.append(Job.status == status)
    if search:
        filters.append(Job.title.ilike(f"%{search}%"))

    total_result = await db.execute(select(func.count()).select_from(Job).where(*filters))
    total = total_result.scalar() or 0

    counts = (
        select(Candidate.job_id, func.count(Candidate.id).label("candidate_count"))
        .group_by(Candidate.job_id)
        .subquery()
    )
    result = await db.execute(
        select(Job, func.coalesce(counts.c.candidate_count, 0))
        .outerjoin(counts, counts.c.job_id == Job.id)
        .where(*filters)
        .order_by(Job.created_at.desc())
        .limit(pagination.page_size)
        .offset(pagination.offset)
    )

    return {
        "items": [job_to_dict(job, count) for job, count in result.all()],
        "total": total,
    }


async def get_job(db: AsyncSession, actor: Profile, job_id: uuid.UUID) -> Dict[str, Any]:
    job = await get_job_for_actor(db, actor, job_id)
    return job_to_dict(job, await _candidate_count(db, job.id))


async def create_job(
    db: AsyncSession,
    actor: Profile,
    data: JobCreate,
    audit: Optional[AuditContext] = None,
) -> Dict[str, Any]:
    job = Job(
        customer_id=actor.id,
        title=data.title,
        description=sanitize_html(data.description) if data.description else None,
        location=data.location,
        employment_type=data.employment_type,
        status=data.status,
    )
    db.add(job)
    await db.flush()

    create_audit_log(
        db, actor.id, AuditAction.CREATE, ResourceType.JOB, job.id,
        {"title": job.title}, audit,
    )
    await db.commit()
    await db.refresh(job)

    logger.info(f"Job {job.id} created by {actor.id}")
    return job_to_dict(job)


async def update_job(
    db: AsyncSession,
    actor: Profile,
    job_id: uuid.UUID,
    data: JobUpdate,
) -> Dict[str, Any]:
    job = await get_job_for_actor(db, actor, job_id)

    changes = data.model_dump(exclude_unset=True)
    for required in ("title", "status"):
        if changes.get(required) is None:
            changes.pop(required, None)
    if changes.get("description"):
        changes["description"] = sanitize_html(changes["description"])

    for field, value in changes.items():
        setattr(job, field, value)

    await db.commit()
    await db.refresh(job)

    logger.info(f"Job {job.id} updated: {', '.join(changes) or 'no changes'}")
    return job_to_dict(job, await _candidate_count(db, job.id))


async def delete_job(
    db: AsyncSession,
    actor: Profile,
    job_id: uuid.UUID,
    audit: Optional[AuditContext] = None,
) -> None:
    """Delete a job; its candidates and interviews cascade."""
    job = await get_job_for_actor(db, actor, job_id)

    await db.delete(job)
    create_audit_log(
        db, actor.id, AuditAction.DELETE, ResourceType.JOB, job_id,
        {"title": job.title}, audit,
    )
    await db.commit()

    logger.info(f"Job {job_id} deleted by {actor.id}")
