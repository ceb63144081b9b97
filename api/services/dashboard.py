"""Dashboard summary for the signed-in tenant."""

import logging
from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.middleware.authorization import tenant_filter
from core.utils.datetime import now
from database.models.candidates import Candidate, CandidateStage
from database.models.interviews import Interview, InterviewStatus
from database.models.jobs import Job, JobStatus
from database.models.profiles import Profile

logger = logging.getLogger(__name__)

RECENT_CANDIDATES = 5
UPCOMING_INTERVIEWS = 10


async def get_dashboard(db: AsyncSession, actor: Profile) -> Dict[str, Any]:
    async def count(model, *conditions) -> int:
        result = await db.execute(
            select(func.count()).select_from(model).where(tenant_filter(model, actor), *conditions)
        )
        return result.scalar() or 0

    recent = await db.execute(
        select(Candidate)
        .where(tenant_filter(Candidate, actor))
        .order_by(Candidate.created_at.desc())
        .limit(RECENT_CANDIDATES)
    )
    upcoming = await db.execute(
        select(Interview)
        .where(
            tenant_filter(Interview, actor),
            Interview.status == InterviewStatus.SCHEDULED,
            Interview.scheduled_at >= now(),
        )
        .order_by(Interview.scheduled_at.asc())
        .limit(UPCOMING_INTERVIEWS)
    )

    return {
        "job_count": await count(Job),
        "active_job_count": await count(Job, Job.status == JobStatus.ACTIVE),
        "candidate_count": await count(Candidate),
        "hired_count": await count(Candidate, Candidate.stage == CandidateStage.HIRED),
        "recent_candidates": [
            {
                "id": c.id,
                "full_name": c.full_name,
                "stage": c.stage.value,
                "job_title": c.job_title,
                "created_at": c.created_at,
            }
            for c in recent.scalars().all()
        ],
        "upcoming_interviews": [
            {
                "id": i.id,
                "scheduled_at": i.scheduled_at,
                "type": i.type.value,
                "candidate_name": i.candidate_name,
                "job_title": i.job_title,
            }
            for i in upcoming.scalars().all()
        ],
    }
