"""
Search service

Quick search across candidates and jobs, faceted candidate search,
autocomplete suggestions and multi-criteria search. Every query is scoped
to the searching user's own rows.
"""

import logging
from collections import Counter
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from api.schemas.search import AdvancedSearchRequest, CandidateSearchFilters, SearchType
from core.config import settings
from database.models.candidates import Candidate
from database.models.jobs import Job, JobStatus
from database.models.profiles import Profile

logger = logging.getLogger(__name__)

ALL_TYPES_LIMIT = 5


def _pattern(term: str) -> str:
    return f"%{term.strip()}%"


def _too_short(q: Optional[str]) -> bool:
    return not q or len(q.strip()) < settings.min_search_length


def rating_bucket(rating: Optional[int]) -> str:
    rating = rating or 0
    return "Unrated" if rating == 0 else f"{rating}+ stars"


async def quick_search(
    db: AsyncSession,
    actor: Profile,
    q: str,
    type: SearchType = "candidates",
    limit: int = 10,
) -> List[Dict[str, Any]]:
    """
    Results shaped ``{id, name, email?, type, subtitle}``.

    ``all`` returns up to five candidates by name and five jobs by title.
    """
    if _too_short(q):
        return []

    pattern = _pattern(q)
    limit = min(limit, settings.max_search_results)
    results: List[Dict[str, Any]] = []

    if type == "candidates":
        rows = await db.execute(
            select(Candidate)
            .where(
                Candidate.customer_id == actor.id,
                or_(
                    Candidate.full_name.ilike(pattern),
                    Candidate.email.ilike(pattern),
                    Candidate.current_title.ilike(pattern),
                    Candidate.current_company.ilike(pattern),
                ),
            )
            .limit(limit)
        )
        for candidate in rows.scalars().all():
            results.append({
                "id": candidate.id,
                "name": candidate.full_name,
                "email": candidate.email,
                "type": "candidate",
                "subtitle": candidate.current_title or candidate.job_title or "",
            })
        return results

    if type == "jobs":
        rows = await db.execute(
            select(Job.id, Job.title, Job.status)
            .where(
                Job.customer_id == actor.id,
                Job.status == JobStatus.ACTIVE,
                Job.title.ilike(pattern),
            )
            .limit(limit)
        )
        return [
            {"id": job_id, "name": title, "type": "job", "subtitle": status.value}
            for job_id, title, status in rows.all()
        ]

    candidate_rows = await db.execute(
        select(Candidate.id, Candidate.full_name, Candidate.email, Candidate.current_title)
        .where(Candidate.customer_id == actor.id, Candidate.full_name.ilike(pattern))
        .limit(ALL_TYPES_LIMIT)
    )
    job_rows = await db.execute(
        select(Job.id, Job.title, Job.status)
        .where(Job.customer_id == actor.id, Job.title.ilike(pattern))
        .limit(ALL_TYPES_LIMIT)
    )

    for candidate_id, name, email, title in candidate_rows.all():
        results.append({
            "id": candidate_id,
            "name": name,
            "email": email,
            "type": "candidate",
            "subtitle": title or "",
        })
    for job_id, title, status in job_rows.all():
        results.append({"id": job_id, "name": title, "type": "job", "subtitle": status.value})
    return results


async def search_candidates(
    db: AsyncSession,
    actor: Profile,
    filters: CandidateSearchFilters,
    pagination: PaginationParams,
) -> Dict[str, Any]:
    """
    Filtered candidate page plus facets.

    Facets count every candidate matching the query on name, email or
    title; the other filters do not narrow them.
    """
    conditions = [Candidate.customer_id == actor.id]

    term = (filters.query or "").strip()
    if term:
        pattern = _pattern(term)
        conditions.append(or_(
            Candidate.full_name.ilike(pattern),
            Candidate.email.ilike(pattern),
            Candidate.current_title.ilike(pattern),
            Candidate.current_company.ilike(pattern),
            Candidate.location.ilike(pattern),
            Candidate.skills.contains([term.lower()]),
            Candidate.notes.ilike(pattern),
        ))
    if filters.job_id:
        conditions.append(Candidate.job_id == filters.job_id)
    if filters.stages:
        conditions.append(Candidate.stage.in_(filters.stages))
    if filters.rating_min is not None:
        conditions.append(Candidate.rating >= filters.rating_min)
    if filters.rating_max is not None:
        conditions.append(Candidate.rating <= filters.rating_max)
    if filters.date_from:
        conditions.append(Candidate.created_at >= filters.date_from)
    if filters.date_to:
        conditions.append(Candidate.created_at <= filters.date_to)

    total_result = await db.execute(
        select(func.count()).select_from(Candidate).where(*conditions)
    )
    result = await db.execute(
        select(Candidate)
        .where(*conditions)
        .order_by(Candidate.created_at.desc())
        .limit(pagination.page_size)
        .offset(pagination.offset)
    )

    return {
        "candidates": list(result.scalars().all()),
        "total": total_result.scalar() or 0,
        "facets": await get_search_facets(db, actor, term),
    }


async def get_search_facets(
    db: AsyncSession, actor: Profile, term: Optional[str] = None
) -> Dict[str, Dict[str, int]]:
    query = (
        select(Candidate.stage, Candidate.rating, Job.title)
        .outerjoin(Job, Job.id == Candidate.job_id)
        .where(Candidate.customer_id == actor.id)
    )
    if term:
        pattern = _pattern(term)
        query = query.where(or_(
            Candidate.full_name.ilike(pattern),
            Candidate.email.ilike(pattern),
            Candidate.current_title.ilike(pattern),
        ))

    by_job: Counter = Counter()
    by_stage: Counter = Counter()
    by_rating: Counter = Counter()

    result = await db.execute(query)
    for stage, rating, job_title in result.all():
        by_job[job_title or "Unknown"] += 1
        by_stage[stage.value] += 1
        by_rating[rating_bucket(rating)] += 1

    return {"by_job": dict(by_job), "by_stage": dict(by_stage), "by_rating": dict(by_rating)}


async def get_suggestions(
    db: AsyncSession, actor: Profile, q: str, limit: int = 5
) -> List[str]:
    """Candidate names, then active job titles, cut to ``limit``."""
    if _too_short(q):
        return []

    pattern = _pattern(q)
    names = await db.execute(
        select(Candidate.full_name)
        .where(Candidate.customer_id == actor.id, Candidate.full_name.ilike(pattern))
        .limit(limit)
    )
    titles = await db.execute(
        select(Job.title)
        .where(
            Job.customer_id == actor.id,
            Job.status == JobStatus.ACTIVE,
            Job.title.ilike(pattern),
        )
        .limit(limit)
    )

    suggestions = list(names.scalars().all()) + list(titles.scalars().all())
    return suggestions[:limit]


async def advanced_search(
    db: AsyncSession, actor: Profile, criteria: AdvancedSearchRequest
) -> List[Candidate]:
    """Candidates with every listed skill, the location, the experience range and any listed company or title."""
    query = select(Candidate).where(Candidate.customer_id == actor.id)

    if criteria.skills:
        query = query.where(Candidate.skills.contains(criteria.skills))
    if criteria.location:
        query = query.where(Candidate.location.ilike(_pattern(criteria.location)))
    if criteria.experience_min is not None:
        query = query.where(Candidate.years_of_experience >= criteria.experience_min)
    if criteria.experience_max is not None:
        query = query.where(Candidate.years_of_experience <= criteria.experience_max)
    if criteria.companies:
        query = query.where(Candidate.current_company.in_(criteria.companies))
    if criteria.titles:
        query = query.where(Candidate.current_title.in_(criteria.titles))

    result = await db.execute(query.order_by(Candidate.created_at.desc()))
    return list(result.scalars().all())
