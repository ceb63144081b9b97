"""
Search endpoints.

Quick search for the top bar, faceted candidate search, autocomplete
suggestions and multi-criteria search.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_pagination, require_authenticated_user, require_feature
from api.schemas.candidates import CandidateResponse
from api.schemas.common import PaginationParams
from api.schemas.search import (
    AdvancedSearchRequest,
    CandidateSearchFilters,
    CandidateSearchResponse,
    SearchResult,
    SearchType,
    SuggestionsResponse,
)
from api.services import search as search_service
from core.config import settings
from core.middleware.authorization import Permission, require_permission
from database.engine import get_db
from database.models.candidates import CandidateStage
from database.models.profiles import Profile

router = APIRouter(
    prefix="/search",
    tags=["search"],
    dependencies=[
        Depends(require_feature("enable_search")),
        Depends(require_permission(Permission.CANDIDATES_READ)),
    ],
)


@router.get("", summary="Quick Search")
async def quick_search(
    q: str = Query("", description="Search text; shorter than the minimum returns nothing"),
    type: SearchType = Query("candidates"),
    limit: int = Query(10, ge=1),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    results = await search_service.quick_search(db, current_user, q, type=type, limit=limit)
    return {"results": [SearchResult(**r) for r in results]}


@router.get("/candidates", response_model=CandidateSearchResponse, summary="Search Candidates")
async def search_candidates(
    q: Optional[str] = Query(None),
    job_id: Optional[UUID] = Query(None),
    stages: Optional[List[CandidateStage]] = Query(None),
    rating_min: Optional[int] = Query(None, ge=0, le=5),
    rating_max: Optional[int] = Query(None, ge=0, le=5),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    filters = CandidateSearchFilters(
        query=q,
        job_id=job_id,
        stages=stages,
        rating_min=rating_min,
        rating_max=rating_max,
        date_from=date_from,
        date_to=date_to,
    )
    return await search_service.search_candidates(db, current_user, filters, pagination)


@router.get("/suggestions", response_model=SuggestionsResponse, summary="Suggestions")
async def get_suggestions(
    q: str = Query(""),
    limit: int = Query(5, ge=1),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    limit = min(limit, settings.max_search_results)
    return SuggestionsResponse(
        suggestions=await search_service.get_suggestions(db, current_user, q, limit=limit)
    )


@router.post("/advanced", response_model=List[CandidateResponse], summary="Advanced Search")
async def advanced_search(
    criteria: AdvancedSearchRequest,
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    return await search_service.advanced_search(db, current_user, criteria)
