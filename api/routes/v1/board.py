"""Kanban board endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_audit_context, require_authenticated_user
from api.schemas.candidates import BoardMoveRequest, BoardResponse, CandidateResponse
from api.services import candidates as candidate_service
from core.middleware.authorization import Permission, require_permission
from core.security import AuditContext
from database.engine import get_db
from database.models.profiles import Profile

router = APIRouter(prefix="/board", tags=["board"])


@router.get(
    "",
    response_model=BoardResponse,
    summary="Get Board",
    description="Active jobs and one column of candidates per pipeline stage.",
    dependencies=[Depends(require_permission(Permission.CANDIDATES_READ))],
)
async def get_board(
    job_id: Optional[UUID] = Query(None, description="Only this job's candidates"),
    search: Optional[str] = Query(None, description="Search name or email"),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    return await candidate_service.get_board(db, current_user, job_id=job_id, search=search)


@router.post(
    "/move",
    response_model=CandidateResponse,
    summary="Move Card",
    description=(
        "Persist a drag-drop move. The response is the stored candidate; "
        "on failure clients should refetch the board."
    ),
    dependencies=[Depends(require_permission(Permission.CANDIDATES_WRITE))],
)
async def move_card(
    data: BoardMoveRequest,
    current_user: Profile = Depends(require_authenticated_user),
    audit: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    return await candidate_service.move_card(
        db, current_user, data.candidate_id, data.stage, audit=audit
    )
