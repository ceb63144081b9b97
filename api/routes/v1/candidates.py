"""
Candidate management endpoints.

Covers candidate CRUD, pipeline stage changes with their history, and
resume uploads.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Path, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_audit_context, get_pagination, require_authenticated_user
from api.schemas.candidates import (
    CandidateCreate,
    CandidateDetailResponse,
    CandidateHistoryResponse,
    CandidateResponse,
    CandidateUpdate,
    ResumeUploadResponse,
    StageChangeRequest,
)
from api.schemas.common import PaginatedResponse, PaginationParams
from api.services import candidates as candidate_service
from core.config import settings
from core.exceptions import ValidationFailed
from core.middleware.authorization import Permission, require_permission
from core.security import AuditAction, AuditContext, ResourceType, audit_log
from database.engine import get_db
from database.models.candidates import CandidateStage
from database.models.profiles import Profile

router = APIRouter(prefix="/candidates", tags=["candidates"])

UPLOAD_CHUNK_SIZE = 64 * 1024


@router.get(
    "",
    response_model=PaginatedResponse[CandidateResponse],
    summary="List Candidates",
    description="List the tenant's candidates. Requires candidates:read permission.",
    dependencies=[Depends(require_permission(Permission.CANDIDATES_READ))],
)
async def list_candidates(
    job_id: Optional[UUID] = Query(None, description="Filter by job"),
    stage: Optional[CandidateStage] = Query(None, description="Filter by pipeline stage"),
    search: Optional[str] = Query(None, description="Search name or email"),
    pagination: PaginationParams = Depends(get_pagination),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    result = await candidate_service.list_candidates(
        db, current_user, pagination, job_id=job_id, stage=stage, search=search
    )
    return PaginatedResponse.create(result["items"], result["total"], pagination)


@router.post(
    "",
    response_model=CandidateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add Candidate",
    description="Add a candidate to one of the tenant's jobs. The candidate starts in 'applied'.",
    dependencies=[Depends(require_permission(Permission.CANDIDATES_WRITE))],
)
async def create_candidate(
    data: CandidateCreate,
    current_user: Profile = Depends(require_authenticated_user),
    audit: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    return await candidate_service.create_candidate(db, current_user, data, audit)


@router.get(
    "/{candidate_id}",
    response_model=CandidateDetailResponse,
    summary="Get Candidate",
    description="Candidate profile with job title, stage history and interviews.",
    dependencies=[Depends(require_permission(Permission.CANDIDATES_READ))],
)
@audit_log(AuditAction.VIEW, ResourceType.CANDIDATE, "candidate_id", contains_pii=True)
async def get_candidate(
    request: Request,
    candidate_id: UUID = Path(..., description="Candidate ID"),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    detail = await candidate_service.get_candidate_detail(db, current_user, candidate_id)
    return CandidateDetailResponse(
        **CandidateResponse.model_validate(detail["candidate"]).model_dump(),
        history=detail["history"],
        interviews=detail["interviews"],
    )


@router.patch(
    "/{candidate_id}",
    response_model=CandidateResponse,
    summary="Update Candidate",
    description="Partial update. A new stage is recorded in the history and notified.",
    dependencies=[Depends(require_permission(Permission.CANDIDATES_WRITE))],
)
async def update_candidate(
    data: CandidateUpdate,
    candidate_id: UUID = Path(..., description="Candidate ID"),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    return await candidate_service.update_candidate(db, current_user, candidate_id, data)


@router.delete(
    "/{candidate_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Candidate",
    dependencies=[Depends(require_permission(Permission.CANDIDATES_DELETE))],
)
async def delete_candidate(
    candidate_id: UUID = Path(..., description="Candidate ID"),
    current_user: Profile = Depends(require_authenticated_user),
    audit: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    await candidate_service.delete_candidate(db, current_user, candidate_id, audit)


@router.patch(
    "/{candidate_id}/stage",
    response_model=CandidateResponse,
    summary="Change Stage",
    description="Move a candidate along the pipeline. Moving to the current stage changes nothing.",
    dependencies=[Depends(require_permission(Permission.CANDIDATES_WRITE))],
)
async def change_stage(
    data: StageChangeRequest,
    candidate_id: UUID = Path(..., description="Candidate ID"),
    current_user: Profile = Depends(require_authenticated_user),
    audit: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    return await candidate_service.change_stage(
        db, current_user, candidate_id, data.stage, notes=data.notes, audit=audit
    )


@router.get(
    "/{candidate_id}/history",
    response_model=List[CandidateHistoryResponse],
    summary="Stage History",
    dependencies=[Depends(require_permission(Permission.CANDIDATES_READ))],
)
async def get_history(
    candidate_id: UUID = Path(..., description="Candidate ID"),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    return await candidate_service.get_history(db, current_user, candidate_id)


async def read_upload(file: UploadFile) -> bytes:
    """Read an upload, giving up as soon as it passes MAX_FILE_SIZE_MB."""
    limit = settings.max_file_size_mb * 1024 * 1024
    too_large = f"File size exceeds maximum allowed size of {settings.max_file_size_mb}MB"

    if file.size is not None and file.size > limit:
        raise ValidationFailed(too_large)

    chunks: List[bytes] = []
    total = 0
    while True:
        chunk = await file.read(UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise ValidationFailed(too_large)
        chunks.append(chunk)
    return b"".join(chunks)


@router.post(
    "/{candidate_id}/resume",
    response_model=ResumeUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Resume",
    description="Upload a PDF or Word resume (max size from MAX_FILE_SIZE_MB).",
    dependencies=[Depends(require_permission(Permission.CANDIDATES_WRITE))],
)
async def upload_resume(
    candidate_id: UUID = Path(..., description="Candidate ID"),
    file: UploadFile = File(..., description="Resume file"),
    current_user: Profile = Depends(require_authenticated_user),
    audit: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    content = await read_upload(file)
    return await candidate_service.upload_resume(
        db,
        current_user,
        candidate_id,
        file.filename or "",
        file.content_type,
        content,
        audit,
    )
