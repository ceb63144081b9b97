"""
Job posting management endpoints.

Provides REST API for listing, creating, editing and removing the jobs of
the signed-in tenant.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_audit_context, get_pagination, require_authenticated_user
from api.schemas.common import PaginatedResponse, PaginationParams
from api.schemas.jobs import JobCreate, JobResponse, JobUpdate
from api.services import jobs as job_service
from core.middleware.authorization import Permission, require_permission
from core.security import AuditContext
from database.engine import get_db
from database.models.jobs import JobStatus
from database.models.profiles import Profile

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get(
    "",
    response_model=PaginatedResponse[JobResponse],
    summary="List Jobs",
    description="List the tenant's job postings with candidate counts. Requires jobs:read permission.",
    dependencies=[Depends(require_permission(Permission.JOBS_READ))],
)
async def list_jobs(
    status: Optional[JobStatus] = Query(None, description="Filter by status (active, closed, draft)"),
    search: Optional[str] = Query(None, description="Search by title"),
    pagination: PaginationParams = Depends(get_pagination),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    result = await job_service.list_jobs(db, current_user, pagination, status=status, search=search)
    return PaginatedResponse.create(result["items"], result["total"], pagination)


@router.post(
    "",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Job",
    dependencies=[Depends(require_permission(Permission.JOBS_WRITE))],
)
async def create_job(
    data: JobCreate,
    current_user: Profile = Depends(require_authenticated_user),
    audit: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    """Create a job owned by the signed-in tenant."""
    return await job_service.create_job(db, current_user, data, audit)


@router.get(
    "/{job_id}",
    response_model=JobResponse,
    summary="Get Job Details",
    dependencies=[Depends(require_permission(Permission.JOBS_READ))],
)
async def get_job(
    job_id: UUID = Path(..., description="Job ID"),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.get_job(db, current_user, job_id)


@router.patch(
    "/{job_id}",
    response_model=JobResponse,
    summary="Update Job",
    dependencies=[Depends(require_permission(Permission.JOBS_WRITE))],
)
async def update_job(
    data: JobUpdate,
    job_id: UUID = Path(..., description="Job ID"),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.update_job(db, current_user, job_id, data)


@router.delete(
    "/{job_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Job",
    description="Delete a job together with its candidates and interviews. Requires jobs:delete permission.",
    dependencies=[Depends(require_permission(Permission.JOBS_DELETE))],
)
async def delete_job(
    job_id: UUID = Path(..., description="Job ID"),
    current_user: Profile = Depends(require_authenticated_user),
    audit: AuditContext = Depends(get_audit_context),
    db: AsyncSession = Depends(get_db),
):
    await job_service.delete_job(db, current_user, job_id, audit)
