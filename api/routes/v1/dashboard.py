"""Dashboard endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_authenticated_user
from api.schemas.profiles import DashboardResponse
from api.services import dashboard as dashboard_service
from core.middleware.authorization import Permission, require_permission
from database.engine import get_db
from database.models.profiles import Profile

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "",
    response_model=DashboardResponse,
    summary="Dashboard",
    description="Job and candidate totals, recent candidates and upcoming interviews.",
    dependencies=[Depends(require_permission(Permission.CANDIDATES_READ, Permission.JOBS_READ))],
)
async def get_dashboard(
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    return await dashboard_service.get_dashboard(db, current_user)
