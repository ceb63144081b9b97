"""Profile, admin and dashboard schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from database.models.profiles import ProfileRole


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    role: ProfileRole
    full_name: Optional[str] = None
    company_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime


class MeResponse(ProfileResponse):
    permissions: list[str] = Field(default_factory=list)


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=255)
    company_name: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=1024)


class AdminUserResponse(ProfileResponse):
    job_count: int = 0
    candidate_count: int = 0


class CreateUserRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    role: ProfileRole = ProfileRole.CUSTOMER


class DeleteUserRequest(BaseModel):
    """Parsed by the service so a malformed id gets the flat admin error."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    userId: Optional[str] = None


class RoleUpdateRequest(BaseModel):
    role: ProfileRole


class PlatformStats(BaseModel):
    profiles: int
    customers: int
    admins: int
    jobs: int
    candidates: int
    interviews: int


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: Optional[UUID] = None
    action: str
    resource: str
    resource_id: Optional[str] = None
    details: Optional[dict] = None
    ip_address: Optional[str] = None
    created_at: datetime


class RecentCandidate(BaseModel):
    id: UUID
    full_name: str
    stage: str
    job_title: Optional[str] = None
    created_at: datetime


class UpcomingInterview(BaseModel):
    id: UUID
    scheduled_at: datetime
    type: str
    candidate_name: Optional[str] = None
    job_title: Optional[str] = None


class DashboardResponse(BaseModel):
    job_count: int
    active_job_count: int
    candidate_count: int
    hired_count: int
    recent_candidates: list[RecentCandidate]
    upcoming_interviews: list[UpcomingInterview]
