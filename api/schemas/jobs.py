"""Job schemas."""

from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.schemas.common import TimestampMixin
from database.models.jobs import EmploymentType, JobStatus


class JobBase(BaseModel):
    title: str = Field(min_length=1, max_length=255, description="Job title")
    description: Optional[str] = Field(None, max_length=20000)
    location: Optional[str] = Field(None, max_length=255)
    employment_type: Optional[EmploymentType] = None
    status: JobStatus = JobStatus.ACTIVE

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v


class JobCreate(JobBase):
    """Schema for creating a job."""


class JobUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=20000)
    location: Optional[str] = Field(None, max_length=255)
    employment_type: Optional[EmploymentType] = None
    status: Optional[JobStatus] = None


class JobResponse(JobBase, TimestampMixin):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    candidate_count: int = 0
