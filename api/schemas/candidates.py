"""Candidate, pipeline history and kanban board schemas."""

from datetime import datetime
from typing import Optional, Union
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from api.schemas.common import TimestampMixin
from core.utils.validators import parse_skills, validate_url
from database.models.candidates import CandidateStage


def _check_url(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if not v:
        return None
    is_valid, error = validate_url(v)
    if not is_valid:
        raise ValueError(error)
    return v


class CandidateFields(BaseModel):
    """Profile fields shared by create and update."""

    phone: Optional[str] = Field(None, max_length=50)
    linkedin_url: Optional[str] = Field(None, max_length=1024, description="LinkedIn profile URL")
    portfolio_url: Optional[str] = Field(None, max_length=1024, description="Portfolio website URL")
    resume_url: Optional[str] = Field(None, max_length=1024, description="Storage path of the resume")
    location: Optional[str] = Field(None, max_length=255)
    current_company: Optional[str] = Field(None, max_length=255)
    current_title: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=10000)

    @field_validator("linkedin_url", "portfolio_url", mode="before")
    @classmethod
    def validate_links(cls, v):
        return _check_url(v)


class CandidateCreate(CandidateFields):
    """Schema for adding a candidate to a job."""

    job_id: UUID
    full_name: str = Field(min_length=2, max_length=255, description="Candidate's full name")
    email: EmailStr
    years_of_experience: int = Field(default=0, ge=0, le=80)
    skills: list[str] = Field(default_factory=list, description="List or comma separated string")
    rating: int = Field(default=1, ge=0, le=5)

    @field_validator("full_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("skills", mode="before")
    @classmethod
    def split_skills(cls, v: Union[str, list[str], None]) -> list[str]:
        return parse_skills(v)


class CandidateUpdate(CandidateFields):
    """Partial update. A changed stage is recorded in the history."""

    job_id: Optional[UUID] = None
    full_name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    years_of_experience: Optional[int] = Field(None, ge=0, le=80)
    skills: Optional[list[str]] = None
    rating: Optional[int] = Field(None, ge=0, le=5)
    stage: Optional[CandidateStage] = None

    @field_validator("skills", mode="before")
    @classmethod
    def split_skills(cls, v):
        return None if v is None else parse_skills(v)


class StageChangeRequest(BaseModel):
    stage: CandidateStage
    notes: Optional[str] = Field(None, max_length=2000)


class BoardMoveRequest(BaseModel):
    """A card dropped on a column."""

    candidate_id: UUID
    stage: CandidateStage


class CandidateResponse(TimestampMixin):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    job_id: UUID
    customer_id: UUID
    job_title: Optional[str] = None
    full_name: str
    email: str
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    resume_url: Optional[str] = None
    stage: CandidateStage
    location: Optional[str] = None
    current_company: Optional[str] = None
    current_title: Optional[str] = None
    years_of_experience: int = 0
    skills: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    rating: int = 1


class CandidateHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    candidate_id: UUID
    changed_by: Optional[UUID] = None
    from_stage: Optional[CandidateStage] = None
    to_stage: Optional[CandidateStage] = None
    notes: Optional[str] = None
    created_at: datetime


class CandidateInterviewSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    scheduled_at: datetime
    duration_minutes: int
    type: str
    status: str
    meeting_link: Optional[str] = None


class CandidateDetailResponse(CandidateResponse):
    history: list[CandidateHistoryResponse] = Field(default_factory=list)
    interviews: list[CandidateInterviewSummary] = Field(default_factory=list)


class BoardJob(BaseModel):
    id: UUID
    title: str


class BoardColumn(BaseModel):
    stage: CandidateStage
    label: str
    color: dict[str, str]
    count: int
    candidates: list[CandidateResponse]


class BoardResponse(BaseModel):
    jobs: list[BoardJob]
    columns: list[BoardColumn]


class ResumeUploadResponse(BaseModel):
    candidate_id: UUID
    resume_url: str
