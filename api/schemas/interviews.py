"""Interview scheduling schemas."""

from datetime import date, datetime
from typing import Literal, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.schemas.common import TimestampMixin
from core.config import settings
from database.models.interviews import InterviewStatus, InterviewType


class InterviewCreate(BaseModel):
    """
    Schedule an interview for a candidate.

    Duration bounds are checked by the service so the configured limits
    apply.
    """

    candidate_id: UUID
    scheduled_at: datetime
    duration_minutes: int = Field(default=settings.default_interview_duration)
    type: InterviewType = InterviewType.VIDEO
    location: Optional[str] = Field(None, max_length=255)
    meeting_link: Optional[str] = Field(None, max_length=1024)
    notes: Optional[str] = Field(None, max_length=5000)

    @field_validator("meeting_link", "location", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


class InterviewUpdate(BaseModel):
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    type: Optional[InterviewType] = None
    location: Optional[str] = Field(None, max_length=255)
    meeting_link: Optional[str] = Field(None, max_length=1024)
    notes: Optional[str] = Field(None, max_length=5000)
    status: Optional[InterviewStatus] = None
    feedback: Optional[str] = Field(None, max_length=10000)


class InterviewResponse(TimestampMixin):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    candidate_id: UUID
    job_id: UUID
    customer_id: UUID
    candidate_name: Optional[str] = None
    job_title: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: int
    type: InterviewType
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    interviewers: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    status: InterviewStatus
    feedback: Optional[str] = None


class TimeSlot(BaseModel):
    time: str = Field(description="HH:MM, UTC")
    start: datetime
    available: bool


class SlotsResponse(BaseModel):
    date: date
    slots: list[TimeSlot]


class SchedulableCandidate(BaseModel):
    id: UUID
    full_name: str
    email: str
    stage: str
    job_id: UUID
    job_title: Optional[str] = None


class MeetingLinkRequest(BaseModel):
    provider: Literal["meet", "zoom", "teams"] = "meet"
    meeting_id: Optional[str] = Field(None, max_length=64)


class MeetingLinkResponse(BaseModel):
    provider: str
    meeting_link: str
