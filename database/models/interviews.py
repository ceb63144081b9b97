"""
Interview Models
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Text,
    Integer,
    DateTime,
    ForeignKey,
    Uuid,
    Index,
    func,
    Enum as SQLEnum,
)
from sqlalchemy.dialects.postgresql import ARRAY

from database.engine import Base

if TYPE_CHECKING:
    from database.models.candidates import Candidate
    from database.models.jobs import Job


class InterviewType(str, PyEnum):
    PHONE = "phone"
    VIDEO = "video"
    ONSITE = "onsite"
    TECHNICAL = "technical"


class InterviewStatus(str, PyEnum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class Interview(Base):
    """Scheduled conversation with a candidate."""

    __tablename__ = "interviews"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    candidate_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )

    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    type: Mapped[InterviewType] = mapped_column(
        SQLEnum(
            InterviewType,
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=InterviewType.VIDEO,
    )
    location: Mapped[str | None] = mapped_column(String(255))
    meeting_link: Mapped[str | None] = mapped_column(String(1024))
    interviewers: Mapped[list[str]] = mapped_column(ARRAY(String(64)), nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(Text)
    status: Mapped[InterviewStatus] = mapped_column(
        SQLEnum(
            InterviewStatus,
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=InterviewStatus.SCHEDULED,
        index=True,
    )
    feedback: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    candidate: Mapped["Candidate"] = relationship("Candidate", lazy="selectin")
    job: Mapped["Job"] = relationship("Job", lazy="selectin")

    __table_args__ = (
        Index("idx_interviews_customer_scheduled", "customer_id", "scheduled_at"),
    )

    @property
    def candidate_name(self) -> str | None:
        return self.candidate.full_name if self.candidate is not None else None

    @property
    def job_title(self) -> str | None:
        return self.job.title if self.job is not None else None
