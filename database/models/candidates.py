"""
Candidate Models

A candidate applies to one job of one tenant and moves through the hiring
pipeline. Every stage change is kept in candidate_history.
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
    CheckConstraint,
    func,
    Enum as SQLEnum,
)
from sqlalchemy.dialects.postgresql import ARRAY

from database.engine import Base

if TYPE_CHECKING:
    from database.models.jobs import Job


# ==================== Candidate Stage ===================== #
class CandidateStage(str, PyEnum):
    """Pipeline position: applied -> screening -> interview -> offer -> hired, or rejected."""

    APPLIED = "applied"
    SCREENING = "screening"
    INTERVIEW = "interview"
    OFFER = "offer"
    HIRED = "hired"
    REJECTED = "rejected"


def _stage_enum() -> SQLEnum:
    return SQLEnum(
        CandidateStage,
        native_enum=False,
        length=20,
        values_callable=lambda e: [m.value for m in e],
    )


class Candidate(Base):
    """Applicant tracked through a tenant's pipeline."""

    __tablename__ = "candidates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Contact
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))
    linkedin_url: Mapped[str | None] = mapped_column(String(1024))
    portfolio_url: Mapped[str | None] = mapped_column(String(1024))
    resume_url: Mapped[str | None] = mapped_column(String(1024))

    # Pipeline
    stage: Mapped[CandidateStage] = mapped_column(
        _stage_enum(), nullable=False, default=CandidateStage.APPLIED, index=True
    )

    # Profile
    location: Mapped[str | None] = mapped_column(String(255))
    current_company: Mapped[str | None] = mapped_column(String(255))
    current_title: Mapped[str | None] = mapped_column(String(255))
    years_of_experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    skills: Mapped[list[str]] = mapped_column(ARRAY(String(100)), nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(Text)
    rating: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    job: Mapped["Job"] = relationship("Job", lazy="selectin")

    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_candidates_rating"),
        Index("idx_candidates_customer_stage", "customer_id", "stage"),
    )

    @property
    def job_title(self) -> str | None:
        return self.job.title if self.job is not None else None

    def __repr__(self) -> str:
        return f"<Candidate(id={self.id}, stage={self.stage})>"


class CandidateHistory(Base):
    """One row per stage transition."""

    __tablename__ = "candidate_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    candidate_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    changed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="SET NULL")
    )
    from_stage: Mapped[CandidateStage | None] = mapped_column(_stage_enum())
    to_stage: Mapped[CandidateStage | None] = mapped_column(_stage_enum())
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
