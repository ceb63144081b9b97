"""
Profile Models

A profile mirrors one hosted-auth user. Its role gates every authorization
check made by the API.
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, Uuid, func, Enum as SQLEnum

from database.engine import Base


# ==================== Profile Role ===================== #
class ProfileRole(str, PyEnum):
    ADMIN = "admin"  # platform admin, sees every tenant
    CUSTOMER = "customer"  # tenant organization account


class Profile(Base):
    """Identity record for a hosted-auth user."""

    __tablename__ = "profiles"

    # Same id as the auth user, never generated here
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    role: Mapped[ProfileRole] = mapped_column(
        SQLEnum(
            ProfileRole,
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ProfileRole.CUSTOMER,
        index=True,
    )
    full_name: Mapped[str | None] = mapped_column(String(255))
    company_name: Mapped[str | None] = mapped_column(String(255))
    avatar_url: Mapped[str | None] = mapped_column(String(1024))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, role={self.role})>"
