"""Notification schemas."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from database.models.notifications import NotificationType


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    type: NotificationType
    title: str
    message: str
    read: bool
    data: Optional[dict[str, Any]] = None
    created_at: datetime
    read_at: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    unread_count: int


class UnreadCountResponse(BaseModel):
    count: int


class NotificationMarkRequest(BaseModel):
    """Either one notification id or ``mark_all_read``."""

    notification_id: Optional[UUID] = None
    mark_all_read: bool = Field(default=False)
