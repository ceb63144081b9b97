"""Notification service functions."""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import NotFoundError
from core.realtime import broker
from core.utils.datetime import now
from database.models.notifications import Notification, NotificationType

logger = logging.getLogger(__name__)


def serialize_notification(notification: Notification) -> Dict[str, Any]:
    """JSON-ready form pushed over the notification socket."""
    return {
        "id": str(notification.id),
        "user_id": str(notification.user_id),
        "type": notification.type.value,
        "title": notification.title,
        "message": notification.message,
        "read": notification.read,
        "data": notification.data,
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
        "read_at": notification.read_at.isoformat() if notification.read_at else None,
    }


async def create_notification(
    db: AsyncSession,
    user_id: uuid.UUID,
    type: NotificationType,
    title: str,
    message: str,
    data: Optional[Dict[str, Any]] = None,
) -> Optional[Notification]:
    """
    Insert a notification and push it to the user's open sockets.

    Returns None when notifications are disabled.
    """
    if not settings.enable_notifications:
        logger.debug(f"Notifications disabled, skipping {type.value} for {user_id}")
        return None

    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        data=data,
        read=False,
    )
    db.add(notification)
    await db.commit()
    await db.refresh(notification)

    delivered = broker.publish(user_id, serialize_notification(notification))
    logger.info(
        f"Notification {notification.id} ({type.value}) for {user_id}, "
        f"pushed to {delivered} subscriber(s)"
    )
    return notification


async def get_notifications(
    db: AsyncSession,
    user_id: uuid.UUID,
    limit: int = 20,
    unread_only: bool = False,
) -> Dict[str, Any]:
    """Newest first, plus the user's unread count."""
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.read.is_(False))
    query = query.order_by(Notification.created_at.desc()).limit(limit)

    result = await db.execute(query)
    notifications = list(result.scalars().all())

    return {
        "notifications": notifications,
        "unread_count": await get_unread_count(db, user_id),
    }


async def get_unread_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
    )
    return result.scalar() or 0


async def mark_as_read(db: AsyncSession, user_id: uuid.UUID, notification_id: uuid.UUID) -> None:
    """Mark one of the user's notifications read; 404 if it is not theirs."""
    result = await db.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(read=True, read_at=now())
    )
    if result.rowcount == 0:
        raise NotFoundError("Notification not found")
    await db.commit()


async def mark_all_as_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True, read_at=now())
    )
    await db.commit()
    return result.rowcount


async def delete_notification(db: AsyncSession, user_id: uuid.UUID, notification_id: uuid.UUID) -> None:
    result = await db.execute(
        delete(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    )
    if result.rowcount == 0:
        raise NotFoundError("Notification not found")
    await db.commit()


# ==================== Event helpers ===================== #

async def notify_stage_change(
    db: AsyncSession,
    user_id: uuid.UUID,
    candidate_name: str,
    from_stage: str,
    to_stage: str,
    candidate_id: uuid.UUID,
) -> Optional[Notification]:
    return await create_notification(
        db,
        user_id,
        NotificationType.STAGE_CHANGED,
        "Stage Updated",
        f"{candidate_name} moved from {from_stage} to {to_stage}",
        {"candidate_id": str(candidate_id), "from_stage": from_stage, "to_stage": to_stage},
    )


async def notify_new_application(
    db: AsyncSession,
    user_id: uuid.UUID,
    candidate_name: str,
    job_title: str,
    candidate_id: uuid.UUID,
) -> Optional[Notification]:
    return await create_notification(
        db,
        user_id,
        NotificationType.CANDIDATE_APPLIED,
        "New Application",
        f"{candidate_name} applied for {job_title}",
        {"candidate_id": str(candidate_id)},
    )


async def notify_interview_scheduled(
    db: AsyncSession,
    user_id: uuid.UUID,
    candidate_name: str,
    scheduled_at: datetime,
    interview_id: uuid.UUID,
    candidate_id: uuid.UUID,
    meeting_link: Optional[str] = None,
) -> Optional[Notification]:
    message = f"Interview with {candidate_name} scheduled for {scheduled_at.isoformat()}"
    if meeting_link:
        message += f"\nMeeting Link: {meeting_link}"

    return await create_notification(
        db,
        user_id,
        NotificationType.INTERVIEW_SCHEDULED,
        "Interview Scheduled",
        message,
        {
            "interview_id": str(interview_id),
            "candidate_id": str(candidate_id),
            "meeting_link": meeting_link,
        },
    )
