"""
Notification endpoints.

The REST routes read and update the signed-in user's notifications. The
WebSocket pushes each new notification to the recipient as it is
inserted.
"""

import asyncio
import logging
from typing import Optional
from uuid import UUID

import jwt
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_authenticated_user, require_feature
from api.schemas.common import SuccessResponse
from api.schemas.notifications import (
    NotificationListResponse,
    NotificationMarkRequest,
    UnreadCountResponse,
)
from api.services import notifications as notification_service
from core.exceptions import ValidationFailed
from core.middleware.authentication import AuthenticationError, load_profile
from core.realtime import broker
from core.security import decode_access_token
from database.engine import get_db
from database.models.profiles import Profile

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
    dependencies=[Depends(require_feature("enable_notifications"))],
)


@router.get("", response_model=NotificationListResponse, summary="List Notifications")
async def get_notifications(
    limit: int = Query(20, ge=1, le=100),
    unread: bool = Query(False, description="Only unread notifications"),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    return await notification_service.get_notifications(
        db, current_user.id, limit=limit, unread_only=unread
    )


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Unread Count")
async def get_unread_count(
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    return UnreadCountResponse(count=await notification_service.get_unread_count(db, current_user.id))


@router.patch("", summary="Mark Read")
async def mark_read(
    data: NotificationMarkRequest,
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark one notification, or all of them with ``mark_all_read``."""
    if data.mark_all_read:
        updated = await notification_service.mark_all_as_read(db, current_user.id)
        return {"success": True, "updated": updated}
    if data.notification_id is None:
        raise ValidationFailed("notification_id or mark_all_read is required")

    await notification_service.mark_as_read(db, current_user.id, data.notification_id)
    return {"success": True, "updated": 1}


@router.delete("", response_model=SuccessResponse, summary="Delete Notification")
async def delete_notification(
    notification_id: UUID = Query(..., alias="id"),
    current_user: Profile = Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    await notification_service.delete_notification(db, current_user.id, notification_id)
    return SuccessResponse()


# ==================== Realtime ===================== #

async def _authenticate_socket(token: Optional[str]) -> Optional[Profile]:
    if not token:
        return None
    try:
        return await load_profile(decode_access_token(token))
    except (jwt.PyJWTError, AuthenticationError) as e:
        logger.info(f"Rejected notification socket: {e}")
        return None


async def _forward(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        await websocket.send_json(await queue.get())


async def _wait_for_close(websocket: WebSocket) -> None:
    while True:
        await websocket.receive_text()


@router.websocket("/ws")
async def notifications_socket(websocket: WebSocket, token: Optional[str] = Query(None)):
    """
    Push the user's new notifications as JSON.

    Browsers cannot set headers on a WebSocket, so the access token comes
    as ``?token=``. Client messages are read and ignored.
    """
    profile = await _authenticate_socket(token)
    if profile is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    async with broker.subscribe(profile.id) as queue:
        tasks = [
            asyncio.create_task(_forward(websocket, queue)),
            asyncio.create_task(_wait_for_close(websocket)),
        ]
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                logger.error(f"Notification socket for {profile.id} failed: {error}")

    logger.debug(f"Notification socket closed for {profile.id}")
