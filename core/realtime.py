"""
In-process fan-out of notification inserts to open WebSocket subscriptions.
"""

import asyncio
import logging
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, DefaultDict, Dict, Set

logger = logging.getLogger(__name__)


class NotificationBroker:
    """
    Per-user set of bounded queues.

    Every subscription of a user receives each published payload in publish
    order. A subscriber that falls behind loses messages instead of slowing
    the publisher down.
    """

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: DefaultDict[str, Set[asyncio.Queue]] = defaultdict(set)

    @asynccontextmanager
    async def subscribe(self, user_id: uuid.UUID | str) -> AsyncIterator[asyncio.Queue]:
        key = str(user_id)
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers[key].add(queue)
        logger.debug(f"Subscribed to notifications for {key}")
        try:
            yield queue
        finally:
            queues = self._subscribers.get(key)
            if queues is not None:
                queues.discard(queue)
                if not queues:
                    del self._subscribers[key]
            logger.debug(f"Unsubscribed from notifications for {key}")

    def publish(self, user_id: uuid.UUID | str, payload: Dict[str, Any]) -> int:
        """Deliver ``payload`` to every queue of the user; returns how many got it."""
        delivered = 0
        for queue in list(self._subscribers.get(str(user_id), ())):
            try:
                queue.put_nowait(payload)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(f"Notification queue full for user {user_id}, dropping message")
        return delivered

    def subscriber_count(self, user_id: uuid.UUID | str) -> int:
        return len(self._subscribers.get(str(user_id), ()))


broker = NotificationBroker()
