"""Local notification scheduler backed by event loop timers."""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..domain.interfaces.notification_scheduler import NotificationScheduler

logger = logging.getLogger(__name__)


@dataclass
class ScheduledNotification:
    """A notification waiting to fire."""

    id: str
    kind: str
    title: str
    body: str
    fire_at: float


COMPLETION_TITLE = "Focus Session Complete! 🎉"
COMPLETION_BODY = "Great job staying focused!"
REMINDER_TITLE = "Come back to focus!"
REMINDER_BODY = "Your session is still running..."


class LocalNotificationScheduler(NotificationScheduler):
    """Schedules notifications as timers on the running event loop.

    Delivery is handed to ``on_deliver``; without one, delivered
    notifications are only logged and kept in ``delivered``.
    """

    def __init__(
        self,
        on_deliver: Optional[Callable[[ScheduledNotification], None]] = None,
        permission_granted: bool = True,
    ):
        self._on_deliver = on_deliver
        self._permission_granted = permission_granted
        self._scheduled: Dict[str, ScheduledNotification] = {}
        self._handles: Dict[str, asyncio.TimerHandle] = {}
        self.delivered: List[ScheduledNotification] = []

    async def request_permissions(self) -> bool:
        logger.info(f"Notification permission granted: {self._permission_granted}")
        return self._permission_granted

    async def schedule_completion(self, after_seconds: int) -> Optional[str]:
        return self._schedule("completion", COMPLETION_TITLE, COMPLETION_BODY, after_seconds)

    async def schedule_reminder(self, after_seconds: int) -> Optional[str]:
        return self._schedule("reminder", REMINDER_TITLE, REMINDER_BODY, after_seconds)

    async def cancel_all(self) -> None:
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()
        self._scheduled.clear()
        logger.info("Cancelled all notifications")

    def get_scheduled(self) -> List[ScheduledNotification]:
        """Notifications that have not fired yet, soonest first."""
        return sorted(self._scheduled.values(), key=lambda n: n.fire_at)

    def _schedule(self, kind: str, title: str, body: str, after_seconds: int) -> Optional[str]:
        if not self._permission_granted:
            logger.warning(f"Not scheduling {kind} notification, permission denied")
            return None

        notification = ScheduledNotification(
            id=str(uuid.uuid4()),
            kind=kind,
            title=title,
            body=body,
            fire_at=time.time() + after_seconds,
        )
        loop = asyncio.get_running_loop()
        self._scheduled[notification.id] = notification
        self._handles[notification.id] = loop.call_later(after_seconds, self._deliver, notification.id)
        logger.info(f"Scheduled {kind} notification {notification.id} in {after_seconds}s")
        return notification.id

    def _deliver(self, notification_id: str) -> None:
        self._handles.pop(notification_id, None)
        notification = self._scheduled.pop(notification_id, None)
        if notification is None:
            return

        logger.info(f"Delivering {notification.kind} notification: {notification.title}")
        self.delivered.append(notification)
        if self._on_deliver is not None:
            self._on_deliver(notification)
