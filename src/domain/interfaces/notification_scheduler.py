"""Notification scheduler interface."""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class NotificationScheduler(Protocol):
    """Protocol for scheduling local notifications.

    The engine only schedules and cancels; delivery belongs to the
    implementation.
    """

    async def request_permissions(self) -> bool:
        """Ask the host for permission to show notifications.

        Returns:
            bool: True if notifications may be shown.
        """
        ...

    async def schedule_completion(self, after_seconds: int) -> Optional[str]:
        """Schedule the "session complete" alert.

        Args:
            after_seconds: Delay until the alert fires.

        Returns:
            Optional[str]: Notification id, or None if scheduling failed.
        """
        ...

    async def schedule_reminder(self, after_seconds: int) -> Optional[str]:
        """Schedule the "come back to focus" reminder.

        Args:
            after_seconds: Delay until the reminder fires.

        Returns:
            Optional[str]: Notification id, or None if scheduling failed.
        """
        ...

    async def cancel_all(self) -> None:
        """Cancel every scheduled notification."""
        ...
