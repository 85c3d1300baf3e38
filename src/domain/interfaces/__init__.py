"""Domain interfaces for the focus session engine."""

from .game_view_bridge import GameViewBridge
from .group_coordinator import GroupCoordinator
from .notification_scheduler import NotificationScheduler
from .session_gateway import SessionGateway

__all__ = [
    "GameViewBridge",
    "GroupCoordinator",
    "NotificationScheduler",
    "SessionGateway",
]
