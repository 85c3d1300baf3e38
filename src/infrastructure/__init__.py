"""Infrastructure layer components."""

from .dynamodb_group_coordinator import DynamoDBGroupCoordinator
from .dynamodb_session_gateway import DynamoDBSessionGateway
from .headless_game_view import HeadlessGameView
from .local_group_coordinator import LocalGroupCoordinator
from .local_notification_scheduler import LocalNotificationScheduler
from .local_session_gateway import LocalSessionGateway

__all__ = [
    "DynamoDBGroupCoordinator",
    "DynamoDBSessionGateway",
    "HeadlessGameView",
    "LocalGroupCoordinator",
    "LocalNotificationScheduler",
    "LocalSessionGateway",
]
