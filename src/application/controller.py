"""Focus Controller for owning per-user session engines."""

import logging
import time
from typing import Callable, Dict, List, Optional

from ..domain.entities.focus_session import SessionPolicy, SessionUser
from ..domain.entities.session_record import BuildingPresence, UserStats
from ..domain.interfaces.game_view_bridge import GameViewBridge
from ..domain.interfaces.group_coordinator import GroupCoordinator
from ..domain.interfaces.notification_scheduler import NotificationScheduler
from ..domain.interfaces.session_gateway import SessionGateway
from ..domain.services.session_engine import SessionEngine
from ..infrastructure.dynamodb_group_coordinator import DynamoDBGroupCoordinator
from ..infrastructure.dynamodb_session_gateway import DynamoDBSessionGateway
from ..infrastructure.local_group_coordinator import LocalGroupCoordinator
from ..infrastructure.local_notification_scheduler import LocalNotificationScheduler
from ..infrastructure.local_session_gateway import LocalSessionGateway
from .config import Settings

logger = logging.getLogger(__name__)


class FocusController:
    """
    Controller for coordinating focus session engines.

    This controller is injected with the shared collaborators and owns one
    SessionEngine per user. It is the owner of each engine's lifetime, so it
    is also where game views and group failure subscriptions are attached
    and detached.
    """

    def __init__(
        self,
        session_gateway: SessionGateway,
        notification_scheduler_factory: Callable[[], NotificationScheduler],
        group_coordinator: GroupCoordinator,
        policy: Optional[SessionPolicy] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the controller with injected dependencies.

        Args:
            session_gateway: Gateway mirroring sessions to the backend
            notification_scheduler_factory: Builds the notification scheduler
                of each engine; notifications belong to one user's device
            group_coordinator: Coordinator for shared group sessions
            policy: Policy constants for every engine
            clock: Wall-clock source in epoch seconds
        """
        self.session_gateway = session_gateway
        self.notification_scheduler_factory = notification_scheduler_factory
        self.group_coordinator = group_coordinator
        self.policy = policy or SessionPolicy()
        self._clock = clock
        self._engines: Dict[str, SessionEngine] = {}
        self._group_unsubscribes: Dict[str, Callable[[], None]] = {}

        logger.info("FocusController initialized with collaborators")

    async def get_engine(self, user_id: str, display_name: Optional[str] = None) -> SessionEngine:
        """
        Get the engine for a user, creating and initializing it on first use.

        Args:
            user_id: The user identifier
            display_name: Name written to session records, if known
        """
        engine = self._engines.get(user_id)
        if engine is None:
            engine = SessionEngine(
                session_gateway=self.session_gateway,
                notification_scheduler=self.notification_scheduler_factory(),
                group_coordinator=self.group_coordinator,
                policy=self.policy,
                clock=self._clock,
            )
            engine.set_user(SessionUser(user_id=user_id, display_name=display_name or "Anonymous"))
            self._engines[user_id] = engine
            await engine.initialize()
            logger.info(f"Created session engine for user {user_id}")
        elif display_name and engine.current_user and engine.current_user.display_name != display_name:
            engine.set_user(SessionUser(user_id=user_id, display_name=display_name))
        return engine

    def find_engine(self, user_id: str) -> Optional[SessionEngine]:
        return self._engines.get(user_id)

    def attach_game_view(self, user_id: str, view: GameViewBridge) -> None:
        engine = self._engines[user_id]
        engine.set_game_view(view)
        logger.info(f"Game view attached for user {user_id}")

    def detach_game_view(self, user_id: str, view: GameViewBridge) -> None:
        engine = self._engines.get(user_id)
        if engine is not None:
            engine.clear_game_view(view)
            logger.info(f"Game view detached for user {user_id}")

    def set_group_session(self, user_id: str, group_id: Optional[str]) -> None:
        """
        Put a user's engine into (or out of) a shared group session.

        The engine is subscribed to the group so a failure started by
        another participant abandons this session without propagating it
        again.
        """
        engine = self._engines[user_id]

        unsubscribe = self._group_unsubscribes.pop(user_id, None)
        if unsubscribe is not None:
            unsubscribe()

        engine.set_group_session(group_id)
        if group_id is not None:
            self._group_unsubscribes[user_id] = self.group_coordinator.subscribe(group_id, engine.on_group_failed)
        logger.info(f"User {user_id} group session set to {group_id}")

    async def get_building_presence(self, building_id: str) -> List[BuildingPresence]:
        """Users currently studying in a building."""
        return await self.session_gateway.get_building_presence(building_id)

    async def get_user_stats(self, user_id: str) -> UserStats:
        return await self.session_gateway.get_user_stats(user_id)

    async def shutdown(self) -> None:
        """Close every engine and drop group subscriptions."""
        for unsubscribe in self._group_unsubscribes.values():
            unsubscribe()
        self._group_unsubscribes.clear()

        for user_id, engine in self._engines.items():
            try:
                await engine.close()
            except Exception as e:
                logger.error(f"Error closing engine for user {user_id}: {e}", exc_info=True)
        self._engines.clear()
        logger.info("FocusController shut down")

    def get_health_status(self) -> dict:
        """
        Get application health status.

        Returns:
            Dict containing health status information
        """
        return {
            "status": "healthy",
            "engines": len(self._engines),
            "providers": {
                "session_gateway": type(self.session_gateway).__name__,
                "notification_scheduler": getattr(
                    self.notification_scheduler_factory, "__name__", type(self.notification_scheduler_factory).__name__
                ),
                "group_coordinator": type(self.group_coordinator).__name__,
            },
        }


def create_controller(settings: Settings) -> FocusController:
    """Build a controller with the collaborators selected by settings."""
    if settings.persistence_backend == "dynamodb":
        session_gateway = DynamoDBSessionGateway(
            table_name=settings.sessions_table_name,
            users_table_name=settings.users_table_name,
            region_name=settings.aws_region,
        )
        group_coordinator = DynamoDBGroupCoordinator(
            table_name=settings.group_sessions_table_name,
            region_name=settings.aws_region,
            poll_interval_seconds=settings.group_poll_interval_seconds,
        )
    else:
        session_gateway = LocalSessionGateway()
        group_coordinator = LocalGroupCoordinator()

    logger.info(f"Using {settings.persistence_backend} persistence backend")
    return FocusController(
        session_gateway=session_gateway,
        notification_scheduler_factory=LocalNotificationScheduler,
        group_coordinator=group_coordinator,
        policy=settings.session_policy(),
    )
