"""Session persistence gateway interface."""

from typing import List, Optional, Protocol, runtime_checkable

from ..entities.focus_session import SessionLocation, SessionUser
from ..entities.session_record import BuildingPresence, UserStats


@runtime_checkable
class SessionGateway(Protocol):
    """Protocol for mirroring the local session lifecycle to a remote store.

    The engine treats every call as best effort: failures are logged and
    never roll back local state. Writes against a session that is no longer
    active are expected to be ignored by implementations.
    """

    async def create(
        self,
        location: SessionLocation,
        user: SessionUser,
        planned_duration: int,
        deep_focus_mode: bool = True,
        group_session_id: Optional[str] = None,
    ) -> str:
        """Create an active session record.

        Args:
            location: Study spot the session runs at.
            user: Owner of the session.
            planned_duration: Planned duration in seconds.
            deep_focus_mode: Whether deep focus mode was selected.
            group_session_id: Shared group session, if any.

        Returns:
            str: Opaque handle identifying the record.
        """
        ...

    async def heartbeat(self, handle: str, remaining_seconds: int) -> None:
        """Publish presence for a running session.

        Args:
            handle: Session record handle.
            remaining_seconds: Seconds left on the countdown.
        """
        ...

    async def complete(self, handle: str, actual_duration: int, coins_earned: int) -> None:
        """Mark a session completed and credit its reward.

        Args:
            handle: Session record handle.
            actual_duration: Focused seconds.
            coins_earned: Reward credited to the user.
        """
        ...

    async def abandon(self, handle: str) -> None:
        """Mark a session abandoned by the user (no reward)."""
        ...

    async def fail(self, handle: str) -> None:
        """Mark a session failed because the user stayed away too long."""
        ...

    async def get_building_presence(self, building_id: str, limit: int = 50) -> List[BuildingPresence]:
        """List users with an active session in a building.

        Args:
            building_id: Building to look in.
            limit: Maximum number of entries.

        Returns:
            List[BuildingPresence]: Most recently started first.
        """
        ...

    async def get_user_stats(self, user_id: str) -> UserStats:
        """Get a user's lifetime totals.

        Returns:
            UserStats: Zeroed stats if the user has none yet.
        """
        ...
