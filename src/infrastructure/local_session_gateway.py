"""Local in-memory implementation of the Session Gateway."""

import logging
import math
import time
from typing import Callable, Dict, List, Optional

from ..domain.entities.focus_session import SessionLocation, SessionUser
from ..domain.entities.session_record import (
    BuildingPresence,
    FocusSessionRecord,
    SessionStatus,
    UserStats,
)
from ..domain.interfaces.session_gateway import SessionGateway

logger = logging.getLogger(__name__)


class LocalSessionGateway(SessionGateway):
    """Local in-memory implementation of the Session Gateway.

    Stores session records in a dictionary for testing and development
    purposes. Writes to a record that is no longer active are ignored.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """Initialize the local session gateway with empty stores."""
        self._records: Dict[str, FocusSessionRecord] = {}
        self._user_stats: Dict[str, UserStats] = {}
        self._clock = clock

    async def create(
        self,
        location: SessionLocation,
        user: SessionUser,
        planned_duration: int,
        deep_focus_mode: bool = True,
        group_session_id: Optional[str] = None,
    ) -> str:
        """Create an active session record.

        Returns:
            str: The new record id.
        """
        now = self._clock()
        record = FocusSessionRecord(
            user_id=user.user_id,
            display_name=user.display_name or "Anonymous",
            building_id=location.building_id,
            building_name=location.building_name,
            spot_id=location.spot_id,
            planned_duration=planned_duration,
            remaining_seconds=planned_duration,
            started_at=now,
            updated_at=now,
            deep_focus_mode=deep_focus_mode,
            group_session_id=group_session_id,
            is_group_session=group_session_id is not None,
        )
        self._records[record.id] = record
        logger.info(f"Created session {record.id} for user {user.user_id}")
        return record.id

    async def heartbeat(self, handle: str, remaining_seconds: int) -> None:
        """Update remaining time and the heartbeat timestamp.

        Raises:
            ValueError: If the record is not found.
        """
        record = self._get_active(handle, "heartbeat")
        if record is None:
            return
        record.remaining_seconds = remaining_seconds
        record.updated_at = self._clock()

    async def complete(self, handle: str, actual_duration: int, coins_earned: int) -> None:
        """Complete a session and credit the user's stats.

        Raises:
            ValueError: If the record is not found.
        """
        record = self._get_active(handle, "complete")
        if record is None:
            return
        now = self._clock()
        self._close(record, SessionStatus.COMPLETED, actual_duration, coins_earned, now)

        stats = self._user_stats.setdefault(record.user_id, UserStats())
        stats.total_coins += coins_earned
        stats.total_focus_time += actual_duration
        stats.sessions_completed += 1
        stats.last_active_at = now
        logger.info(f"Completed session {handle}")

    async def abandon(self, handle: str) -> None:
        """Mark a session abandoned.

        Raises:
            ValueError: If the record is not found.
        """
        self._end_without_reward(handle, SessionStatus.ABANDONED)

    async def fail(self, handle: str) -> None:
        """Mark a session failed.

        Raises:
            ValueError: If the record is not found.
        """
        self._end_without_reward(handle, SessionStatus.FAILED)

    def _end_without_reward(self, handle: str, status: SessionStatus) -> None:
        record = self._get_active(handle, status.value)
        if record is None:
            return
        now = self._clock()
        actual_duration = max(0, math.floor(now - record.started_at))
        self._close(record, status, actual_duration, 0, now)
        logger.info(f"Session {handle} marked {status.value}")

    def _close(
        self,
        record: FocusSessionRecord,
        status: SessionStatus,
        actual_duration: int,
        coins_earned: int,
        now: float,
    ) -> None:
        record.status = status
        record.actual_duration = actual_duration
        record.coins_earned = coins_earned
        record.remaining_seconds = 0
        record.ended_at = now
        record.updated_at = now

    def _get_active(self, handle: str, action: str) -> Optional[FocusSessionRecord]:
        if handle not in self._records:
            raise ValueError(f"Session with id {handle} not found")

        record = self._records[handle]
        if record.status != SessionStatus.ACTIVE:
            logger.warning(f"Ignoring {action} for session {handle}, already {record.status.value}")
            return None
        return record

    async def get_record(self, handle: str) -> FocusSessionRecord:
        """Retrieve a session record by id.

        Raises:
            ValueError: If the record is not found.
        """
        if handle not in self._records:
            raise ValueError(f"Session with id {handle} not found")
        return self._records[handle]

    async def get_building_presence(self, building_id: str, limit: int = 50) -> List[BuildingPresence]:
        """Users currently studying in a building, most recent first."""
        active = [
            record
            for record in self._records.values()
            if record.building_id == building_id and record.status == SessionStatus.ACTIVE
        ]
        active.sort(key=lambda record: record.started_at, reverse=True)
        return [
            BuildingPresence(
                user_id=record.user_id,
                display_name=record.display_name,
                spot_id=record.spot_id,
                remaining_seconds=record.remaining_seconds,
                is_group_session=record.is_group_session,
            )
            for record in active[:limit]
        ]

    async def get_user_stats(self, user_id: str) -> UserStats:
        """Lifetime totals for a user; zeroes if they never completed a session."""
        return self._user_stats.get(user_id, UserStats())

    def get_all_records(self) -> Dict[str, FocusSessionRecord]:
        """Get all session records.

        Returns:
            Dict[str, FocusSessionRecord]: Dictionary of all records.
        """
        return self._records.copy()

    def clear(self) -> None:
        """Clear all records and stats."""
        self._records.clear()
        self._user_stats.clear()
