"""Local in-memory implementation of the Group Coordinator."""

import logging
from typing import Callable, Dict, List, Optional

from ..domain.entities.session_record import GroupSessionStatus
from ..domain.interfaces.group_coordinator import GroupCoordinator, GroupFailureListener

logger = logging.getLogger(__name__)


class LocalGroupCoordinator(GroupCoordinator):
    """Local in-memory implementation of the Group Coordinator.

    Tracks group status and notifies subscribers the first time a group
    fails, which is how participants observe a failure started elsewhere.
    """

    def __init__(self):
        """Initialize the coordinator with no groups."""
        self._statuses: Dict[str, GroupSessionStatus] = {}
        self._listeners: Dict[str, List[GroupFailureListener]] = {}

    def register_group(self, group_id: str, status: GroupSessionStatus = GroupSessionStatus.ACTIVE) -> None:
        self._statuses[group_id] = status

    def get_status(self, group_id: str) -> Optional[GroupSessionStatus]:
        return self._statuses.get(group_id)

    def subscribe(self, group_id: str, listener: GroupFailureListener) -> Callable[[], None]:
        """Call ``listener(group_id)`` when the group fails.

        Subscribing to an unknown group registers it as active.

        Returns:
            A callable that removes the subscription.
        """
        self._statuses.setdefault(group_id, GroupSessionStatus.ACTIVE)
        self._listeners.setdefault(group_id, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(group_id, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    async def fail_group(self, group_id: str) -> None:
        """Fail the group and notify every subscriber once.

        Raises:
            ValueError: If the group is not found.
        """
        if group_id not in self._statuses:
            raise ValueError(f"Group with id {group_id} not found")

        if self._statuses[group_id] == GroupSessionStatus.FAILED:
            logger.info(f"Group {group_id} already failed")
            return

        self._statuses[group_id] = GroupSessionStatus.FAILED
        logger.info(f"Failed group session {group_id}")

        for listener in list(self._listeners.get(group_id, [])):
            try:
                listener(group_id)
            except Exception as e:
                logger.error(f"Group failure listener raised: {e}", exc_info=True)

    def clear(self) -> None:
        """Clear all groups and subscriptions."""
        self._statuses.clear()
        self._listeners.clear()
