"""Group coordination interface."""

from typing import Callable, Protocol, runtime_checkable

GroupFailureListener = Callable[[str], None]


@runtime_checkable
class GroupCoordinator(Protocol):
    """Protocol for propagating outcomes across a shared group session."""

    async def fail_group(self, group_id: str) -> None:
        """Fail the group session for every participant.

        Args:
            group_id: The shared group session identifier.
        """
        ...

    def subscribe(self, group_id: str, listener: GroupFailureListener) -> Callable[[], None]:
        """Call ``listener(group_id)`` once when the group fails.

        Args:
            group_id: The shared group session identifier.
            listener: Receives the failed group id.

        Returns:
            A callable that removes the subscription.
        """
        ...
