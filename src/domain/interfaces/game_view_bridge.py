"""Game view bridge interface."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class GameViewBridge(Protocol):
    """Protocol for the real-time game view that mirrors the session.

    Calls are commands to the view and must not block. The view reports a
    natural end back through ``SessionEngine.on_natural_end``.
    """

    def start(self, duration_seconds: int) -> None:
        """Start the visual focus session."""
        ...

    def end(self) -> None:
        """Stop the visual focus session."""
        ...

    def cancel_setup(self) -> None:
        """Stand the player up after setup was cancelled."""
        ...

    def start_break_view(self) -> None:
        """Switch the camera to the break overview."""
        ...

    def end_break_view(self) -> None:
        """Leave the break overview."""
        ...
