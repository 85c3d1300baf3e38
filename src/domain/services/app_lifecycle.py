"""App lifecycle monitor that tells a screen lock from an app switch."""

import logging
from typing import Optional

from ..entities.events import AppState, LifecycleSignal, LifecycleTransition
from .countdown import Clock, system_clock

logger = logging.getLogger(__name__)


class AppLifecycleMonitor:
    """
    Classifies host process state transitions.

    A screen lock passes through ``inactive`` into ``background`` almost
    instantly, while an app switch lingers in ``inactive`` first. A
    background transition whose preceding inactive time is at or above the
    threshold is reported as an app switch; below it, as a screen lock. A
    background transition with no observed inactive phase counts as an app
    switch.

    The monitor only classifies. What to do about a signal is up to the
    session engine.
    """

    def __init__(
        self,
        lock_detection_threshold_ms: float = 200,
        clock: Clock = system_clock,
        initial_state: AppState = AppState.ACTIVE,
    ):
        self.lock_detection_threshold_ms = lock_detection_threshold_ms
        self._clock = clock
        self.state: AppState = initial_state
        self._inactive_started_at: Optional[float] = None

    def observe(self, next_state: AppState, at: Optional[float] = None) -> LifecycleTransition:
        """Record a state change and classify it.

        Args:
            next_state: The state the host reports.
            at: Epoch seconds of the change; defaults to the monitor clock.

        Returns:
            LifecycleTransition: The classification and the states involved.
        """
        now = self._clock() if at is None else at
        previous = self.state
        transition = LifecycleTransition(
            signal=LifecycleSignal.NONE,
            previous=previous,
            current=next_state,
        )

        if next_state == AppState.INACTIVE and previous != AppState.INACTIVE:
            self._inactive_started_at = now

        elif next_state == AppState.BACKGROUND and previous != AppState.BACKGROUND:
            if self._inactive_started_at is None:
                inactive_ms = float("inf")
            else:
                # Rounded to microseconds
                inactive_ms = round((now - self._inactive_started_at) * 1000, 3)
            transition.inactive_ms = inactive_ms
            if self.is_app_switch(inactive_ms):
                transition.signal = LifecycleSignal.APP_SWITCH
            else:
                transition.signal = LifecycleSignal.SCREEN_LOCK
            logger.info(
                f"Background transition after {inactive_ms:.0f}ms inactive "
                f"(threshold {self.lock_detection_threshold_ms}ms): {transition.signal.value}"
            )

        elif next_state == AppState.ACTIVE and previous != AppState.ACTIVE:
            transition.signal = LifecycleSignal.RETURNED
            self._inactive_started_at = None

        logger.debug(f"AppState {previous.value} -> {next_state.value}")
        self.state = next_state
        return transition

    def is_app_switch(self, inactive_ms: float) -> bool:
        """Whether time spent inactive indicates the user left the app."""
        return inactive_ms >= self.lock_detection_threshold_ms

    def reset(self, state: AppState = AppState.ACTIVE) -> None:
        self.state = state
        self._inactive_started_at = None
