"""Host process lifecycle events."""

from dataclasses import dataclass
from enum import Enum


class AppState(str, Enum):
    """State reported by the host process."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    BACKGROUND = "background"


class LifecycleSignal(str, Enum):
    """Classification of an app state transition."""
    NONE = "none"
    SCREEN_LOCK = "screen_lock"
    APP_SWITCH = "app_switch"
    RETURNED = "returned"


@dataclass
class LifecycleTransition:
    """Result of classifying one app state event."""

    signal: LifecycleSignal
    previous: AppState
    current: AppState
    inactive_ms: float = 0.0
