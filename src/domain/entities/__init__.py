"""Domain entities for the focus session engine."""

from .events import AppState, LifecycleSignal, LifecycleTransition
from .focus_session import (
    DEFAULT_CONFIG,
    DURATION_OPTIONS,
    ActiveSession,
    BreakSession,
    CompletedSession,
    SessionConfig,
    SessionLocation,
    SessionPhase,
    SessionPolicy,
    SessionUser,
    TerminalReason,
    calculate_break_duration,
)
from .session_record import (
    BuildingPresence,
    FocusSessionRecord,
    GroupSessionStatus,
    SessionStatus,
    UserStats,
)

__all__ = [
    # Lifecycle entities
    "SessionPhase",
    "TerminalReason",
    "SessionConfig",
    "SessionPolicy",
    "SessionLocation",
    "SessionUser",
    "ActiveSession",
    "CompletedSession",
    "BreakSession",
    "DEFAULT_CONFIG",
    "DURATION_OPTIONS",
    "calculate_break_duration",
    # Record entities
    "FocusSessionRecord",
    "SessionStatus",
    "GroupSessionStatus",
    "UserStats",
    "BuildingPresence",
    # App state entities
    "AppState",
    "LifecycleSignal",
    "LifecycleTransition",
]
