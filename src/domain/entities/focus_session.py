"""Focus session entities for the study engine."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SessionPhase(str, Enum):
    """Phase of the session lifecycle state machine."""
    IDLE = "idle"
    SETUP = "setup"
    ACTIVE = "active"
    COMPLETE = "complete"
    ABANDONED = "abandoned"
    BREAK = "break"


class TerminalReason(str, Enum):
    """Why a focus session reached the abandoned phase."""
    ABANDONED = "abandoned"
    FAILED = "failed"


# Selectable focus durations in minutes
DURATION_OPTIONS = (5, 10, 15, 25, 30, 45, 60)


class SessionConfig(BaseModel):
    """User selections for the next focus session."""

    model_config = ConfigDict(frozen=True)

    duration_minutes: int = Field(default=25, gt=0)
    deep_focus_mode: bool = True

    @property
    def total_seconds(self) -> int:
        return self.duration_minutes * 60


DEFAULT_CONFIG = SessionConfig()


class SessionLocation(BaseModel):
    """Study spot the player is seated at."""

    model_config = ConfigDict(frozen=True)

    building_id: str
    building_name: str = ""
    spot_id: str = ""


class SessionUser(BaseModel):
    """User the session records are written for."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    display_name: str = "Anonymous"


class ActiveSession(BaseModel):
    """A running focus session.

    ``remaining_seconds`` is derived from ``started_at`` on every tick and is
    never the source of truth.
    """

    config: SessionConfig
    started_at: float
    remaining_seconds: int = Field(ge=0)


class CompletedSession(BaseModel):
    """Result of a successfully completed focus session."""

    duration_seconds: int = Field(ge=0)
    coins_earned: int = Field(ge=0)
    total_time_today: int = Field(ge=0)


class BreakSession(BaseModel):
    """A break countdown between focus sessions."""

    duration_seconds: int = Field(gt=0)
    remaining_seconds: int = Field(ge=0)


class SessionPolicy(BaseModel):
    """Tunable policy constants consumed by the session engine."""

    model_config = ConfigDict(frozen=True)

    lock_detection_threshold_ms: float = Field(default=200, ge=0)
    grace_period_seconds: float = Field(default=15, gt=0)
    reminder_delay_seconds: int = Field(default=10, gt=0)
    coins_per_minute: float = Field(default=10, ge=0)
    heartbeat_interval_seconds: float = Field(default=30, gt=0)
    tick_interval_seconds: float = Field(default=1, gt=0)
    default_break_minutes: int = Field(default=5, gt=0)


def calculate_break_duration(focus_minutes: int) -> int:
    """Suggested break length in seconds for a focus duration.

    One minute of break per five minutes of focus, clamped to 1-15 minutes.
    """
    break_minutes = focus_minutes // 5
    return max(1, min(15, break_minutes)) * 60


def describe_location(location: Optional[SessionLocation]) -> str:
    if location is None:
        return "<no location>"
    return f"{location.building_id}/{location.spot_id}"
