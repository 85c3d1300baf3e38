"""Persisted focus session records."""
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SessionStatus(str, Enum):
    """Status of a persisted session: active -> completed/abandoned/failed."""
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    FAILED = "failed"


class GroupSessionStatus(str, Enum):
    """Status of a shared group session."""
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class FocusSessionRecord(BaseModel):
    """Session document used both for live presence and for history."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    display_name: str = "Anonymous"
    building_id: str
    building_name: str = ""
    spot_id: str = ""
    planned_duration: int = Field(gt=0)
    actual_duration: Optional[int] = None
    remaining_seconds: int = Field(ge=0)
    started_at: float
    ended_at: Optional[float] = None
    updated_at: float
    deep_focus_mode: bool = True
    status: SessionStatus = SessionStatus.ACTIVE
    coins_earned: Optional[int] = None
    group_session_id: Optional[str] = None
    is_group_session: bool = False

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "sess-001",
                "user_id": "user-42",
                "display_name": "Ada",
                "building_id": "library",
                "building_name": "Library",
                "spot_id": "table_1",
                "planned_duration": 1500,
                "remaining_seconds": 1500,
                "started_at": 1767225600.0,
                "updated_at": 1767225600.0,
                "status": "active",
            }
        }
    )


class UserStats(BaseModel):
    """Per-user totals incremented on every completed session."""

    total_coins: int = 0
    total_focus_time: int = 0
    sessions_completed: int = 0
    last_active_at: Optional[float] = None


class BuildingPresence(BaseModel):
    """A user currently studying in a building."""

    user_id: str
    display_name: str
    spot_id: str
    remaining_seconds: int
    is_group_session: bool
