"""Application configuration using Pydantic Settings."""

from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.entities.focus_session import SessionPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "focus-session-engine"
    app_version: str = "0.1.0"
    debug: bool = False

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"

    # Session policy
    lock_detection_threshold_ms: float = 200
    grace_period_seconds: float = 15
    reminder_delay_seconds: int = 10
    coins_per_minute: float = 10
    heartbeat_interval_seconds: float = 30
    tick_interval_seconds: float = 1
    default_break_minutes: int = 5

    # Persistence backend
    persistence_backend: Literal["local", "dynamodb"] = "local"
    aws_region: str = "us-west-2"
    sessions_table_name: str = "Sessions"
    users_table_name: str = "Users"
    group_sessions_table_name: str = "GroupSessions"
    group_poll_interval_seconds: float = 5

    def session_policy(self) -> SessionPolicy:
        """Build the policy the session engine runs with."""
        return SessionPolicy(
            lock_detection_threshold_ms=self.lock_detection_threshold_ms,
            grace_period_seconds=self.grace_period_seconds,
            reminder_delay_seconds=self.reminder_delay_seconds,
            coins_per_minute=self.coins_per_minute,
            heartbeat_interval_seconds=self.heartbeat_interval_seconds,
            tick_interval_seconds=self.tick_interval_seconds,
            default_break_minutes=self.default_break_minutes,
        )


# Create a singleton instance
settings = Settings()
