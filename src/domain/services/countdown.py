"""Wall-clock countdown helpers."""

import math
import time
from typing import Callable

# Wall-clock source in epoch seconds
Clock = Callable[[], float]

system_clock: Clock = time.time


def elapsed_seconds(started_at: float, now: float) -> int:
    """Whole seconds elapsed since ``started_at`` (never negative)."""
    return max(0, math.floor(now - started_at))


def remaining_seconds(started_at: float, total_seconds: int, now: float) -> int:
    """Seconds left on a countdown started at ``started_at``.

    Recomputed from absolute timestamps so a suspended process reads the
    correct value on its first tick after resuming.

    Args:
        started_at: Epoch seconds the countdown started.
        total_seconds: Planned duration.
        now: Current epoch seconds.

    Returns:
        int: ``max(0, total_seconds - floor(now - started_at))``.
    """
    return max(0, total_seconds - elapsed_seconds(started_at, now))


def calculate_coins(duration_minutes: float, coins_per_minute: float) -> int:
    """Reward for a completed session; at least one coin."""
    return max(1, math.floor(duration_minutes * coins_per_minute))


def format_time(seconds: int) -> str:
    """Format seconds as MM:SS."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins:02d}:{secs:02d}"


def format_duration(seconds: int) -> str:
    """Format seconds as "1H 24M" or "32M"."""
    hours, rest = divmod(max(0, int(seconds)), 3600)
    mins = rest // 60
    if hours > 0:
        return f"{hours}H {mins}M"
    return f"{mins}M"
