"""Headless game view that runs its own visual clock."""

import asyncio
import logging
from typing import Callable, Optional

from ..domain.interfaces.game_view_bridge import GameViewBridge
from ..domain.services.countdown import calculate_coins

logger = logging.getLogger(__name__)

SessionHandler = Callable[[int, int], None]


class HeadlessGameView(GameViewBridge):
    """
    Game view without rendering, for development and tests.

    Like the real view, it keeps its own session clock and reports a
    natural end through the session handler when that clock runs out,
    independently of the engine's countdown.
    """

    def __init__(
        self,
        coins_per_minute: float = 10,
        time_scale: float = 1.0,
        session_handler: Optional[SessionHandler] = None,
    ):
        """
        Args:
            coins_per_minute: Reward rate reported with a natural end
            time_scale: Multiplier applied to the visual clock
            session_handler: Receives ``(duration_seconds, coins_earned)``
        """
        self.coins_per_minute = coins_per_minute
        self.time_scale = time_scale
        self._session_handler = session_handler
        self._timer: Optional[asyncio.TimerHandle] = None
        self.in_session = False
        self.in_break_view = False
        self.seated = False

    def set_session_handler(self, handler: Optional[SessionHandler]) -> None:
        self._session_handler = handler

    def start(self, duration_seconds: int) -> None:
        self._cancel_timer()
        self.in_session = True
        self.seated = True
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(
            duration_seconds * self.time_scale, self._report_natural_end, duration_seconds
        )
        logger.info(f"Game view session started: {duration_seconds}s")

    def end(self) -> None:
        self._cancel_timer()
        self.in_session = False
        logger.info("Game view session ended")

    def cancel_setup(self) -> None:
        self.seated = False
        logger.info("Game view setup cancelled")

    def start_break_view(self) -> None:
        self.in_break_view = True
        logger.info("Game view switched to break overview")

    def end_break_view(self) -> None:
        self.in_break_view = False
        logger.info("Game view left break overview")

    def _report_natural_end(self, duration_seconds: int) -> None:
        self._timer = None
        self.in_session = False
        coins = calculate_coins(duration_seconds / 60, self.coins_per_minute)
        logger.info(f"Game view clock finished: {duration_seconds}s, {coins} coins")
        if self._session_handler is not None:
            self._session_handler(duration_seconds, coins)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
