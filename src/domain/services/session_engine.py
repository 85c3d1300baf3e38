"""Session lifecycle engine for timed focus sessions."""

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from pydantic import ValidationError

from ..entities.events import AppState, LifecycleSignal, LifecycleTransition
from ..entities.focus_session import (
    DEFAULT_CONFIG,
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
    describe_location,
)
from ..interfaces.game_view_bridge import GameViewBridge
from ..interfaces.group_coordinator import GroupCoordinator
from ..interfaces.notification_scheduler import NotificationScheduler
from ..interfaces.session_gateway import SessionGateway
from .app_lifecycle import AppLifecycleMonitor
from .countdown import Clock, calculate_coins, format_duration, remaining_seconds, system_clock

logger = logging.getLogger(__name__)


class SessionEngine:
    """
    Owns the focus session state machine for one user.

    This engine owns:
    - The phase (idle, setup, active, complete, abandoned, break) and the
      session-scoped data that belongs to each phase
    - The 1 s countdown, recomputed from the start timestamp on every tick
    - The 30 s presence heartbeat
    - The app-switch grace period that fails a session if the user stays away
    - Reconciliation between the countdown and the game view, which can both
      report the end of a session

    Action methods are synchronous and must be called from inside the event
    loop. They update local state immediately and dispatch every collaborator
    call as a background task, so local state never waits on the network and
    collaborator failures are only logged.

    Every terminal transition tears down in the same order: countdown,
    heartbeat, grace period, notifications, one persistence write, then the
    session-scoped handles.
    """

    def __init__(
        self,
        session_gateway: SessionGateway,
        notification_scheduler: NotificationScheduler,
        group_coordinator: GroupCoordinator,
        policy: Optional[SessionPolicy] = None,
        clock: Clock = system_clock,
    ):
        self.session_gateway = session_gateway
        self.notifications = notification_scheduler
        self.group_coordinator = group_coordinator
        self.policy = policy or SessionPolicy()
        self._clock = clock
        self.lifecycle_monitor = AppLifecycleMonitor(
            lock_detection_threshold_ms=self.policy.lock_detection_threshold_ms,
            clock=clock,
        )

        # State machine
        self.phase: SessionPhase = SessionPhase.IDLE
        self.config: SessionConfig = DEFAULT_CONFIG
        self.active_session: Optional[ActiveSession] = None
        self.completed_session: Optional[CompletedSession] = None
        self.break_session: Optional[BreakSession] = None
        self.break_duration_minutes: int = self.policy.default_break_minutes
        self.showing_abandon_confirm: bool = False
        self.has_completed_any_session: bool = False
        self.abandon_reason: Optional[TerminalReason] = None

        # Identifiers forwarded to collaborators
        self.current_user: Optional[SessionUser] = None
        self.current_location: Optional[SessionLocation] = None
        self.group_session_id: Optional[str] = None

        # Reconciliation flags
        self._session_auto_completed = False
        self._is_abandoning = False

        # Session-scoped handles
        self._episode = 0
        self._session_handle: Optional[str] = None
        self._handle_task: Optional[asyncio.Task] = None
        self._background_started_at: Optional[float] = None

        # Timers
        self._countdown_task: Optional[asyncio.Task] = None
        self._heartbeat_task: Optional[asyncio.Task] = None
        self._grace_task: Optional[asyncio.Task] = None
        self._break_task: Optional[asyncio.Task] = None

        self._game_view: Optional[GameViewBridge] = None
        self._pending: Set[asyncio.Task] = set()
        self._notification_lock = asyncio.Lock()
        self._focus_seconds_by_day: Dict[date, int] = {}

    # ===== Lifecycle =====

    async def initialize(self) -> bool:
        """Request notification permissions.

        Returns:
            True if notifications may be shown
        """
        granted = await self._call(
            "Notification permission request", self.notifications.request_permissions
        )
        logger.info(f"SessionEngine initialized, notifications granted: {bool(granted)}")
        return bool(granted)

    async def close(self) -> None:
        """Stop every timer, cancel notifications and wait for pending writes."""
        logger.info("SessionEngine closing")
        for task in (self._countdown_task, self._heartbeat_task, self._grace_task, self._break_task):
            self._cancel_timer(task)
        self._countdown_task = None
        self._heartbeat_task = None
        self._grace_task = None
        self._break_task = None
        self._spawn(self._cancel_notifications())
        await self.drain()

    async def drain(self) -> None:
        """Wait until every dispatched collaborator call has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ===== Setup =====

    def set_user(self, user: Optional[SessionUser]) -> None:
        self.current_user = user

    def set_location(self, location: Optional[SessionLocation]) -> None:
        self.current_location = location

    def set_group_session(self, group_id: Optional[str]) -> None:
        self.group_session_id = group_id

    @property
    def is_group_session(self) -> bool:
        return self.group_session_id is not None

    @property
    def session_handle(self) -> Optional[str]:
        return self._session_handle

    def set_game_view(self, view: GameViewBridge) -> None:
        """Attach the game view that mirrors this engine."""
        self._game_view = view

    def clear_game_view(self, view: Optional[GameViewBridge] = None) -> None:
        """Detach the game view; with ``view`` given, only if it is the attached one."""
        if view is None or view is self._game_view:
            self._game_view = None

    # ===== UI actions =====

    def on_player_seated(self, location: SessionLocation) -> bool:
        """Move from idle to setup when the player sits at a study spot."""
        if self.phase != SessionPhase.IDLE:
            logger.warning(f"Ignoring player seated while {self.phase.value}")
            return False

        logger.info(f"Player seated at {describe_location(location)}")
        self.current_location = location
        self.phase = SessionPhase.SETUP
        return True

    def update_config(self, **updates: Any) -> bool:
        """
        Update the pending session config.

        Values are validated when the session starts, not here.

        Returns:
            True if the config was updated
        """
        if self.phase != SessionPhase.SETUP:
            logger.warning(f"Config can only change during setup, phase is {self.phase.value}")
            return False

        unknown = set(updates) - set(SessionConfig.model_fields)
        if unknown:
            logger.warning(f"Ignoring unknown config fields: {sorted(unknown)}")
        known = {key: value for key, value in updates.items() if key not in unknown}
        self.config = self.config.model_copy(update=known)
        return True

    def start_session(self) -> bool:
        """
        Start a focus session from setup.

        Returns:
            True if the session started, False if not in setup

        Raises:
            ValueError: If the config is invalid; the engine stays in setup.
        """
        if self.phase != SessionPhase.SETUP:
            logger.warning(f"Cannot start a session while {self.phase.value}")
            return False

        try:
            config = SessionConfig.model_validate(self.config.model_dump())
        except ValidationError as e:
            logger.warning(f"Rejected session config {self.config.model_dump()}: {e}")
            raise ValueError(f"Invalid session config: {e}") from e

        self._episode += 1
        episode = self._episode
        total_seconds = config.total_seconds
        logger.info(
            f"Starting session {episode}: {config.duration_minutes} min, "
            f"deep focus {config.deep_focus_mode}, group {self.group_session_id}"
        )

        self.config = config
        self.active_session = ActiveSession(
            config=config,
            started_at=self._clock(),
            remaining_seconds=total_seconds,
        )
        self.completed_session = None
        self.showing_abandon_confirm = False
        self.abandon_reason = None
        self._session_auto_completed = False
        self._is_abandoning = False
        self.phase = SessionPhase.ACTIVE

        loop = asyncio.get_running_loop()
        self._countdown_task = loop.create_task(self._run_countdown(episode))
        self._heartbeat_task = loop.create_task(self._run_heartbeat(episode))
        self._spawn(self._schedule_completion(episode, total_seconds))

        if self.current_user and self.current_location:
            self._handle_task = self._spawn(
                self._create_record(
                    episode,
                    self.current_location,
                    self.current_user,
                    total_seconds,
                    config.deep_focus_mode,
                    self.group_session_id,
                )
            )
        else:
            logger.info("No user or location set, session will not be persisted")

        self._call_view("start", total_seconds)
        return True

    def cancel_setup(self) -> bool:
        """Leave setup without starting; the player stands up."""
        if self.phase != SessionPhase.SETUP:
            logger.warning(f"Cannot cancel setup while {self.phase.value}")
            return False

        logger.info("Setup cancelled")
        self.current_location = None
        self.phase = SessionPhase.IDLE
        self._call_view("cancel_setup")
        return True

    def request_abandon(self) -> bool:
        """Ask the user to confirm abandoning the running session."""
        if self.phase != SessionPhase.ACTIVE:
            logger.warning(f"No session to abandon while {self.phase.value}")
            return False

        logger.info("Abandon requested, awaiting confirmation")
        self.showing_abandon_confirm = True
        return True

    def cancel_abandon_confirmation(self) -> None:
        self.showing_abandon_confirm = False

    def confirm_abandon(self, skip_group_fail: bool = False) -> bool:
        """
        Abandon the running session with no reward.

        The phase is ``abandoned`` when this returns; persistence happens in
        the background.

        Args:
            skip_group_fail: True when the abandon answers a group failure
                observed elsewhere, so it must not be propagated again.

        Returns:
            True if a session was abandoned, False if none was running
        """
        if self.phase != SessionPhase.ACTIVE:
            logger.info(f"Ignoring abandon confirmation while {self.phase.value}")
            return False

        self._abandon_session(TerminalReason.ABANDONED, propagate_group_failure=not skip_group_fail)
        return True

    def go_home(self) -> bool:
        """Return to idle from the complete or abandoned screen."""
        if self.phase == SessionPhase.COMPLETE:
            self.completed_session = None
        elif self.phase == SessionPhase.ABANDONED:
            self._is_abandoning = False
            self.abandon_reason = None
        else:
            logger.warning(f"Cannot go home while {self.phase.value}")
            return False

        logger.info("Going home")
        self.has_completed_any_session = False
        self.current_location = None
        self.phase = SessionPhase.IDLE
        return True

    def continue_from_abandoned(self) -> bool:
        """Go straight back to setup after an abandoned session."""
        if self.phase != SessionPhase.ABANDONED:
            logger.warning(f"Cannot continue while {self.phase.value}")
            return False

        logger.info("Continuing from abandoned session")
        self._is_abandoning = False
        self.abandon_reason = None
        self.phase = SessionPhase.SETUP
        return True

    def show_break_setup(self) -> bool:
        """Move from complete to break and suggest a break length."""
        if self.phase != SessionPhase.COMPLETE:
            logger.warning(f"Cannot set up a break while {self.phase.value}")
            return False

        if self.completed_session is not None:
            focus_minutes = self.completed_session.duration_seconds // 60
            self.break_duration_minutes = calculate_break_duration(focus_minutes) // 60

        logger.info(f"Showing break setup, suggested {self.break_duration_minutes} min")
        self.completed_session = None
        self.break_session = None
        self.phase = SessionPhase.BREAK
        return True

    def set_break_duration(self, minutes: int) -> None:
        if minutes <= 0:
            raise ValueError(f"Break duration must be positive, got {minutes}")
        self.break_duration_minutes = minutes

    def start_break(self) -> bool:
        """Start the break countdown."""
        if self.phase != SessionPhase.BREAK or self.break_session is not None:
            logger.warning(f"Cannot start a break while {self.phase.value}")
            return False

        duration = self.break_duration_minutes * 60
        logger.info(f"Starting break: {self.break_duration_minutes} min")
        self.break_session = BreakSession(duration_seconds=duration, remaining_seconds=duration)
        self._call_view("start_break_view")
        self._break_task = asyncio.get_running_loop().create_task(self._run_break())
        return True

    def end_break(self) -> bool:
        """End the break early and return to setup."""
        if self.phase != SessionPhase.BREAK:
            logger.warning(f"No break to end while {self.phase.value}")
            return False

        logger.info("Break ended, showing session setup")
        self._finish_break()
        return True

    def start_another_session(self) -> bool:
        """Skip the rest of the break and set up the next session."""
        if self.phase != SessionPhase.BREAK:
            logger.warning(f"Cannot start another session while {self.phase.value}")
            return False

        logger.info("Starting another session")
        self._finish_break()
        return True

    # ===== External signals =====

    def on_natural_end(self, duration_seconds: int, coins_earned: int) -> bool:
        """
        Handle the game view reporting that its session ended.

        The countdown may already have completed the session; in that case
        the flag it left is cleared and nothing is written. A report that
        arrives after an abandon is swallowed the same way.

        Returns:
            True if this signal completed the session
        """
        if self._session_auto_completed:
            logger.info("Ignoring game view end, session was auto-completed")
            self._session_auto_completed = False
            return False

        if self._is_abandoning:
            logger.info("Ignoring game view end, session was abandoned")
            self._is_abandoning = False
            return False

        if self.phase != SessionPhase.ACTIVE or self.active_session is None:
            logger.warning(f"Ignoring game view end with no active session ({self.phase.value})")
            return False

        logger.info(f"Session completed by game view: {duration_seconds}s, {coins_earned} coins")
        self._complete_session(max(0, int(duration_seconds)), max(0, int(coins_earned)))
        return True

    def on_group_failed(self, group_id: str) -> bool:
        """Abandon without re-propagating when the shared group failed elsewhere."""
        if self.phase != SessionPhase.ACTIVE or group_id != self.group_session_id:
            logger.debug(f"Ignoring failure of group {group_id}")
            return False

        logger.info(f"Group {group_id} failed, abandoning local session")
        return self.confirm_abandon(skip_group_fail=True)

    def handle_app_state_change(
        self, state: AppState, at: Optional[float] = None
    ) -> LifecycleTransition:
        """
        Feed one host app state change into the lifecycle monitor.

        An app switch during an active session schedules a reminder and arms
        the grace period; returning before it expires disarms it and
        reschedules the completion alert. A screen lock changes nothing.

        Args:
            state: The state reported by the host.
            at: Epoch seconds of the change, defaults to now.

        Returns:
            The classified transition
        """
        transition = self.lifecycle_monitor.observe(state, at)

        if self.phase != SessionPhase.ACTIVE:
            return transition

        if transition.signal == LifecycleSignal.APP_SWITCH:
            self._arm_grace_period()
        elif transition.signal == LifecycleSignal.SCREEN_LOCK:
            logger.info("Screen lock detected, countdown continues")
        elif transition.signal == LifecycleSignal.RETURNED and self._background_started_at is not None:
            self._disarm_grace_period()

        return transition

    # ===== Timing =====

    def tick(self) -> int:
        """
        Recompute the remaining time from the wall clock.

        Completes the session when the countdown reaches zero.

        Returns:
            Remaining seconds
        """
        if self.phase != SessionPhase.ACTIVE or self.active_session is None:
            return 0

        config = self.active_session.config
        remaining = remaining_seconds(
            self.active_session.started_at, config.total_seconds, self._clock()
        )
        if remaining <= 0:
            coins = calculate_coins(config.duration_minutes, self.policy.coins_per_minute)
            logger.info(f"Countdown finished, auto-completing: {config.total_seconds}s, {coins} coins")
            self._complete_session(config.total_seconds, coins, auto_completed=True)
            return 0

        self.active_session.remaining_seconds = remaining
        return remaining

    def current_remaining_seconds(self) -> int:
        if self.active_session is None:
            return 0
        return remaining_seconds(
            self.active_session.started_at,
            self.active_session.config.total_seconds,
            self._clock(),
        )

    def send_heartbeat(self) -> bool:
        """Push presence for the running session, if it has a record yet."""
        handle = self._session_handle
        if self.phase != SessionPhase.ACTIVE or self.active_session is None or handle is None:
            return False

        remaining = self.current_remaining_seconds()
        logger.debug(f"Heartbeat {handle}: {remaining}s remaining")
        self._spawn(
            self._call(f"Heartbeat for {handle}", self.session_gateway.heartbeat, handle, remaining)
        )
        return True

    def break_tick(self) -> int:
        """Count the break down by one second."""
        if self.phase != SessionPhase.BREAK or self.break_session is None:
            return 0

        remaining = self.break_session.remaining_seconds - 1
        if remaining <= 0:
            logger.info("Break finished, showing session setup")
            self._finish_break()
            return 0

        self.break_session.remaining_seconds = remaining
        return remaining

    async def _run_countdown(self, episode: int) -> None:
        while self._is_current(episode):
            await asyncio.sleep(self.policy.tick_interval_seconds)
            if self._is_current(episode):
                self.tick()

    async def _run_heartbeat(self, episode: int) -> None:
        while self._is_current(episode):
            await asyncio.sleep(self.policy.heartbeat_interval_seconds)
            if self._is_current(episode):
                self.send_heartbeat()

    async def _run_break(self) -> None:
        while self.break_session is not None:
            await asyncio.sleep(self.policy.tick_interval_seconds)
            self.break_tick()

    # ===== Grace period =====

    def _arm_grace_period(self) -> None:
        if self._grace_task is not None:
            return

        logger.info(f"App switch detected, grace period {self.policy.grace_period_seconds}s")
        episode = self._episode
        self._background_started_at = self._clock()
        self._spawn(self._schedule_reminder(episode))
        self._grace_task = asyncio.get_running_loop().create_task(
            self._run_grace_period(episode)
        )

    def _disarm_grace_period(self) -> None:
        away = self._clock() - self._background_started_at
        logger.info(f"Returned after {away:.1f}s, grace period cancelled")

        self._cancel_timer(self._grace_task)
        self._grace_task = None
        self._background_started_at = None

        # The countdown may have run out while the process was suspended
        self.tick()
        if self.phase == SessionPhase.ACTIVE:
            self._spawn(self._reschedule_completion(self._episode))

    async def _run_grace_period(self, episode: int) -> None:
        await asyncio.sleep(self.policy.grace_period_seconds)
        self._grace_task = None
        if self._is_current(episode) and self._background_started_at is not None:
            logger.info("Grace period expired, failing session")
            self._abandon_session(TerminalReason.FAILED, propagate_group_failure=True)

    # ===== Terminal transitions =====

    def _complete_session(
        self, duration_seconds: int, coins_earned: int, auto_completed: bool = False
    ) -> None:
        handle_task = self._teardown_session()
        total_today = self._record_focus_time(duration_seconds)

        self.completed_session = CompletedSession(
            duration_seconds=duration_seconds,
            coins_earned=coins_earned,
            total_time_today=total_today,
        )
        self._session_auto_completed = auto_completed
        self.showing_abandon_confirm = False
        self.has_completed_any_session = True
        self.phase = SessionPhase.COMPLETE
        logger.info(f"Session complete: {format_duration(duration_seconds)}, {format_duration(total_today)} today")

        self._spawn(
            self._close_out(
                handle_task,
                "complete",
                lambda handle: self.session_gateway.complete(handle, duration_seconds, coins_earned),
            )
        )
        self._call_view("end")

    def _abandon_session(self, reason: TerminalReason, propagate_group_failure: bool) -> None:
        logger.info(
            f"Session {reason.value}, no rewards (group {self.group_session_id}, "
            f"propagate {propagate_group_failure})"
        )
        handle_task = self._teardown_session()
        group_id = self.group_session_id if propagate_group_failure else None

        self._is_abandoning = True
        self.abandon_reason = reason
        self.showing_abandon_confirm = False
        self.has_completed_any_session = True
        self.phase = SessionPhase.ABANDONED

        if reason == TerminalReason.FAILED:
            write = self.session_gateway.fail
        else:
            write = self.session_gateway.abandon
        self._spawn(self._close_out(handle_task, reason.value, write, group_id))
        self._call_view("end")

    def _teardown_session(self) -> Optional[asyncio.Task]:
        """Stop session timers and detach session-scoped handles.

        Returns:
            The pending record creation, so the terminal write can await it
        """
        self._cancel_timer(self._countdown_task)
        self._countdown_task = None
        self._cancel_timer(self._heartbeat_task)
        self._heartbeat_task = None
        self._cancel_timer(self._grace_task)
        self._grace_task = None
        self._background_started_at = None

        handle_task = self._handle_task
        self._handle_task = None
        self._session_handle = None
        self.active_session = None
        return handle_task

    async def _close_out(
        self,
        handle_task: Optional[asyncio.Task],
        action: str,
        write: Callable[[str], Awaitable[None]],
        group_id: Optional[str] = None,
    ) -> None:
        await self._cancel_notifications()

        handle = await handle_task if handle_task is not None else None
        if handle is not None:
            await self._call(f"Persisting {action} for {handle}", write, handle)
        else:
            logger.info(f"No session record to mark {action}")

        if group_id is not None:
            await self._call(f"Failing group {group_id}", self.group_coordinator.fail_group, group_id)
            logger.info(f"Failed group session {group_id} for everyone")

    def _finish_break(self) -> None:
        self._cancel_timer(self._break_task)
        self._break_task = None
        was_running = self.break_session is not None
        self.break_session = None
        self.phase = SessionPhase.SETUP
        if was_running:
            self._call_view("end_break_view")

    # ===== Collaborator dispatch =====

    async def _create_record(
        self,
        episode: int,
        location: SessionLocation,
        user: SessionUser,
        planned_duration: int,
        deep_focus_mode: bool,
        group_session_id: Optional[str],
    ) -> Optional[str]:
        handle = await self._call(
            "Creating session record",
            self.session_gateway.create,
            location,
            user,
            planned_duration,
            deep_focus_mode,
            group_session_id,
        )
        if handle is not None:
            logger.info(f"Created session record {handle}")
            if self._is_current(episode):
                self._session_handle = handle
        return handle

    async def _schedule_completion(self, episode: int, after_seconds: int) -> None:
        async with self._notification_lock:
            if self._is_current(episode):
                await self._call(
                    "Scheduling completion notification",
                    self.notifications.schedule_completion,
                    after_seconds,
                )

    async def _schedule_reminder(self, episode: int) -> None:
        async with self._notification_lock:
            if self._is_current(episode):
                await self._call(
                    "Scheduling reminder notification",
                    self.notifications.schedule_reminder,
                    self.policy.reminder_delay_seconds,
                )

    async def _reschedule_completion(self, episode: int) -> None:
        async with self._notification_lock:
            if not self._is_current(episode):
                return
            await self._call("Cancelling notifications", self.notifications.cancel_all)
            remaining = self.current_remaining_seconds()
            if self._is_current(episode) and remaining > 0:
                await self._call(
                    "Rescheduling completion notification",
                    self.notifications.schedule_completion,
                    remaining,
                )

    async def _cancel_notifications(self) -> None:
        async with self._notification_lock:
            await self._call("Cancelling notifications", self.notifications.cancel_all)

    async def _call(self, description: str, func: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        """Await a collaborator call, logging instead of raising on failure."""
        try:
            return await func(*args)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"{description} failed: {e}", exc_info=True)
            return None

    def _spawn(self, coro: Awaitable[Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _call_view(self, method: str, *args: Any) -> None:
        if self._game_view is None:
            return
        try:
            getattr(self._game_view, method)(*args)
        except Exception as e:
            logger.error(f"Game view {method} failed: {e}", exc_info=True)

    # ===== Helpers =====

    def _is_current(self, episode: int) -> bool:
        return self._episode == episode and self.phase == SessionPhase.ACTIVE

    @staticmethod
    def _cancel_timer(task: Optional[asyncio.Task]) -> None:
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _record_focus_time(self, seconds: int) -> int:
        today = datetime.fromtimestamp(self._clock()).date()
        self._focus_seconds_by_day[today] = self._focus_seconds_by_day.get(today, 0) + seconds
        return self._focus_seconds_by_day[today]

    def get_state(self) -> dict:
        """Get the current engine state as a dictionary.

        Returns:
            Dictionary representation of the engine state
        """
        return {
            "phase": self.phase.value,
            "config": self.config.model_dump(),
            "active_session": self.active_session.model_dump() if self.active_session else None,
            "completed_session": self.completed_session.model_dump() if self.completed_session else None,
            "break_session": self.break_session.model_dump() if self.break_session else None,
            "break_duration_minutes": self.break_duration_minutes,
            "showing_abandon_confirm": self.showing_abandon_confirm,
            "has_completed_any_session": self.has_completed_any_session,
            "abandon_reason": self.abandon_reason.value if self.abandon_reason else None,
            "current_location": self.current_location.model_dump() if self.current_location else None,
            "group_session_id": self.group_session_id,
            "is_group_session": self.is_group_session,
            "session_handle": self._session_handle,
        }
