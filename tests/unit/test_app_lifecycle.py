"""Tests for AppLifecycleMonitor screen lock detection."""

from src.domain.entities import AppState, LifecycleSignal
from src.domain.services import AppLifecycleMonitor


def background_after(monitor, inactive_seconds, start=1000.0):
    monitor.observe(AppState.INACTIVE, at=start)
    return monitor.observe(AppState.BACKGROUND, at=start + inactive_seconds)


def test_short_inactive_phase_is_screen_lock():
    transition = background_after(AppLifecycleMonitor(), 0.199)

    assert transition.signal == LifecycleSignal.SCREEN_LOCK
    assert transition.inactive_ms == 199.0


def test_threshold_counts_as_app_switch():
    transition = background_after(AppLifecycleMonitor(), 0.2)

    assert transition.signal == LifecycleSignal.APP_SWITCH
    assert transition.previous == AppState.INACTIVE
    assert transition.current == AppState.BACKGROUND


def test_long_inactive_phase_is_app_switch():
    assert background_after(AppLifecycleMonitor(), 3).signal == LifecycleSignal.APP_SWITCH


def test_background_without_inactive_phase_is_app_switch():
    monitor = AppLifecycleMonitor()

    transition = monitor.observe(AppState.BACKGROUND, at=1000.0)

    assert transition.signal == LifecycleSignal.APP_SWITCH


def test_custom_threshold():
    monitor = AppLifecycleMonitor(lock_detection_threshold_ms=500)

    assert background_after(monitor, 0.3).signal == LifecycleSignal.SCREEN_LOCK
    monitor.observe(AppState.ACTIVE, at=1001.0)
    assert background_after(monitor, 0.5, start=1002.0).signal == LifecycleSignal.APP_SWITCH


def test_return_to_active():
    monitor = AppLifecycleMonitor()
    background_after(monitor, 1)

    transition = monitor.observe(AppState.ACTIVE, at=1010.0)

    assert transition.signal == LifecycleSignal.RETURNED
    assert monitor.state == AppState.ACTIVE


def test_inactive_and_back_is_not_a_return_from_background():
    monitor = AppLifecycleMonitor()

    assert monitor.observe(AppState.INACTIVE, at=1000.0).signal == LifecycleSignal.NONE
    assert monitor.observe(AppState.ACTIVE, at=1000.1).signal == LifecycleSignal.RETURNED
    # The next background starts with no inactive phase recorded
    assert monitor.observe(AppState.BACKGROUND, at=1005.0).signal == LifecycleSignal.APP_SWITCH


def test_repeated_state_is_ignored():
    monitor = AppLifecycleMonitor()

    assert monitor.observe(AppState.ACTIVE, at=1000.0).signal == LifecycleSignal.NONE


def test_uses_clock_when_no_timestamp_given():
    now = [1000.0]
    monitor = AppLifecycleMonitor(clock=lambda: now[0])

    monitor.observe(AppState.INACTIVE)
    now[0] += 0.05
    assert monitor.observe(AppState.BACKGROUND).signal == LifecycleSignal.SCREEN_LOCK


def test_reset():
    monitor = AppLifecycleMonitor()
    monitor.observe(AppState.INACTIVE, at=1000.0)

    monitor.reset()

    assert monitor.state == AppState.ACTIVE
    assert monitor.observe(AppState.BACKGROUND, at=1000.05).signal == LifecycleSignal.APP_SWITCH
