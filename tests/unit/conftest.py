"""Shared fixtures for session engine tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from src.domain.entities import SessionLocation, SessionPolicy, SessionUser
from src.domain.interfaces import GameViewBridge
from src.domain.services import SessionEngine


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, now: float = 1_767_225_600.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def policy():
    """Default constants with timers shrunk to milliseconds."""
    return SessionPolicy(
        grace_period_seconds=0.05,
        heartbeat_interval_seconds=0.02,
        tick_interval_seconds=0.01,
    )


@pytest.fixture
def gateway():
    mock_gateway = AsyncMock()
    mock_gateway.create.return_value = "sess-1"
    return mock_gateway


@pytest.fixture
def notifications():
    mock_notifications = AsyncMock()
    mock_notifications.request_permissions.return_value = True
    mock_notifications.schedule_completion.return_value = "notif-1"
    mock_notifications.schedule_reminder.return_value = "notif-2"
    return mock_notifications


@pytest.fixture
def group_coordinator():
    return AsyncMock()


@pytest.fixture
def game_view():
    return MagicMock(spec=GameViewBridge)


@pytest.fixture
def location():
    return SessionLocation(building_id="library", building_name="Library", spot_id="table_1")


@pytest.fixture
def user():
    return SessionUser(user_id="user-42", display_name="Ada")


@pytest_asyncio.fixture
async def engine(gateway, notifications, group_coordinator, policy, clock, game_view, user):
    """A session engine with mocked collaborators, closed after the test."""
    session_engine = SessionEngine(
        session_gateway=gateway,
        notification_scheduler=notifications,
        group_coordinator=group_coordinator,
        policy=policy,
        clock=clock,
    )
    session_engine.set_user(user)
    session_engine.set_game_view(game_view)
    yield session_engine
    await session_engine.close()
