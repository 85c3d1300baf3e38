"""
End-to-end test of the focus session API and the game-view WebSocket.

Runs the FastAPI app in process with the local backends. Each test uses its
own user id because the controller is shared by the module-level app.
"""

import time

import pytest
from fastapi.testclient import TestClient

from src.application.api import app

SEATED = {"building_id": "library", "building_name": "Library", "spot_id": "table_1"}


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["providers"]["session_gateway"] == "LocalSessionGateway"


def test_idle_session(client):
    response = client.get("/users/idle-user/session")

    assert response.status_code == 200
    assert response.json()["phase"] == "idle"
    assert response.json()["remaining_seconds"] == 0
    assert response.json()["remaining_display"] == "00:00"


def test_setup_and_abandon(client):
    user = "/users/abandon-user"

    response = client.post(f"{user}/seated", json={**SEATED, "display_name": "Ada"})
    assert response.status_code == 200
    assert response.json()["phase"] == "setup"

    response = client.patch(f"{user}/config", json={"duration_minutes": 5})
    assert response.json()["config"] == {"duration_minutes": 5, "deep_focus_mode": True}

    response = client.post(f"{user}/start")
    assert response.status_code == 200
    assert response.json()["phase"] == "active"
    assert response.json()["active_session"]["remaining_seconds"] == 300

    response = client.post(f"{user}/abandon/request")
    assert response.json()["showing_abandon_confirm"] is True
    response = client.post(f"{user}/abandon/cancel")
    assert response.json()["showing_abandon_confirm"] is False

    response = client.post(f"{user}/abandon/confirm")
    assert response.status_code == 200
    assert response.json()["phase"] == "abandoned"
    assert response.json()["abandon_reason"] == "abandoned"

    response = client.post(f"{user}/abandon/confirm")
    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot abandon while abandoned"

    response = client.post(f"{user}/continue")
    assert response.json()["phase"] == "setup"

    response = client.post(f"{user}/cancel-setup")
    assert response.json()["phase"] == "idle"


def test_rejected_transitions(client):
    user = "/users/rejected-user"

    response = client.post(f"{user}/start")
    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot start a session while idle"

    assert client.post(f"{user}/home").status_code == 409
    assert client.post(f"{user}/break/setup").status_code == 409
    assert client.patch(f"{user}/config", json={"duration_minutes": 10}).status_code == 409


def test_invalid_config_is_unprocessable(client):
    user = "/users/invalid-config-user"
    client.post(f"{user}/seated", json=SEATED)
    client.patch(f"{user}/config", json={"duration_minutes": 0})

    response = client.post(f"{user}/start")

    assert response.status_code == 422
    assert client.get(f"{user}/session").json()["phase"] == "setup"


def test_app_state_changes(client):
    user = "/users/app-state-user"
    client.post(f"{user}/seated", json=SEATED)
    client.post(f"{user}/start")

    response = client.post(f"{user}/app-state", json={"state": "inactive", "at": 1000.0})
    assert response.json()["lifecycle_signal"] == "none"
    response = client.post(f"{user}/app-state", json={"state": "background", "at": 1000.05})
    assert response.json()["lifecycle_signal"] == "screen_lock"
    response = client.post(f"{user}/app-state", json={"state": "active"})
    assert response.json()["lifecycle_signal"] == "returned"
    assert response.json()["phase"] == "active"

    response = client.post(f"{user}/app-state", json={"state": "sleeping"})
    assert response.status_code == 422


def test_group_session(client):
    user = "/users/group-user"

    response = client.post(f"{user}/group", json={"group_id": "group-1"})

    assert response.status_code == 200
    assert response.json()["group_session_id"] == "group-1"
    assert response.json()["is_group_session"] is True


def test_game_view_session_and_break(client):
    user = "/users/game-view-user"

    with client.websocket_connect(f"{user}/game-view") as websocket:
        client.post(f"{user}/seated", json=SEATED)
        client.patch(f"{user}/config", json={"duration_minutes": 10})
        client.post(f"{user}/start")
        assert websocket.receive_json() == {"type": "session.start", "duration_seconds": 600}

        websocket.send_json({"type": "session.complete", "duration_seconds": 600, "coins_earned": 100})
        assert websocket.receive_json() == {"type": "session.end"}

        state = client.get(f"{user}/session").json()
        assert state["phase"] == "complete"
        assert state["completed_session"] == {
            "duration_seconds": 600,
            "coins_earned": 100,
            "total_time_today": 600,
        }

        response = client.post(f"{user}/break/setup")
        assert response.json()["phase"] == "break"
        assert response.json()["break_duration_minutes"] == 2

        assert client.post(f"{user}/break/duration", json={"minutes": 0}).status_code == 422
        client.post(f"{user}/break/duration", json={"minutes": 3})

        response = client.post(f"{user}/break/start")
        assert response.json()["break_session"]["duration_seconds"] == 180
        assert websocket.receive_json() == {"type": "break.start"}

        response = client.post(f"{user}/break/another")
        assert response.json()["phase"] == "setup"
        assert websocket.receive_json() == {"type": "break.end"}


def test_game_view_seats_player(client):
    user = "/users/seated-by-view-user"

    with client.websocket_connect(f"{user}/game-view") as websocket:
        websocket.send_json({"type": "player.seated", **SEATED})
        for _ in range(100):
            if client.get(f"{user}/session").json()["phase"] == "setup":
                break
            time.sleep(0.01)

        assert client.post(f"{user}/start").status_code == 200
        message = websocket.receive_json()

    assert message == {"type": "session.start", "duration_seconds": 1500}


def wait_for(fetch, condition, attempts=100):
    """Poll until background writes land; returns the last fetched value."""
    value = fetch()
    for _ in range(attempts):
        if condition(value):
            break
        time.sleep(0.01)
        value = fetch()
    return value


def test_presence_and_stats(client):
    user = "/users/presence-user"
    seated = {
        "building_id": "observatory",
        "building_name": "Observatory",
        "spot_id": "desk_3",
        "display_name": "Grace",
    }

    with client.websocket_connect(f"{user}/game-view") as websocket:
        client.post(f"{user}/seated", json=seated)
        client.patch(f"{user}/config", json={"duration_minutes": 5})
        client.post(f"{user}/start")
        assert websocket.receive_json() == {"type": "session.start", "duration_seconds": 300}

        presence = wait_for(lambda: client.get("/buildings/observatory/presence").json(), lambda p: len(p) == 1)
        assert presence == [
            {
                "user_id": "presence-user",
                "display_name": "Grace",
                "spot_id": "desk_3",
                "remaining_seconds": 300,
                "is_group_session": False,
            }
        ]

        websocket.send_json({"type": "session.complete", "duration_seconds": 300, "coins_earned": 50})
        assert websocket.receive_json() == {"type": "session.end"}

    stats = wait_for(lambda: client.get(f"{user}/stats").json(), lambda s: s["sessions_completed"] == 1)
    assert stats["total_coins"] == 50
    assert stats["total_focus_time"] == 300
    assert client.get("/buildings/observatory/presence").json() == []


def test_stats_for_new_user(client):
    response = client.get("/users/stats-newcomer/stats")

    assert response.status_code == 200
    assert response.json()["sessions_completed"] == 0
    assert response.json()["last_active_at"] is None
