"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..domain.entities import AppState, SessionLocation
from ..domain.services import SessionEngine
from ..domain.services.countdown import format_time
from .config import settings
from .controller import create_controller
from .websocket_handler import GameViewWebSocketHandler

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Initialize controller with the collaborators selected by settings
controller = create_controller(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await controller.shutdown()


# Create FastAPI app instance
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class SeatedRequest(BaseModel):
    building_id: str
    building_name: str = ""
    spot_id: str = ""
    display_name: Optional[str] = None


class ConfigRequest(BaseModel):
    duration_minutes: Optional[int] = None
    deep_focus_mode: Optional[bool] = None


class AbandonConfirmRequest(BaseModel):
    skip_group_fail: bool = False


class BreakDurationRequest(BaseModel):
    minutes: int


class AppStateRequest(BaseModel):
    state: AppState
    at: Optional[float] = Field(None, description="Epoch seconds of the change, defaults to now")


class GroupRequest(BaseModel):
    group_id: Optional[str] = None


def _result(engine: SessionEngine, accepted: bool, action: str) -> dict:
    """Return the engine state, or 409 if the engine rejected the action."""
    if not accepted:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot {action} while {engine.phase.value}",
        )
    return engine.get_state()


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return controller.get_health_status()


@app.get("/users/{user_id}/session")
async def get_session(user_id: str):
    """Get the session state for a user, with the live remaining time."""
    engine = await controller.get_engine(user_id)
    state = engine.get_state()
    remaining = engine.current_remaining_seconds()
    state["remaining_seconds"] = remaining
    state["remaining_display"] = format_time(remaining)
    return state


@app.get("/users/{user_id}/stats")
async def get_user_stats(user_id: str):
    """Get a user's lifetime focus totals."""
    stats = await controller.get_user_stats(user_id)
    return stats.model_dump()


@app.get("/buildings/{building_id}/presence")
async def get_building_presence(building_id: str):
    """List the users currently studying in a building."""
    presence = await controller.get_building_presence(building_id)
    return [entry.model_dump() for entry in presence]


@app.post("/users/{user_id}/seated")
async def player_seated(user_id: str, request: SeatedRequest):
    """Player sat down at a study spot; opens session setup."""
    engine = await controller.get_engine(user_id, request.display_name)
    location = SessionLocation(
        building_id=request.building_id,
        building_name=request.building_name,
        spot_id=request.spot_id,
    )
    return _result(engine, engine.on_player_seated(location), "sit down")


@app.patch("/users/{user_id}/config")
async def update_config(user_id: str, request: ConfigRequest):
    engine = await controller.get_engine(user_id)
    updates = request.model_dump(exclude_none=True)
    return _result(engine, engine.update_config(**updates), "change config")


@app.post("/users/{user_id}/start")
async def start_session(user_id: str):
    """Start the focus session with the current config."""
    engine = await controller.get_engine(user_id)
    try:
        started = engine.start_session()
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _result(engine, started, "start a session")


@app.post("/users/{user_id}/cancel-setup")
async def cancel_setup(user_id: str):
    engine = await controller.get_engine(user_id)
    return _result(engine, engine.cancel_setup(), "cancel setup")


@app.post("/users/{user_id}/abandon/request")
async def request_abandon(user_id: str):
    engine = await controller.get_engine(user_id)
    return _result(engine, engine.request_abandon(), "request abandon")


@app.post("/users/{user_id}/abandon/confirm")
async def confirm_abandon(user_id: str, request: Optional[AbandonConfirmRequest] = None):
    """Abandon the running session; the response already shows it abandoned."""
    engine = await controller.get_engine(user_id)
    skip_group_fail = request.skip_group_fail if request else False
    return _result(engine, engine.confirm_abandon(skip_group_fail=skip_group_fail), "abandon")


@app.post("/users/{user_id}/abandon/cancel")
async def cancel_abandon(user_id: str):
    engine = await controller.get_engine(user_id)
    engine.cancel_abandon_confirmation()
    return engine.get_state()


@app.post("/users/{user_id}/home")
async def go_home(user_id: str):
    engine = await controller.get_engine(user_id)
    return _result(engine, engine.go_home(), "go home")


@app.post("/users/{user_id}/continue")
async def continue_from_abandoned(user_id: str):
    engine = await controller.get_engine(user_id)
    return _result(engine, engine.continue_from_abandoned(), "continue")


@app.post("/users/{user_id}/break/setup")
async def show_break_setup(user_id: str):
    engine = await controller.get_engine(user_id)
    return _result(engine, engine.show_break_setup(), "set up a break")


@app.post("/users/{user_id}/break/duration")
async def set_break_duration(user_id: str, request: BreakDurationRequest):
    engine = await controller.get_engine(user_id)
    try:
        engine.set_break_duration(request.minutes)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return engine.get_state()


@app.post("/users/{user_id}/break/start")
async def start_break(user_id: str):
    engine = await controller.get_engine(user_id)
    return _result(engine, engine.start_break(), "start a break")


@app.post("/users/{user_id}/break/end")
async def end_break(user_id: str):
    engine = await controller.get_engine(user_id)
    return _result(engine, engine.end_break(), "end the break")


@app.post("/users/{user_id}/break/another")
async def start_another_session(user_id: str):
    engine = await controller.get_engine(user_id)
    return _result(engine, engine.start_another_session(), "start another session")


@app.post("/users/{user_id}/app-state")
async def app_state_change(user_id: str, request: AppStateRequest):
    """Report a host app state change (active, inactive, background)."""
    engine = await controller.get_engine(user_id)
    transition = engine.handle_app_state_change(request.state, request.at)
    state = engine.get_state()
    state["lifecycle_signal"] = transition.signal.value
    return state


@app.post("/users/{user_id}/group")
async def set_group_session(user_id: str, request: GroupRequest):
    """Join (or leave, with no group_id) a shared group session."""
    await controller.get_engine(user_id)
    controller.set_group_session(user_id, request.group_id)
    return controller.find_engine(user_id).get_state()


@app.websocket("/users/{user_id}/game-view")
async def game_view_endpoint(websocket: WebSocket, user_id: str):
    """
    WebSocket endpoint for the game view of one user.

    Server to client: session.start (with duration_seconds), session.end,
    setup.cancel, break.start, break.end.

    Client to server: player.seated (building_id, building_name, spot_id)
    and session.complete (duration_seconds, coins_earned) when the game's
    own session clock runs out.
    """
    engine = await controller.get_engine(user_id)
    handler = GameViewWebSocketHandler(engine)
    controller.attach_game_view(user_id, handler)

    # Accept the websocket connection
    await websocket.accept()
    try:
        await handler.handle_websocket(websocket)
    finally:
        controller.detach_game_view(user_id, handler)
