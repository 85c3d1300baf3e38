import asyncio
import json
import logging
from typing import Optional

from starlette.websockets import WebSocket, WebSocketDisconnect

from ..domain.entities import SessionLocation
from ..domain.interfaces.game_view_bridge import GameViewBridge
from ..domain.services import SessionEngine

logger = logging.getLogger(__name__)


class GameViewWebSocketHandler(GameViewBridge):
    """Game view bridge that talks to a remote game client over a WebSocket.

    Engine commands are queued and sent as JSON text frames. The client
    reports seating and the natural end of its own session clock back as
    JSON control messages.
    """

    def __init__(self, engine: SessionEngine):
        self._engine = engine
        self.outbound_queue: asyncio.Queue = asyncio.Queue()

    # ===== GameViewBridge =====

    def start(self, duration_seconds: int) -> None:
        self._enqueue({"type": "session.start", "duration_seconds": duration_seconds})

    def end(self) -> None:
        self._enqueue({"type": "session.end"})

    def cancel_setup(self) -> None:
        self._enqueue({"type": "setup.cancel"})

    def start_break_view(self) -> None:
        self._enqueue({"type": "break.start"})

    def end_break_view(self) -> None:
        self._enqueue({"type": "break.end"})

    def _enqueue(self, message: dict) -> None:
        logger.debug(f"Queueing game view command: {message['type']}")
        self.outbound_queue.put_nowait(message)

    # ===== Connection =====

    async def handle_websocket(self, websocket: WebSocket) -> None:
        # Note: websocket.accept() is called by the API endpoint before this
        send_task = asyncio.create_task(self._send_loop(websocket))
        receive_task = asyncio.create_task(self._receive_loop(websocket))
        done, pending = await asyncio.wait(
            {send_task, receive_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
        try:
            for task in done:
                exc = task.exception()
                if exc:
                    raise exc
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected: {websocket.client}")
        except Exception as e:
            logger.error(f"WebSocket error: {e}", exc_info=True)
        finally:
            for t in (send_task, receive_task):
                if not t.done():
                    t.cancel()
            await asyncio.gather(send_task, receive_task, return_exceptions=True)

            try:
                await websocket.close()
            except RuntimeError:
                # Already closed by the client
                pass
            logger.info(f"WebSocket connection closed: {websocket.client}")

    async def _send_loop(self, websocket: WebSocket) -> None:
        while True:
            message = await self.outbound_queue.get()
            logger.info(f"Sending game view command: {message['type']}")
            await websocket.send_text(json.dumps(message))

    async def _receive_loop(self, websocket: WebSocket) -> None:
        """Receive control messages from the game client."""
        while True:
            data = await websocket.receive()

            if data.get("type") == "websocket.receive" and data.get("text") is not None:
                try:
                    message = json.loads(data["text"])
                except json.JSONDecodeError as e:
                    logger.error(f"Invalid JSON message: {e}")
                    continue
                try:
                    self._handle_control_message(message)
                except (TypeError, ValueError) as e:
                    logger.error(f"Invalid control message {message}: {e}")

            elif data.get("type") == "websocket.disconnect":
                logger.info(f"Client disconnected: {data.get('code')}")
                break

            else:
                logger.warning("Ignoring non-text frame from game client")

    def _handle_control_message(self, message: dict) -> Optional[bool]:
        """Handle a JSON control message from the game client."""
        msg_type = message.get("type") if isinstance(message, dict) else None

        if msg_type == "session.complete":
            return self._engine.on_natural_end(
                int(message.get("duration_seconds", 0)),
                int(message.get("coins_earned", 0)),
            )

        elif msg_type == "player.seated":
            building_id = message.get("building_id")
            if not building_id:
                logger.warning("player.seated without building_id")
                return False
            location = SessionLocation(
                building_id=building_id,
                building_name=message.get("building_name", ""),
                spot_id=message.get("spot_id", ""),
            )
            return self._engine.on_player_seated(location)

        else:
            logger.warning(f"Unknown control message type: {msg_type}")
            return None
