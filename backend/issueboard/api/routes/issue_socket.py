"""Issue Socket — WebSocket endpoint carrying the board's event protocol.

Invariants:
    - On connect the client receives exactly one `init` before any delta
    - Each received frame (text or binary JSON) is one client event, handled to completion
      before the next frame is read
    - The observer is unregistered on every exit path

Design Decisions:
    - Served at /ws and at / (browsers opened on the static page connect to
      the page origin root)
    - WebSocketObserver adapts Starlette's WebSocket to the Observer protocol
"""

import logging
import uuid

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

from issueboard.api.dependencies import get_socket_board
from issueboard.core.domain_types import ObserverId
from issueboard.services.board import Board

logger = logging.getLogger(__name__)
router = APIRouter(tags=["issues"])


class WebSocketObserver:
    """Observer backed by a Starlette WebSocket."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.observer_id = ObserverId(uuid.uuid4().hex[:8])

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_event(self, event: dict) -> None:
        await self.websocket.send_json(event)


async def issue_socket(websocket: WebSocket, board: Board = Depends(get_socket_board)):
    """Event stream: init on connect, then mutations in, deltas out."""
    await websocket.accept()
    observer = WebSocketObserver(websocket)
    try:
        await board.processor.connect(observer)
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await board.dispatcher.handle(observer, raw)
    except WebSocketDisconnect:
        logger.debug("Socket closed by client", extra={"observer_id": observer.observer_id})
    finally:
        board.processor.disconnect(observer.observer_id)


router.add_api_websocket_route("/ws", issue_socket)
router.add_api_websocket_route("/", issue_socket)
