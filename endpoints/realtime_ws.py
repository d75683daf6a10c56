from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from realtime import RoomRegistry, WebSocketConnection, envelope
from services.errors import DeliveryError
from services.sync import REJECTED_EVENT, SessionSynchronizer
import json
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


def _parse_frame(text: str):
    """Split a client frame into (event, data); None when it is not an envelope."""
    try:
        message = json.loads(text)
    except ValueError:
        return None
    if not isinstance(message, dict) or not isinstance(message.get("event"), str):
        return None
    return message["event"], message.get("data")


@router.websocket("/ws")
async def scene_ws(websocket: WebSocket):
    synchronizer: SessionSynchronizer = websocket.app.state.synchronizer
    rooms: RoomRegistry = websocket.app.state.rooms
    await websocket.accept()
    connection = WebSocketConnection(websocket)
    logger.info("Connection %s opened", connection.id)
    try:
        await connection.send(envelope("connection_ack", {"connectionId": connection.id}))
        while True:
            text = await websocket.receive_text()
            if text == "ping":
                await connection.send({"event": "pong"})
                continue
            frame = _parse_frame(text)
            if frame is None:
                await connection.send(envelope(REJECTED_EVENT, {
                    "event": None,
                    "projectId": None,
                    "reason": "invalid_payload",
                    "detail": "expected a JSON object with an 'event' name",
                }))
                continue
            event, data = frame
            # Each event runs independently; later frames do not wait for earlier writes
            synchronizer.submit(connection, event, data)
    except (WebSocketDisconnect, DeliveryError):
        pass
    finally:
        left = await rooms.leave_all(connection)
        logger.info("Connection %s closed (left projects %s)", connection.id, sorted(left))
