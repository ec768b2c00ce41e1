"""WebSocket endpoint feeding the connection registry"""

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from . import messages
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


async def handle_inbound(registry: ConnectionRegistry, websocket: WebSocket, raw: str) -> None:
    """React to one inbound text frame. Only "register" is understood."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("⚠️ Ignoring non-JSON WebSocket frame")
        return

    if not isinstance(data, dict) or data.get("type") != "register":
        logger.debug(f"Ignoring WebSocket message of type {data.get('type') if isinstance(data, dict) else None}")
        return

    try:
        message = messages.RegisterMessage.model_validate(data)
    except PydanticValidationError as e:
        logger.warning(f"⚠️ Invalid register message: {e.errors()}")
        return

    user_id = message.payload.userId
    if user_id <= 0:
        logger.warning(f"⚠️ Invalid userId in register message: {user_id}")
        return

    registry.register(user_id, websocket)
    await websocket.send_text(json.dumps(messages.registered(user_id)))


@router.websocket("/ws")
async def notifications_socket(websocket: WebSocket):
    registry: ConnectionRegistry = websocket.app.state.registry
    await websocket.accept()
    try:
        while True:
            raw = await websocket.receive_text()
            await handle_inbound(registry, websocket, raw)
    except WebSocketDisconnect:
        pass
    except RuntimeError as e:
        # Starlette raises RuntimeError when sending on a half-closed socket
        logger.info(f"🔌 WebSocket closed while sending: {e}")
    finally:
        registry.unregister(websocket)
