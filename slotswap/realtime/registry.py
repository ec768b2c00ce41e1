"""
Connection registry for real-time notifications.

Maps a user id to the single live WebSocket of that user and delivers
fire-and-forget JSON messages. Nothing is queued, retried or persisted: a
message for a user without an open connection is dropped.

The registry is plain single-process state owned by the FastAPI app
(created in the lifespan, cleared at shutdown). All mutations happen on the
event loop between awaits, so no lock is needed.
"""

import asyncio
import json
import logging
from typing import Any, Optional

from fastapi import Request
from starlette.websockets import WebSocketState

from ..config import NOTIFICATION_SEND_TIMEOUT

logger = logging.getLogger(__name__)


def is_open(handle: Any) -> bool:
    """A handle is open when both sides of the socket are CONNECTED"""
    client_state = getattr(handle, "client_state", None)
    application_state = getattr(handle, "application_state", WebSocketState.CONNECTED)
    return client_state == WebSocketState.CONNECTED and application_state == WebSocketState.CONNECTED


class ConnectionRegistry:
    """User id -> live connection handle"""

    def __init__(self, send_timeout: float = NOTIFICATION_SEND_TIMEOUT):
        self._connections: dict[int, Any] = {}
        self.send_timeout = send_timeout

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._connections

    def get(self, user_id: int) -> Optional[Any]:
        return self._connections.get(user_id)

    def register(self, user_id: int, handle: Any) -> None:
        """Associate user_id with handle, replacing any previous handle"""
        previous = self._connections.get(user_id)
        self._connections[user_id] = handle
        if previous is not None and previous is not handle:
            logger.info(f"🔁 User {user_id} re-registered, previous connection replaced")
        else:
            logger.info(f"🔌 User {user_id} registered for notifications")

    def unregister(self, handle: Any) -> Optional[int]:
        """
        Remove whichever user currently maps to handle.

        Disconnects only supply the handle, so the lookup is by value. A stale
        handle that was already replaced removes nothing.
        """
        for user_id, registered in list(self._connections.items()):
            if registered is handle:
                del self._connections[user_id]
                logger.info(f"👋 User {user_id} disconnected from WebSocket")
                return user_id
        return None

    async def send(self, user_id: int, message: dict) -> bool:
        """
        Deliver message to user_id's open connection.

        Returns True when the message was handed to the socket, False when it
        was dropped. Delivery errors are logged, never raised, and a socket
        that does not accept the frame within send_timeout seconds counts as
        a failed delivery.
        """
        handle = self._connections.get(user_id)
        if handle is None or not is_open(handle):
            logger.info(f"📭 User {user_id} not connected or socket not ready, dropping {message.get('type')}")
            return False

        try:
            await asyncio.wait_for(
                handle.send_text(json.dumps(message, default=str)), timeout=self.send_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"⏱️ Timed out after {self.send_timeout}s delivering {message.get('type')} to user {user_id}"
            )
            return False
        except Exception as e:
            logger.warning(f"⚠️ Failed to deliver {message.get('type')} to user {user_id}: {e}")
            return False

        logger.info(f"📨 Notification sent to user {user_id}: {message.get('type')}")
        return True

    def clear(self) -> None:
        count = len(self._connections)
        self._connections.clear()
        logger.info(f"🧹 Connection registry cleared ({count} connections)")


def get_registry(request: Request) -> Optional[ConnectionRegistry]:
    """Dependency returning the app-wide registry, if the app has one"""
    return getattr(request.app.state, "registry", None)
