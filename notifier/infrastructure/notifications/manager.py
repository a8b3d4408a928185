"""Registry of open notification websockets.

Sockets are registered from the event loop, while workers and request
threads ask whether a user is online before scheduling a realtime copy, so
the registry is guarded by a lock.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect, status

logger = logging.getLogger(__name__)


class NotificationConnectionManager:
    """Open websockets keyed by the id of the user they belong to."""

    def __init__(self) -> None:
        self._sockets: dict[int, list[WebSocket]] = {}
        self._lock = threading.Lock()
        self.loop: asyncio.AbstractEventLoop | None = None

    async def connect(self, user_id: int, websocket: WebSocket) -> None:
        await websocket.accept()
        # Worker threads hand realtime copies to this loop.
        self.loop = asyncio.get_running_loop()
        with self._lock:
            self._sockets.setdefault(user_id, []).append(websocket)
        logger.debug("User %s opened a notification socket", user_id)

    def disconnect(self, user_id: int, websocket: WebSocket) -> None:
        with self._lock:
            sockets = self._sockets.get(user_id, [])
            if websocket in sockets:
                sockets.remove(websocket)
            if not sockets:
                self._sockets.pop(user_id, None)

    def is_connected(self, user_id: int) -> bool:
        with self._lock:
            return user_id in self._sockets

    def connection_count(self, user_id: int | None = None) -> int:
        with self._lock:
            if user_id is not None:
                return len(self._sockets.get(user_id, ()))
            return sum(len(sockets) for sockets in self._sockets.values())

    async def send_to_user(self, user_id: int, message: dict[str, Any]) -> int:
        """Send ``message`` to each socket of ``user_id``; return how many got it.

        A socket that fails is unregistered. The realtime copy is not retried.
        """

        with self._lock:
            sockets = list(self._sockets.get(user_id, ()))

        delivered = 0
        for websocket in sockets:
            try:
                await websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError, OSError) as exc:
                logger.debug("Dropping notification socket of user %s: %s", user_id, exc)
                self.disconnect(user_id, websocket)
            else:
                delivered += 1
        return delivered

    async def close_all(self) -> None:
        """Close every socket with ``1001 Going Away`` during shutdown."""

        with self._lock:
            registered = [
                (user_id, websocket)
                for user_id, sockets in self._sockets.items()
                for websocket in sockets
            ]
            self._sockets.clear()

        for user_id, websocket in registered:
            try:
                await websocket.close(code=status.WS_1001_GOING_AWAY)
            except (RuntimeError, OSError) as exc:
                logger.debug("Notification socket of user %s already closed: %s", user_id, exc)
        self.loop = None


notification_manager = NotificationConnectionManager()


__all__ = ["NotificationConnectionManager", "notification_manager"]
