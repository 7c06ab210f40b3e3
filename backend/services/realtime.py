"""
Open websocket connections grouped by user
"""
import logging
from collections import defaultdict
from typing import Any, DefaultDict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Per-user rooms of open websockets. Mutated by the websocket route on
    connect/disconnect and read by the realtime channel; both run on the
    event loop so no locking is needed.
    """

    def __init__(self):
        self._connections: DefaultDict[str, Set[WebSocket]] = defaultdict(set)

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        """Accept the websocket connection and register it for ``user_id``"""
        await websocket.accept()
        self._connections[user_id].add(websocket)
        logger.info(f"User {user_id} joined their room ({self.connection_count(user_id)} open)")

    def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        connections = self._connections.get(user_id)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            self._connections.pop(user_id, None)
        logger.info(f"User {user_id} disconnected")

    def is_connected(self, user_id: str) -> bool:
        return bool(self._connections.get(user_id))

    def connection_count(self, user_id: str) -> int:
        return len(self._connections.get(user_id, ()))

    async def send_to_user(self, user_id: str, message: dict[str, Any]) -> int:
        """Send ``message`` to every open connection of ``user_id``; returns how many got it"""
        delivered = 0
        for connection in list(self._connections.get(user_id, ())):
            try:
                await connection.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping broken websocket for user {user_id}: {e}")
                self.disconnect(user_id, connection)
        return delivered
