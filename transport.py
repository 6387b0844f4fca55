import uuid
from typing import Dict, Iterable

from fastapi import WebSocket

from logging_config import get_logger

logger = get_logger(__name__)


class ConnectionManager:
    """Live WebSocket connections of this process, keyed by connection id."""

    def __init__(self):
        # {connection_id: websocket}
        self.active_connections: Dict[str, WebSocket] = {}

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        connection_id = str(uuid.uuid4())
        self.active_connections[connection_id] = websocket
        logger.debug(f"Accepted connection {connection_id} (active connections: {len(self.active_connections)})")
        return connection_id

    def disconnect(self, connection_id: str):
        if self.active_connections.pop(connection_id, None) is not None:
            logger.debug(f"Dropped connection {connection_id} (active connections: {len(self.active_connections)})")

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self.active_connections

    async def send(self, connection_id: str, message: dict) -> bool:
        """Send one message. Failures are logged, never raised to the caller."""
        websocket = self.active_connections.get(connection_id)
        if websocket is None:
            logger.debug(f"Not sending {message.get('type')} to {connection_id}: connection is gone")
            return False
        try:
            await websocket.send_json(message)
            return True
        except Exception as e:
            logger.warning(f"Error sending {message.get('type')} to connection {connection_id}: {e}")
            return False

    async def deliver(self, deliveries: Iterable) -> int:
        # Sequential so messages to one connection keep their order
        sent = 0
        for delivery in deliveries:
            if await self.send(delivery.target_connection_id, delivery.message):
                sent += 1
        return sent

    def __len__(self) -> int:
        return len(self.active_connections)
