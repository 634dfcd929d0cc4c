import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)

DATA_UPDATED = "data_updated"


class Broadcaster:
    """Fan-out of refresh events to connected admin browsers."""

    def __init__(self):
        self._connections: set[WebSocket] = set()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.add(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)

    async def broadcast(self, event: str) -> None:
        dead = []
        for ws in list(self._connections):
            try:
                await ws.send_json({"event": event})
            except Exception as e:
                logger.debug("Dropping websocket after send failure: %s", e)
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws)
