from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from stocksync.api.deps import get_broadcaster
from stocksync.services.notify_service import Broadcaster

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws")
async def updates(websocket: WebSocket, broadcaster: Broadcaster = Depends(get_broadcaster)):
    """Push-only channel: clients receive {"event": "data_updated"} after each mirror sync."""
    await broadcaster.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)
