from fastapi import Request, WebSocket

from stocksync.services.drive_service import DriveUploader
from stocksync.services.notify_service import Broadcaster
from stocksync.services.sheets_service import SheetsMirror


def get_mirror(request: Request) -> SheetsMirror:
    return request.app.state.mirror


def get_uploader(request: Request) -> DriveUploader:
    return request.app.state.uploader


def get_broadcaster(websocket: WebSocket) -> Broadcaster:
    return websocket.app.state.broadcaster
