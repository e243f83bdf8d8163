# platewatch/broadcast.py
# Real-time fan-out of detection events to WebSocket clients

import asyncio
import logging
from typing import Optional, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)

PLATE_ALERT = "plate_alert"
PLATE_DETECTED = "plate_detected"


class ConnectionManager:
    """
    Tracks connected clients and broadcasts events to all of them.

    `publish` is safe to call from worker threads: the send is scheduled on the
    server's event loop and never awaited by the caller.
    """

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()
        self.loop: Optional[asyncio.AbstractEventLoop] = None

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.loop = asyncio.get_running_loop()
        self.active_connections.add(websocket)
        logger.info(f"Client connected ({len(self.active_connections)} active)")

    def disconnect(self, websocket: WebSocket):
        self.active_connections.discard(websocket)
        logger.info(f"Client disconnected ({len(self.active_connections)} active)")

    async def broadcast(self, message: dict):
        for connection in list(self.active_connections):
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.warning(f"Dropping WebSocket client after send failure: {e}")
                self.disconnect(connection)

    def publish(self, event: str, payload: dict):
        if not self.active_connections or self.loop is None or self.loop.is_closed():
            return
        message = jsonable_encoder({"event": event, "data": payload})
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self.loop:
            self.loop.create_task(self.broadcast(message))
        else:
            asyncio.run_coroutine_threadsafe(self.broadcast(message), self.loop)


class NullBroadcaster:
    def publish(self, event: str, payload: dict):
        logger.debug(f"No broadcaster configured, dropping {event}")
