from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from .schemas import OutboundMessage, encode

logger = logging.getLogger(__name__)


class Connection:
    """One client socket plus the queue that feeds it."""

    def __init__(self, websocket: WebSocket):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self.player_id: Optional[str] = None
        self.open = True
        self._queue: asyncio.Queue[Dict[str, Any]] = asyncio.Queue()
        self._sender: Optional[asyncio.Task] = None

    def start(self):
        self._sender = asyncio.create_task(self._pump())

    def send(self, payload: Dict[str, Any]):
        if self.open:
            self._queue.put_nowait(payload)

    async def _pump(self):
        while True:
            payload = await self._queue.get()
            try:
                await self.websocket.send_json(payload)
            except Exception as exc:
                logger.warning("Send to connection %s failed: %s", self.id, exc)
                self.open = False
                return

    async def close(self):
        self.open = False
        if self._sender is not None:
            self._sender.cancel()
            try:
                await self._sender
            except asyncio.CancelledError:
                pass
            self._sender = None


class ConnectionManager:
    """Transport used by the room: best-effort, fire-and-forget delivery."""

    def __init__(self):
        self.connections: Dict[str, Connection] = {}
        self.by_player: Dict[str, Connection] = {}

    def register(self, websocket: WebSocket) -> Connection:
        conn = Connection(websocket)
        self.connections[conn.id] = conn
        conn.start()
        return conn

    def bind(self, conn: Connection, player_id: str):
        conn.player_id = player_id
        self.by_player[player_id] = conn

    async def unregister(self, conn: Connection):
        self.connections.pop(conn.id, None)
        if conn.player_id is not None and self.by_player.get(conn.player_id) is conn:
            del self.by_player[conn.player_id]
        await conn.close()

    def reply(self, conn: Connection, message: OutboundMessage):
        conn.send(encode(message))

    def unicast(self, player_id: str, message: OutboundMessage):
        conn = self.by_player.get(player_id)
        if conn is not None and self._is_open(conn):
            conn.send(encode(message))

    def broadcast(self, message: OutboundMessage, exclude_id: Optional[str] = None):
        payload = encode(message)
        for player_id, conn in list(self.by_player.items()):
            if player_id != exclude_id and self._is_open(conn):
                conn.send(payload)

    def _is_open(self, conn: Connection) -> bool:
        return conn.open and conn.websocket.client_state == WebSocketState.CONNECTED

    async def close_all(self):
        for conn in list(self.connections.values()):
            await self.unregister(conn)
