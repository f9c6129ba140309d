"""Connection handles: the only thing the scheduler knows about a peer.

Learn: Delivery is fire-and-forget. send() never awaits and never raises:
the message is queued for a writer task and silently dropped when the
channel is already closed. The scheduler can therefore stay fully
synchronous, which is what makes every operation atomic on the event loop.

Each connection carries an explicit id issued at accept time; the hub
keys roles and ownership by that id, never by the socket object.
"""

import asyncio
import json
import uuid
from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog
from fastapi import WebSocket
from starlette.websockets import WebSocketState

from jobhub.events.types import PROTOCOL_VERSION

logger = structlog.get_logger()


def new_connection_id() -> str:
    return uuid.uuid4().hex


class Connection(ABC):
    """Abstract bidirectional message channel."""

    def __init__(self, conn_id: Optional[str] = None):
        self.conn_id = conn_id or new_connection_id()

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True while messages can still be delivered."""

    @abstractmethod
    def _deliver(self, message: dict[str, Any]) -> None:
        """Hand a message to the transport. Called only while open."""

    @abstractmethod
    def close(self) -> None:
        """Close the channel. Idempotent."""

    def send(self, message: dict[str, Any]) -> None:
        """Best-effort send; dropped when the channel is closed."""
        if not self.is_open:
            logger.debug("connection.send_dropped", conn_id=self.conn_id, type=message.get("type"))
            return
        self._deliver({"v": PROTOCOL_VERSION, **message})

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.conn_id}>"


class WebSocketConnection(Connection):
    """Connection backed by a Starlette WebSocket.

    Outbound messages go through an unbounded queue drained by a single
    writer task, so frames are written in order without blocking callers.
    """

    def __init__(self, websocket: WebSocket, conn_id: Optional[str] = None):
        super().__init__(conn_id)
        self.websocket = websocket
        self._outbox: asyncio.Queue[Optional[dict[str, Any]]] = asyncio.Queue()
        self._closed = False
        self._writer: Optional[asyncio.Task] = None

    def start(self) -> None:
        self._writer = asyncio.create_task(self._write_loop())

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self.websocket.client_state == WebSocketState.CONNECTED
        )

    def _deliver(self, message: dict[str, Any]) -> None:
        self._outbox.put_nowait(message)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Sentinel tells the writer to flush and close the socket
        self._outbox.put_nowait(None)

    async def _write_loop(self) -> None:
        try:
            while True:
                message = await self._outbox.get()
                if message is None:
                    break
                await self.websocket.send_text(json.dumps(message))
        except Exception as e:
            # Peer went away mid-write; nothing left to deliver to
            logger.debug("connection.write_failed", conn_id=self.conn_id, error=str(e))
            self._closed = True
            return
        if self.websocket.client_state == WebSocketState.CONNECTED:
            try:
                await self.websocket.close()
            except RuntimeError:
                pass

    async def wait_closed(self) -> None:
        """Stop the writer after the read loop has ended."""
        self._closed = True
        if self._writer is None:
            return
        if not self._writer.done():
            self._outbox.put_nowait(None)
            try:
                await asyncio.wait_for(self._writer, timeout=1.0)
            except (asyncio.TimeoutError, asyncio.CancelledError):
                self._writer.cancel()
