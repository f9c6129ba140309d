"""WebSocket endpoint: one long-lived connection per worker or sender.

Learn: The handler:
1. Accepts the socket and issues a connection id
2. Starts the connection's writer task (outbound messages)
3. Feeds every inbound frame to the hub until the peer disconnects
4. Tells the hub the connection is gone, then stops the writer

RequestContextMiddleware has already bound a request_id for the session;
the endpoint adds conn_id, so every hub event logged here carries both.
There is no authentication; a peer's role is decided by the first
message that binds one (worker.register or a job submission).
"""

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from jobhub.dispatcher.hub import DispatchHub
from jobhub.realtime.connection import WebSocketConnection

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws")
async def dispatch_websocket(websocket: WebSocket):
    """Bidirectional dispatch protocol endpoint."""
    hub: DispatchHub = websocket.app.state.hub

    await websocket.accept()
    connection = WebSocketConnection(websocket)
    connection.start()
    structlog.contextvars.bind_contextvars(conn_id=connection.conn_id)
    logger.info("session.opened", client=str(websocket.client))

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            raw = frame.get("text")
            if raw is None:
                raw = frame.get("bytes")
            if raw is None:
                continue
            hub.handle_message(connection, raw)
    except WebSocketDisconnect:
        pass
    finally:
        hub.connection_closed(connection)
        await connection.wait_closed()
        structlog.contextvars.unbind_contextvars("conn_id")
