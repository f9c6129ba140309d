"""Request context middleware: one trace id per HTTP request or WebSocket session.

Learn: Every scope gets an id, either from the incoming X-Request-ID
header (for distributed tracing) or auto-generated, bound to structlog's
contextvars. For HTTP the id is echoed in the response header and the
request is logged once with its status and duration. For /ws the id stays
bound for the whole session, so every hub event logged while serving that
connection (worker.registered, job.enqueued, session.closed, ...) carries
it next to the conn_id the endpoint binds.

This is plain ASGI rather than BaseHTTPMiddleware, which never sees
WebSocket scopes.
"""

import time
import uuid

import structlog
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_ID_HEADER = "X-Request-ID"

logger = structlog.get_logger()


class RequestContextMiddleware:
    """Bind a request id for each HTTP request and WebSocket session."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        request_id = Headers(scope=scope).get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        if scope["type"] == "websocket":
            await self.app(scope, receive, send)
            return

        status_code = 500
        start = time.perf_counter()

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            logger.info(
                "http.request",
                method=scope["method"],
                path=scope["path"],
                status=status_code,
                duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
            )
