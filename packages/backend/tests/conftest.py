"""Test fixtures: in-memory connections and a fresh hub per test.

Learn: The scheduler only talks to Connection handles, so most tests
never open a socket. FakeConnection records every message the hub sends
it; `closed_by_server` tells us when the hub closed it on purpose.

HTTP tests use httpx's ASGITransport, which skips the lifespan, so the
`client` fixture installs the hub on app.state itself.
"""

from typing import Any, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from jobhub.dispatcher.hub import DispatchHub
from jobhub.main import app
from jobhub.realtime.connection import Connection


class FakeConnection(Connection):
    """Connection that records outbound messages in memory."""

    def __init__(self, conn_id: Optional[str] = None):
        super().__init__(conn_id)
        self.sent: list[dict[str, Any]] = []
        self.open = True
        self.closed_by_server = False

    @property
    def is_open(self) -> bool:
        return self.open

    def _deliver(self, message: dict[str, Any]) -> None:
        self.sent.append(message)

    def close(self) -> None:
        self.open = False
        self.closed_by_server = True

    def of_type(self, message_type: str) -> list[dict[str, Any]]:
        return [m for m in self.sent if m["type"] == message_type]

    def last(self) -> dict[str, Any]:
        return self.sent[-1]


@pytest.fixture()
def hub():
    return DispatchHub(max_message_bytes=4096)


@pytest.fixture()
def connect():
    """Factory for fresh fake connections."""
    def _connect(conn_id: Optional[str] = None) -> FakeConnection:
        return FakeConnection(conn_id)
    return _connect


@pytest.fixture()
def register():
    """Register a connection as a worker; returns the confirmed worker id."""
    def _register(hub: DispatchHub, conn: FakeConnection, tags=("calc",), max_concurrency=1, worker_id=None) -> str:
        message = {"v": 1, "type": "worker.register", "tags": list(tags), "max_concurrency": max_concurrency}
        if worker_id is not None:
            message["worker_id"] = worker_id
        hub.handle_message(conn, message)
        return conn.of_type("worker.registered")[-1]["worker_id"]
    return _register


@pytest_asyncio.fixture()
async def client(hub):
    """HTTP client over the real app with a test-owned hub."""
    app.state.hub = hub
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
