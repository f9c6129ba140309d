"""
Shared helpers for JobHub examples.

Handles the health check and the JSON framing so each example can
focus on its side of the protocol.
"""

import json
import os
import sys

import httpx

HTTP_BASE = os.environ.get("JOBHUB_API_URL", "http://localhost:8000").rstrip("/")
WS_URL = HTTP_BASE.replace("http://", "ws://").replace("https://", "wss://") + "/ws"


def check_backend() -> None:
    """Verify the dispatcher is reachable."""
    try:
        resp = httpx.get(f"{HTTP_BASE}/healthz", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Dispatcher not reachable at {HTTP_BASE}")
        print("Start it with:  jobhub serve")
        sys.exit(1)

    if resp.status_code != 200 or resp.text != "ok":
        print(f"ERROR: Health check returned {resp.status_code} {resp.text!r}")
        sys.exit(1)


async def send(ws, message: dict) -> None:
    await ws.send(json.dumps({"v": 1, **message}))


async def receive(ws) -> dict:
    return json.loads(await ws.recv())
