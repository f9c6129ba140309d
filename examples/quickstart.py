#!/usr/bin/env python3
"""
JobHub Quickstart: submit a batch of additions and wait for the results.

Start one or more workers first (python examples/calc_worker.py), then:
Run with: python examples/quickstart.py

Requires: pip install httpx websockets
Dispatcher must be running: http://localhost:8000
"""

import asyncio
import uuid

import httpx
import websockets

from _common import HTTP_BASE, WS_URL, check_backend, receive, send


async def run() -> None:
    run_id = uuid.uuid4().hex[:6]
    pairs = [(1, 2), (10, 20), (3.5, 4.25), ("x", 1)]

    async with websockets.connect(WS_URL) as ws:
        # ── Submit ────────────────────────────────────────────────
        print("1. Submitting jobs...")
        remaining = len(pairs)
        for i, (a, b) in enumerate(pairs):
            job_id = f"qs-{run_id}-{i}"
            await send(ws, {"type": "calc.add", "job_id": job_id, "a": a, "b": b})
            print(f"   {job_id}: {a!r} + {b!r}")

        # ── Queue snapshot ────────────────────────────────────────
        status = httpx.get(f"{HTTP_BASE}/api/v1/dispatch-status", timeout=5).json()
        print(f"\n2. Queue depth: {status['queues']['calc']}, workers: {status['workers']}")

        # ── Collect results ───────────────────────────────────────
        print("\n3. Waiting for results...")
        while remaining:
            message = await receive(ws)
            if message["type"] == "error":
                print(f"   rejected: {message['code']} ({message['detail']})")
                remaining -= 1
            elif message["type"] == "calc.done":
                print(f"   {message['job_id']} = {message['result']} (worker {message['from_worker'][:8]})")
                remaining -= 1

    print("\nAll jobs accounted for.")


def main():
    check_backend()
    asyncio.run(run())


if __name__ == "__main__":
    main()
