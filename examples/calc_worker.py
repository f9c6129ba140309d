#!/usr/bin/env python3
"""
JobHub calc worker: registers with the "calc" tag and adds numbers.

Run with: python examples/calc_worker.py [--max 2] [--id my-worker]

Requires: pip install httpx websockets
Dispatcher must be running: http://localhost:8000
"""

import argparse
import asyncio

import websockets

from _common import WS_URL, check_backend, receive, send


async def run(worker_id: str | None, max_concurrency: int, delay: float) -> None:
    async with websockets.connect(WS_URL) as ws:
        register = {"type": "worker.register", "tags": ["calc"], "max_concurrency": max_concurrency}
        if worker_id:
            register["worker_id"] = worker_id
        await send(ws, register)

        ack = await receive(ws)
        print(f"Registered as {ack['worker_id']} (max {max_concurrency})")

        in_flight: set[asyncio.Task] = set()

        async def work(job: dict) -> None:
            await asyncio.sleep(delay)  # pretend this is expensive
            result = job["a"] + job["b"]
            await send(ws, {"type": "calc.done", "job_id": job["job_id"], "result": result})
            print(f"  done {job['job_id']}: {job['a']} + {job['b']} = {result}")

        while True:
            message = await receive(ws)
            if message["type"] != "calc.assign":
                continue
            print(f"  assigned {message['job_id']}")
            task = asyncio.create_task(work(message))
            in_flight.add(task)
            task.add_done_callback(in_flight.discard)


def main():
    parser = argparse.ArgumentParser(description="JobHub calc worker")
    parser.add_argument("--id", dest="worker_id", help="Worker id (generated if omitted)")
    parser.add_argument("--max", dest="max_concurrency", type=int, default=1)
    parser.add_argument("--delay", type=float, default=0.5, help="Seconds per job")
    args = parser.parse_args()

    check_backend()
    try:
        asyncio.run(run(args.worker_id, args.max_concurrency, args.delay))
    except KeyboardInterrupt:
        print("\nWorker stopped.")


if __name__ == "__main__":
    main()
