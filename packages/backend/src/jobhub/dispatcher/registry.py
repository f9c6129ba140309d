"""Worker registry: who is connected, what they can do, how busy they are.

Learn: A worker's running count is the dispatcher's view of its load.
It goes up on assignment, down on completion, and can be overwritten by
the worker's own status report. Every write path clamps it into
[0, max_concurrency] so the invariant holds no matter what peers send.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Iterator, Optional

import structlog

from jobhub.realtime.connection import Connection

logger = structlog.get_logger()


@dataclass
class Worker:
    """One registered worker, bound to the connection that registered it."""

    worker_id: str
    connection: Connection
    tags: frozenset[str] = field(default_factory=frozenset)
    max_concurrency: int = 1
    running: int = 0
    last_seen: float = field(default_factory=time.time)

    @property
    def load(self) -> float:
        """Fraction of capacity in use (running / max)."""
        return self.running / self.max_concurrency

    @property
    def has_capacity(self) -> bool:
        return self.running < self.max_concurrency

    def set_running(self, count: int) -> None:
        self.running = min(max(0, count), self.max_concurrency)

    def touch(self) -> None:
        self.last_seen = time.time()

    def to_dict(self) -> dict:
        return {
            "worker_id": self.worker_id,
            "conn_id": self.connection.conn_id,
            "tags": sorted(self.tags),
            "running": self.running,
            "max_concurrency": self.max_concurrency,
            "load": self.load,
            "connected": self.connection.is_open,
            "last_seen": self.last_seen,
        }


class WorkerRegistry:
    """In-memory map of worker id → Worker. Insertion ordered."""

    def __init__(self):
        self._workers: dict[str, Worker] = {}

    def __len__(self) -> int:
        return len(self._workers)

    def __iter__(self) -> Iterator[Worker]:
        return iter(list(self._workers.values()))

    def __contains__(self, worker_id: str) -> bool:
        return worker_id in self._workers

    def get(self, worker_id: Optional[str]) -> Optional[Worker]:
        if worker_id is None:
            return None
        return self._workers.get(worker_id)

    def owned_by(self, worker_id: Optional[str], connection: Connection) -> Optional[Worker]:
        """Return the worker only if `connection` is the one that registered it."""
        worker = self.get(worker_id)
        if worker is None or worker.connection.conn_id != connection.conn_id:
            return None
        return worker

    def register(
        self,
        connection: Connection,
        tags: Optional[list[str]] = None,
        max_concurrency: int = 1,
        worker_id: Optional[str] = None,
    ) -> tuple[Worker, Optional[Worker]]:
        """Create or replace a worker entry.

        Last registration wins. Returns (new_worker, displaced_worker);
        the displaced entry is the previous registration under the same id
        when it belonged to a different connection.
        """
        worker_id = worker_id or str(uuid.uuid4())
        previous = self._workers.get(worker_id)
        worker = Worker(
            worker_id=worker_id,
            connection=connection,
            tags=frozenset(tags or ()),
            max_concurrency=max(1, max_concurrency),
        )
        # A replaced entry keeps its original position in iteration order
        self._workers[worker_id] = worker

        displaced = None
        if previous is not None and previous.connection.conn_id != connection.conn_id:
            displaced = previous
        return worker, displaced

    def report_status(self, worker: Worker, running: Optional[int] = None) -> None:
        """Apply a self-reported running count and refresh liveness."""
        if running is not None:
            worker.set_running(running)
        worker.touch()

    def release_slot(self, worker: Worker) -> None:
        worker.set_running(worker.running - 1)

    def release(self, worker_id: str, connection: Optional[Connection] = None) -> Optional[Worker]:
        """Remove a worker entry.

        When `connection` is given the entry is only removed if that
        connection still owns it (a newer registration is left alone).
        """
        worker = self._workers.get(worker_id)
        if worker is None:
            return None
        if connection is not None and worker.connection.conn_id != connection.conn_id:
            return None
        del self._workers[worker_id]
        return worker

    def eligible(self, tag: str) -> list[Worker]:
        """Workers that are connected, carry `tag`, and have a free slot."""
        return [
            w for w in self._workers.values()
            if w.connection.is_open and tag in w.tags and w.has_capacity
        ]

    def pick_least_loaded(self, tag: str) -> Optional[Worker]:
        """Eligible worker with the lowest load fraction; first one wins ties."""
        best: Optional[Worker] = None
        for worker in self.eligible(tag):
            if best is None or worker.load < best.load:
                best = worker
        return best
