"""Job queues and the pending job → sender map.

One unbounded FIFO per category. The pending map is independent of queue
position: an entry lives from submission until a completion report for
that job id arrives, whether or not the job is still queued.
"""

import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional

from jobhub.dispatcher.categories import JobCategory
from jobhub.realtime.connection import Connection


@dataclass
class Job:
    job_id: str
    category: JobCategory
    sender: Connection
    payload: dict[str, Any]
    submitted_at: float = field(default_factory=time.time)


class JobQueues:
    """Per-category FIFO queues."""

    def __init__(self):
        self._queues: dict[JobCategory, deque[Job]] = {c: deque() for c in JobCategory}

    def enqueue(
        self,
        category: JobCategory,
        sender: Connection,
        payload: dict[str, Any],
        job_id: Optional[str] = None,
    ) -> Job:
        job = Job(
            job_id=job_id or str(uuid.uuid4()),
            category=category,
            sender=sender,
            payload=payload,
        )
        self._queues[category].append(job)
        return job

    def has_jobs(self, category: JobCategory) -> bool:
        return bool(self._queues[category])

    def pop_oldest(self, category: JobCategory) -> Job:
        return self._queues[category].popleft()

    def depth(self, category: JobCategory) -> int:
        return len(self._queues[category])

    def job_ids(self, category: JobCategory) -> list[str]:
        return [job.job_id for job in self._queues[category]]

    def depths(self) -> dict[str, int]:
        return {c.value: len(q) for c, q in self._queues.items()}

    def oldest_wait(self, now: Optional[float] = None) -> dict[str, Optional[float]]:
        """Seconds the head of each queue has been waiting; None when empty."""
        now = time.time() if now is None else now
        return {
            c.value: round(max(0.0, now - q[0].submitted_at), 3) if q else None
            for c, q in self._queues.items()
        }


class PendingSenders:
    """job id → originating connection, until a completion report arrives."""

    def __init__(self):
        self._senders: dict[str, Connection] = {}

    def __len__(self) -> int:
        return len(self._senders)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._senders

    def record(self, job_id: str, sender: Connection) -> None:
        self._senders[job_id] = sender

    def pop(self, job_id: Optional[str]) -> Optional[Connection]:
        if job_id is None:
            return None
        return self._senders.pop(job_id, None)
