"""Dispatch pass: match queued jobs to eligible workers.

Learn: The pass runs after every state change that could open up an
assignment (register, status, submit, done). For each category in
priority order it keeps assigning the oldest job to the least-loaded
eligible worker until the queue is empty or nobody can take more work.
A category with no eligible worker never blocks the ones after it.

Least-loaded means lowest running/max: a worker at 0/4 beats one at 1/2.
Ties go to the worker that registered first.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import structlog

from jobhub.dispatcher.categories import JobCategory
from jobhub.dispatcher.queues import Job, JobQueues
from jobhub.dispatcher.registry import Worker, WorkerRegistry

logger = structlog.get_logger()


@dataclass
class DispatchStats:
    """Runtime counters for monitoring."""
    submitted: int = 0
    assigned: int = 0
    completed: int = 0
    rejected: int = 0
    dropped: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "submitted": self.submitted,
            "assigned": self.assigned,
            "completed": self.completed,
            "rejected": self.rejected,
            "dropped": self.dropped,
            "started_at": self.started_at.isoformat(),
        }


class Scheduler:
    """Stateless matcher over a registry and a set of queues."""

    def __init__(self, registry: WorkerRegistry, queues: JobQueues, stats: Optional[DispatchStats] = None):
        self.registry = registry
        self.queues = queues
        self.stats = stats or DispatchStats()

    def dispatch(self) -> list[tuple[Job, Worker]]:
        """Run one full dispatch pass. Returns the assignments made."""
        assignments = []
        for category in JobCategory:
            while self.queues.has_jobs(category):
                worker = self.registry.pick_least_loaded(category.tag)
                if worker is None:
                    break
                job = self.queues.pop_oldest(category)
                self._assign(job, worker)
                assignments.append((job, worker))
        return assignments

    def _assign(self, job: Job, worker: Worker) -> None:
        worker.running += 1
        self.stats.assigned += 1
        worker.connection.send({
            "type": job.category.assign_type,
            "job_id": job.job_id,
            **job.payload,
        })
        logger.info(
            "job.assigned",
            job_id=job.job_id,
            category=job.category.value,
            worker_id=worker.worker_id,
            running=worker.running,
            max_concurrency=worker.max_concurrency,
        )
