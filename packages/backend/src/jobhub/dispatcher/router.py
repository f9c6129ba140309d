"""Completion router: forward a worker's result to the job's sender."""

from typing import Any

import structlog

from jobhub.dispatcher.categories import JobCategory, strip_envelope
from jobhub.dispatcher.queues import PendingSenders
from jobhub.dispatcher.registry import Worker, WorkerRegistry
from jobhub.dispatcher.scheduler import DispatchStats

logger = structlog.get_logger()


class CompletionRouter:
    """Routes completion reports and frees the reporting worker's slot."""

    def __init__(self, registry: WorkerRegistry, pending: PendingSenders, stats: DispatchStats):
        self.registry = registry
        self.pending = pending
        self.stats = stats

    def report_done(
        self,
        worker: Worker,
        category: JobCategory,
        job_id: str | None,
        message: dict[str, Any],
    ) -> bool:
        """Forward the outcome and release one slot on `worker`.

        Returns True if a sender was waiting for this job. An unknown job
        id still frees capacity: its sender may simply have gone away.
        """
        sender = self.pending.pop(job_id)
        if sender is not None:
            sender.send({
                "type": category.done_type,
                "job_id": job_id,
                **strip_envelope(message),
                "from_worker": worker.worker_id,
            })

        self.stats.completed += 1
        self.registry.release_slot(worker)
        logger.info(
            "job.completed",
            job_id=job_id,
            category=category.value,
            worker_id=worker.worker_id,
            routed=sender is not None,
            running=worker.running,
        )
        return sender is not None
