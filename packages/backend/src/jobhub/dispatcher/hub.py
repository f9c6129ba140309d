"""Dispatch hub: the single owner of all scheduling state.

Learn: Every inbound message goes through handle_message(), which:
1. Decodes it (malformed → dropped silently)
2. Resolves the connection's role via the session manager
3. Applies the mutation (register / status / submit / done)
4. Runs a dispatch pass so freed capacity or new jobs are matched at once

All of this is synchronous. The hub lives on one asyncio event loop and
never awaits inside a handler, so each message is processed atomically
with respect to all scheduling state.
Outbound delivery is fire-and-forget through Connection.send().
"""

import json
from typing import Any, Optional, Union

import structlog
from pydantic import ValidationError

from jobhub.dispatcher.categories import BadArgumentsError, JobCategory
from jobhub.dispatcher.queues import JobQueues, PendingSenders
from jobhub.dispatcher.registry import Worker, WorkerRegistry
from jobhub.dispatcher.router import CompletionRouter
from jobhub.dispatcher.scheduler import DispatchStats, Scheduler
from jobhub.dispatcher.sessions import Role, SessionManager
from jobhub.events.types import (
    BAD_ARGS,
    ERROR,
    PING,
    PONG,
    WORKER_REGISTER,
    WORKER_REGISTERED,
    WORKER_STATUS,
)
from jobhub.realtime.connection import Connection
from jobhub.schemas.messages import Envelope, JobDone, WorkerRegister, WorkerStatus

logger = structlog.get_logger()

RawMessage = Union[str, bytes, dict]


class DispatchHub:
    """Registry + queues + sessions + routing behind one message entry point."""

    def __init__(self, max_message_bytes: Optional[int] = None):
        self.max_message_bytes = max_message_bytes
        self.stats = DispatchStats()
        self.registry = WorkerRegistry()
        self.queues = JobQueues()
        self.pending = PendingSenders()
        self.sessions = SessionManager()
        self.scheduler = Scheduler(self.registry, self.queues, self.stats)
        self.router = CompletionRouter(self.registry, self.pending, self.stats)

    # ─── Entry points ─────────────────────────────────────

    def handle_message(self, connection: Connection, raw: RawMessage) -> None:
        """Process one inbound message from `connection`."""
        message = self._decode(raw)
        if message is None:
            self._drop(connection, "malformed")
            return

        try:
            envelope = Envelope.model_validate(message)
        except ValidationError:
            self._drop(connection, "malformed")
            return

        message_type = envelope.type
        submit_category = JobCategory.from_submit_type(message_type)
        done_category = JobCategory.from_done_type(message_type)
        try:
            if message_type == WORKER_REGISTER:
                self.register_worker(connection, WorkerRegister.model_validate(message))
            elif message_type == WORKER_STATUS:
                self.report_status(connection, WorkerStatus.model_validate(message))
            elif message_type == PING:
                self._pong(connection)
            elif submit_category is not None:
                self.submit(connection, submit_category, message)
            elif done_category is not None:
                self.report_done(connection, done_category, message)
            else:
                self._drop(connection, "unknown_type", type=message_type)
        except ValidationError as e:
            self._drop(connection, "invalid", type=message_type, errors=e.error_count())

    def connection_closed(self, connection: Connection) -> None:
        """Forget the connection. Workers are removed from the registry.

        Jobs already assigned to a departing worker are not requeued and
        their senders never hear back.
        """
        session = self.sessions.end(connection)
        if session is None:
            return
        released = None
        if session.role is Role.WORKER and session.worker_id:
            released = self.registry.release(session.worker_id, connection)
        logger.info(
            "session.closed",
            conn_id=connection.conn_id,
            role=session.role.value,
            worker_id=released.worker_id if released else None,
        )

    # ─── Worker registry ──────────────────────────────────

    def register_worker(self, connection: Connection, request: WorkerRegister) -> Worker:
        worker, displaced = self.registry.register(
            connection,
            tags=request.tags,
            max_concurrency=request.max_concurrency,
            worker_id=request.worker_id,
        )
        previous_id = self.sessions.bind_worker(connection, worker.worker_id)
        if previous_id is not None:
            self.registry.release(previous_id, connection)

        if displaced is not None:
            # Same identity re-registered elsewhere; the old channel is orphaned
            logger.warning(
                "worker.displaced",
                worker_id=worker.worker_id,
                old_conn_id=displaced.connection.conn_id,
                new_conn_id=connection.conn_id,
            )
            displaced.connection.close()

        connection.send({"type": WORKER_REGISTERED, "worker_id": worker.worker_id})
        logger.info(
            "worker.registered",
            worker_id=worker.worker_id,
            tags=sorted(worker.tags),
            max_concurrency=worker.max_concurrency,
        )
        self.scheduler.dispatch()
        return worker

    def report_status(self, connection: Connection, report: WorkerStatus) -> None:
        worker = self._authorized_worker(connection)
        if worker is None:
            self._drop(connection, "unauthorized", type=WORKER_STATUS)
            return
        self.registry.report_status(worker, report.running)
        self.scheduler.dispatch()

    # ─── Submission ───────────────────────────────────────

    def submit(self, connection: Connection, category: JobCategory, message: dict[str, Any]) -> Optional[str]:
        """Validate and enqueue a job. Returns its id, or None if rejected."""
        self.sessions.bind_sender(connection)
        try:
            payload = category.build_payload(message)
        except BadArgumentsError as e:
            self.stats.rejected += 1
            connection.send({"type": ERROR, "code": BAD_ARGS, "detail": str(e)})
            logger.info("job.rejected", category=category.value, conn_id=connection.conn_id, detail=str(e))
            return None

        supplied_id = message.get("job_id")
        job = self.queues.enqueue(
            category,
            connection,
            payload,
            job_id=str(supplied_id) if supplied_id else None,
        )
        self.pending.record(job.job_id, connection)
        self.stats.submitted += 1
        logger.info(
            "job.enqueued",
            job_id=job.job_id,
            category=category.value,
            queue_depth=self.queues.depth(category),
        )
        self.scheduler.dispatch()
        return job.job_id

    # ─── Completion ───────────────────────────────────────

    def report_done(self, connection: Connection, category: JobCategory, message: dict[str, Any]) -> None:
        worker = self._authorized_worker(connection)
        if worker is None:
            self._drop(connection, "unauthorized", type=category.done_type)
            return
        done = JobDone.model_validate(message)
        self.router.report_done(worker, category, done.job_id, message)
        self.scheduler.dispatch()

    # ─── Introspection ────────────────────────────────────

    def snapshot(self) -> dict:
        return {
            "queues": self.queues.depths(),
            "oldest_wait_seconds": self.queues.oldest_wait(),
            "pending_jobs": len(self.pending),
            "workers": len(self.registry),
            "connections": len(self.sessions),
            "stats": self.stats.to_dict(),
        }

    def worker_list(self) -> list[dict]:
        return [w.to_dict() for w in self.registry]

    # ─── Helpers ──────────────────────────────────────────

    def _authorized_worker(self, connection: Connection) -> Optional[Worker]:
        worker_id = self.sessions.worker_id_for(connection)
        return self.registry.owned_by(worker_id, connection)

    def _pong(self, connection: Connection) -> None:
        worker = self._authorized_worker(connection)
        if worker is not None:
            worker.touch()
        connection.send({"type": PONG})

    def _decode(self, raw: RawMessage) -> Optional[dict]:
        if isinstance(raw, dict):
            return raw
        if self.max_message_bytes is not None:
            size = len(raw) if isinstance(raw, bytes) else len(raw.encode("utf-8", "replace"))
            if size > self.max_message_bytes:
                return None
        try:
            message = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None
        return message if isinstance(message, dict) else None

    def _drop(self, connection: Connection, reason: str, **context) -> None:
        self.stats.dropped += 1
        logger.debug("message.dropped", conn_id=connection.conn_id, reason=reason, **context)
