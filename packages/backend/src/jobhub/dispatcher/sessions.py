"""Session manager: which role each connection plays.

A connection becomes a worker when it registers and a sender when it
submits a job. Worker is sticky: a worker that also submits jobs keeps
its worker role, since that role authorizes its status and completion
reports.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from jobhub.realtime.connection import Connection


class Role(str, Enum):
    WORKER = "worker"
    SENDER = "sender"


@dataclass
class Session:
    role: Role
    worker_id: Optional[str] = None


class SessionManager:
    """conn_id → Session."""

    def __init__(self):
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def bind_worker(self, connection: Connection, worker_id: str) -> Optional[str]:
        """Mark the connection as a worker. Returns its previous worker id, if any."""
        previous = self._sessions.get(connection.conn_id)
        self._sessions[connection.conn_id] = Session(role=Role.WORKER, worker_id=worker_id)
        if previous and previous.role is Role.WORKER and previous.worker_id != worker_id:
            return previous.worker_id
        return None

    def bind_sender(self, connection: Connection) -> Session:
        session = self._sessions.get(connection.conn_id)
        if session is None:
            session = Session(role=Role.SENDER)
            self._sessions[connection.conn_id] = session
        return session

    def worker_id_for(self, connection: Connection) -> Optional[str]:
        """Worker id if the connection is registered as a worker, else None."""
        session = self._sessions.get(connection.conn_id)
        if session is None or session.role is not Role.WORKER:
            return None
        return session.worker_id

    def end(self, connection: Connection) -> Optional[Session]:
        return self._sessions.pop(connection.conn_id, None)
