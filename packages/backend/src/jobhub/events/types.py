"""Message type constants.

Learn: Centralizing message types as constants prevents typos and makes
it easy to discover the whole protocol in one place. Per-category types
(calc.add, image.assign, ...) live on JobCategory.
"""

PROTOCOL_VERSION = 1

# Fields that belong to the envelope, never to a job payload
ENVELOPE_FIELDS = frozenset({"v", "version", "type", "job_id"})

# ─── Worker lifecycle ────────────────────────────────────

WORKER_REGISTER = "worker.register"
WORKER_REGISTERED = "worker.registered"
WORKER_STATUS = "worker.status"

# ─── Misc ────────────────────────────────────────────────

ERROR = "error"
PING = "ping"
PONG = "pong"

# ─── Error codes ─────────────────────────────────────────

BAD_ARGS = "bad_args"
