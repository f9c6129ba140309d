"""In-memory job dispatcher: worker registry, per-category queues,
least-loaded assignment and completion routing, owned by one DispatchHub.
"""

from jobhub.dispatcher.categories import BadArgumentsError, JobCategory
from jobhub.dispatcher.hub import DispatchHub

__all__ = ["BadArgumentsError", "DispatchHub", "JobCategory"]
