"""Job queue tests: FIFO order and how long the head has waited."""

from jobhub.dispatcher.categories import JobCategory
from jobhub.dispatcher.queues import JobQueues


def test_pop_oldest_is_fifo(connect):
    queues = JobQueues()
    sender = connect()
    for job_id in ("j1", "j2", "j3"):
        queues.enqueue(JobCategory.CALC, sender, {}, job_id=job_id)
    assert queues.job_ids(JobCategory.CALC) == ["j1", "j2", "j3"]
    assert queues.pop_oldest(JobCategory.CALC).job_id == "j1"
    assert queues.depths() == {"calc": 2, "image": 0}


def test_oldest_wait_tracks_queue_head(connect):
    queues = JobQueues()
    sender = connect()
    first = queues.enqueue(JobCategory.CALC, sender, {}, job_id="j1")
    second = queues.enqueue(JobCategory.CALC, sender, {}, job_id="j2")
    first.submitted_at, second.submitted_at = 100.0, 104.0

    assert queues.oldest_wait(now=110.0) == {"calc": 10.0, "image": None}
    queues.pop_oldest(JobCategory.CALC)
    assert queues.oldest_wait(now=110.0) == {"calc": 6.0, "image": None}


def test_oldest_wait_never_negative(connect):
    queues = JobQueues()
    job = queues.enqueue(JobCategory.IMAGE, connect(), {})
    job.submitted_at = 200.0
    assert queues.oldest_wait(now=150.0)["image"] == 0.0
