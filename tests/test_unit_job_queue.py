import threading

import pytest

from jobagent.models.db.enums import JobOrigin
from jobagent.scheduling.queue import JobRequest, JobRequestQueue


def test_priority_ordering_with_fifo_ties():
    q = JobRequestQueue()
    q.enqueue(JobRequest("low job", priority="low"))
    q.enqueue(JobRequest("first normal"))
    q.enqueue(JobRequest("manual", origin=JobOrigin.MANUAL, priority="high"))
    q.enqueue(JobRequest("second normal"))
    order = [q.dequeue(block=False).job_name for _ in range(4)]
    assert order == ["manual", "first normal", "second normal", "low job"]
    assert q.dequeue(block=False) is None


def test_pending_job_is_not_queued_twice():
    q = JobRequestQueue()
    assert q.enqueue(JobRequest("Process purchases"))
    assert not q.enqueue(JobRequest("Process purchases"))
    assert q.depth() == 1
    q.dequeue(block=False)
    assert q.enqueue(JobRequest("Process purchases"))


def test_unknown_priority_rejected():
    with pytest.raises(ValueError):
        JobRequestQueue().enqueue(JobRequest("x", priority="urgent"))


def test_dequeue_timeout_returns_none():
    assert JobRequestQueue().dequeue(timeout=0.05) is None


def test_shutdown_wakes_blocked_consumer():
    q = JobRequestQueue()
    results = []
    consumer = threading.Thread(target=lambda: results.append(q.dequeue(timeout=5)))
    consumer.start()
    q.shutdown()
    consumer.join(2)
    assert results == [None]
    with pytest.raises(RuntimeError):
        q.enqueue(JobRequest("late"))
