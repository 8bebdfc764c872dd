import threading

import pytest

from jobagent.exceptions import JobNotFoundError
from jobagent.models.db import Job
from jobagent.models.db.enums import JobOrigin, JobRunState
from jobagent.scheduling.locks import InMemoryRunGuard
from jobagent.scheduling.queue import JobRequest, JobRequestQueue
from jobagent.scheduling.registry import JobDefinition, JobScheduleRegistry
from jobagent.scheduling.runner import JobRunner
from jobagent.scheduling.worker import JobWorker


def _registry(*definitions):
    registry = JobScheduleRegistry(prefix="T")
    for definition in definitions:
        registry.register(definition)
    return registry


def _ok(tools, log):
    log("first line")
    log("visible only in the process log", "info")
    log("second line")


def _broken(tools, log):
    log("about to fail")
    raise RuntimeError("database went away")


def test_successful_run_is_recorded(session_factory, clock, db_session):
    runner = JobRunner(_registry(JobDefinition("Ok job", _ok, trigger="hourly")), session_factory=session_factory, clock=clock)

    summary = runner.run("Ok job")

    assert summary.succeeded
    assert summary.log_lines == 2
    record = db_session.get(Job, summary.job_run_id)
    assert record.job_type == "TOkJob"
    assert record.state == JobRunState.SUCCEEDED
    assert record.log == "first line\nsecond line"
    assert record.error is None
    assert record.finished_at is not None


def test_failed_run_is_recorded_not_raised(session_factory, clock, db_session):
    runner = JobRunner(_registry(JobDefinition("Broken", _broken, trigger="hourly")), session_factory=session_factory, clock=clock)

    summary = runner.run("Broken", origin=JobOrigin.MANUAL)

    assert summary.state == JobRunState.FAILED
    assert summary.error == "RuntimeError: database went away"
    record = db_session.get(Job, summary.job_run_id)
    assert record.state == JobRunState.FAILED
    assert record.origin == JobOrigin.MANUAL
    assert record.log == "about to fail"
    assert "database went away" in record.error


def test_unknown_job(session_factory):
    runner = JobRunner(_registry(), session_factory=session_factory)
    with pytest.raises(JobNotFoundError):
        runner.run("missing")


def test_overlapping_run_is_skipped(session_factory, clock, db_session):
    started = threading.Event()
    release = threading.Event()

    def slow(tools, log):
        started.set()
        release.wait(5)

    registry = _registry(JobDefinition("Slow", slow, trigger="hourly"))
    runner = JobRunner(registry, session_factory=session_factory, clock=clock)
    guard = InMemoryRunGuard()
    worker = JobWorker(JobRequestQueue(), runner, guard)

    results = []
    first = threading.Thread(target=lambda: results.append(worker.process(JobRequest("Slow"))))
    first.start()
    assert started.wait(5)

    assert worker.process(JobRequest("Slow")) is None

    release.set()
    first.join(5)
    assert results[0].succeeded
    assert db_session.query(Job).count() == 1
    assert guard.held() == []


def test_worker_thread_drains_queue(session_factory, clock, db_session):
    done = threading.Event()

    def quick(tools, log):
        done.set()

    registry = _registry(JobDefinition("Quick", quick, manual_start=True))
    queue = JobRequestQueue()
    worker = JobWorker(queue, JobRunner(registry, session_factory=session_factory, clock=clock), InMemoryRunGuard(), poll_timeout=0.1)
    worker.start()
    try:
        queue.enqueue(JobRequest("Quick", origin=JobOrigin.MANUAL, priority="high"))
        assert done.wait(5)
    finally:
        worker.stop()
        queue.shutdown()
        worker.join(5)
