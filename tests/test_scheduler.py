from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from jobagent.agent import MaintenanceAgent, load_agent_id
from jobagent.config import AGENT_SETTINGS
from jobagent.models.db import JobAgent, JobType
from jobagent.models.db.enums import JobOrigin
from jobagent.scheduling.locks import InMemoryRunGuard
from jobagent.scheduling.queue import JobRequestQueue
from jobagent.scheduling.scheduler import JobScheduler
from jobagent.utils.time import ensure_utc

from conftest import NOW

TOP_OF_HOUR = datetime(2026, 3, 15, 11, 0, tzinfo=timezone.utc)


def test_tick_queues_jobs_that_fired_since_last_tick(registry):
    queue = JobRequestQueue()
    scheduler = JobScheduler(registry, queue, tick_seconds=15)

    assert scheduler.tick(TOP_OF_HOUR - timedelta(seconds=20)) == []
    queued = scheduler.tick(TOP_OF_HOUR)

    assert "Process purchases" in queued
    assert "Set user location" in queued
    assert "Inactive users cleanup" not in queued
    assert queue.depth() == len(queued)
    assert scheduler.tick(TOP_OF_HOUR + timedelta(seconds=15)) == []


def test_pending_runs_are_not_duplicated(registry):
    queue = JobRequestQueue()
    scheduler = JobScheduler(registry, queue)
    scheduler.tick(TOP_OF_HOUR - timedelta(minutes=10, seconds=5))
    scheduler.tick(TOP_OF_HOUR - timedelta(minutes=10))
    again = scheduler.tick(TOP_OF_HOUR)

    assert "Set user location" not in again
    assert queue.snapshot()["pending"].count("Set user location") == 1


def test_heartbeat_interval():
    heartbeat = MagicMock()
    scheduler = JobScheduler(MagicMock(due=MagicMock(return_value=[])), JobRequestQueue(), heartbeat=heartbeat, heartbeat_seconds=60)
    scheduler.tick(NOW)
    scheduler.tick(NOW + timedelta(seconds=30))
    scheduler.tick(NOW + timedelta(seconds=60))
    assert [c.args[0] for c in heartbeat.call_args_list] == [NOW, NOW + timedelta(seconds=60)]


def test_heartbeat_failure_does_not_stop_ticks(registry):
    scheduler = JobScheduler(registry, JobRequestQueue(), heartbeat=MagicMock(side_effect=RuntimeError("db down")))
    scheduler.tick(TOP_OF_HOUR - timedelta(seconds=15))
    assert scheduler.tick(TOP_OF_HOUR)


def test_agent_id_is_persisted(tmp_path):
    id_file = tmp_path / "state" / "agent_id"
    first = load_agent_id(id_file)
    assert load_agent_id(id_file) == first
    assert id_file.read_text(encoding="utf-8") == first


def _agent(registry, session_factory, clock, tmp_path):
    settings = dict(AGENT_SETTINGS, id_file=str(tmp_path / "agent_id"))
    return MaintenanceAgent(
        registry,
        session_factory=session_factory,
        settings=settings,
        queue=JobRequestQueue(),
        guard=InMemoryRunGuard(),
        clock=clock,
    )


def test_registration_references_every_job_type(registry, session_factory, clock, tmp_path, db_session):
    agent = _agent(registry, session_factory, clock, tmp_path)

    registration = agent.register()

    row = db_session.get(JobAgent, agent.agent_id)
    assert sorted(row.job_types) == sorted(registration.job_types)
    assert {t.id for t in db_session.query(JobType).all()} == set(registration.job_types)
    assert len(registration.job_types) == len(registry)
    assert ensure_utc(row.last_alive) == NOW


def test_heartbeat_refreshes_and_reregisters(registry, session_factory, clock, tmp_path, db_session):
    agent = _agent(registry, session_factory, clock, tmp_path)
    agent.register()

    later = clock.advance(minutes=5)
    agent.heartbeat()
    db_session.expire_all()
    assert ensure_utc(db_session.get(JobAgent, agent.agent_id).last_alive) == later

    db_session.query(JobAgent).delete()
    db_session.query(JobType).delete()
    db_session.commit()
    agent.heartbeat()
    db_session.expire_all()
    assert db_session.get(JobAgent, agent.agent_id) is not None
    assert db_session.query(JobType).count() == len(registry)


def test_manual_trigger_jumps_the_queue(registry, session_factory, clock, tmp_path):
    agent = _agent(registry, session_factory, clock, tmp_path)
    agent.scheduler.tick(TOP_OF_HOUR - timedelta(seconds=15))
    agent.scheduler.tick(TOP_OF_HOUR)

    assert agent.trigger("MJUpdateItemStats")
    request = agent.queue.dequeue(block=False)
    assert request.job_name == "Update item stats"
    assert request.origin == JobOrigin.MANUAL
