"""The maintenance job agent process.

On start the agent registers a JobType row per hosted job and a JobAgent row
listing them, then keeps ``last_alive`` fresh from the scheduler heartbeat.
Agents that stop beating are pruned by the cleanup job together with the job
types only they served.
"""
from __future__ import annotations

import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, Mapping

from sqlalchemy.orm import Session

from jobagent.config import AGENT_SETTINGS, SCHEDULER_SETTINGS
from jobagent.database import SessionLocal
from jobagent.models.db.enums import JobOrigin
from jobagent.models.registry import ModelRegistry, default_registry
from jobagent.models.schemas.jobs import AgentRegistration
from jobagent.scheduling.locks import RunGuard, create_run_guard
from jobagent.scheduling.queue import JobRequest, JobRequestQueue
from jobagent.scheduling.registry import JobScheduleRegistry
from jobagent.scheduling.runner import JobRunner
from jobagent.scheduling.scheduler import JobScheduler
from jobagent.scheduling.worker import JobWorker
from jobagent.utils import get_logger, utc_now

logger = get_logger(__name__)


def load_agent_id(id_file: str | Path) -> str:
    """Agent id persisted across restarts; created on first start."""
    path = Path(id_file)
    if path.exists():
        stored = path.read_text(encoding="utf-8").strip()
        if stored:
            return stored
    agent_id = uuid.uuid4().hex
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(agent_id, encoding="utf-8")
    logger.info("Created agent id", agent_id=agent_id, id_file=str(path))
    return agent_id


class MaintenanceAgent:
    def __init__(
        self,
        registry: JobScheduleRegistry,
        *,
        session_factory: Callable[[], Session] = SessionLocal,
        models: ModelRegistry | None = None,
        settings: Mapping[str, str] | None = None,
        runner: JobRunner | None = None,
        queue: JobRequestQueue | None = None,
        guard: RunGuard | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.registry = registry
        self.session_factory = session_factory
        self.models = models or default_registry()
        self.settings = dict(settings or AGENT_SETTINGS)
        self.clock = clock
        self.runner = runner or JobRunner(registry, session_factory=session_factory, models=self.models, clock=clock)
        self.queue = queue or JobRequestQueue()
        self.guard = guard or create_run_guard()
        self.agent_id = load_agent_id(self.settings["id_file"])
        self.workers = [
            JobWorker(
                self.queue,
                self.runner,
                self.guard,
                poll_timeout=float(SCHEDULER_SETTINGS["poll_timeout"]),
                name=f"job-worker-{i}",
            )
            for i in range(int(SCHEDULER_SETTINGS["worker_count"]))
        ]
        self.scheduler = JobScheduler(registry, self.queue, clock=clock, heartbeat=self.heartbeat)
        self._stopped = threading.Event()

    def job_type_keys(self) -> list[str]:
        return [job.type_key(self.registry.prefix) for job in self.registry]

    def register(self, now: datetime | None = None) -> AgentRegistration:
        """Upsert the JobType rows and this agent's JobAgent row."""
        now = now or self.clock()
        JobType, JobAgent = self.models.JobType, self.models.JobAgent
        keys = self.job_type_keys()
        session = self.session_factory()
        try:
            for descriptor in self.registry.descriptors():
                session.merge(JobType(
                    id=descriptor.key,
                    display_name=descriptor.name,
                    manual_start=descriptor.manual_start,
                    trigger=descriptor.trigger,
                ))
            session.merge(JobAgent(
                id=self.agent_id,
                name=self.settings["name"],
                agent_type=self.settings["type"],
                version=self.settings["version"],
                job_types=keys,
                last_alive=now,
            ))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
        logger.info("Agent registered", agent_id=self.agent_id, job_types=len(keys))
        return AgentRegistration(
            agent_id=self.agent_id,
            name=self.settings["name"],
            agent_type=self.settings["type"],
            version=self.settings["version"],
            job_types=keys,
            registered_at=now,
        )

    def heartbeat(self, now: datetime | None = None) -> None:
        """Refresh ``last_alive``; re-registers if this agent was pruned meanwhile."""
        now = now or self.clock()
        JobAgent, JobType = self.models.JobAgent, self.models.JobType
        session = self.session_factory()
        try:
            agent = session.get(JobAgent, self.agent_id)
            known_types = session.query(JobType.id).filter(JobType.id.in_(self.job_type_keys())).count()
            if agent is not None and known_types == len(self.registry):
                agent.last_alive = now
                session.commit()
                return
        finally:
            session.close()
        logger.warning("Agent registration missing, registering again", agent_id=self.agent_id)
        self.register(now)

    def trigger(self, job_name: str, *, requested_by: int | None = None) -> bool:
        """Queue a manual run of ``job_name`` ahead of scheduled runs."""
        definition = self.registry.get(job_name)
        return self.queue.enqueue(JobRequest(
            job_name=definition.name,
            origin=JobOrigin.MANUAL,
            priority="high",
            requested_by=requested_by,
        ))

    def start(self) -> None:
        self.register()
        for worker in self.workers:
            worker.start()
        self.scheduler.start()
        logger.info("Agent started", agent_id=self.agent_id, workers=len(self.workers))

    def stop(self, timeout: float = 10.0) -> None:
        self.scheduler.stop()
        for worker in self.workers:
            worker.stop()
        self.queue.shutdown()
        self.scheduler.join(timeout)
        for worker in self.workers:
            worker.join(timeout)
        self._stopped.set()
        logger.info("Agent stopped", agent_id=self.agent_id)

    def run_forever(self) -> None:
        self.start()
        try:
            while not self._stopped.wait(1.0):
                pass
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
        finally:
            if not self._stopped.is_set():
                self.stop()


__all__ = ["MaintenanceAgent", "load_agent_id"]
