"""Executes one job: run record, tools, log, outcome."""
from __future__ import annotations

import time
import traceback
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from jobagent.core.fanout import FanOutExecutor
from jobagent.database import SessionLocal
from jobagent.models.db.enums import JobOrigin, JobRunState
from jobagent.models.registry import ModelRegistry, default_registry
from jobagent.models.schemas.jobs import JobRunSummary
from jobagent.scheduling.registry import JobScheduleRegistry
from jobagent.scheduling.tools import JobLog, JobTools
from jobagent.services import (
    DatabaseLocationPolicy,
    DatabaseSubscriptionPolicy,
    FolderQuotaPolicy,
    SystemIdentity,
)
from jobagent.utils import get_logger, log_performance, utc_now
from jobagent.utils.time import format_elapsed

logger = get_logger(__name__)


class JobRunner:
    def __init__(
        self,
        registry: JobScheduleRegistry,
        *,
        session_factory: Callable[[], Session] = SessionLocal,
        models: ModelRegistry | None = None,
        fanout: FanOutExecutor | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.registry = registry
        self.session_factory = session_factory
        self.models = models or default_registry()
        self.fanout = fanout or FanOutExecutor()
        self.clock = clock
        self.identity = SystemIdentity(session_factory, self.models)
        actor = self.identity.get_system_user_id
        self.quota = FolderQuotaPolicy(session_factory, self.models)
        self.subscriptions = DatabaseSubscriptionPolicy(session_factory, self.models, actor_id=actor, clock=clock)
        self.locations = DatabaseLocationPolicy(session_factory, self.models, actor_id=actor, clock=clock)

    def build_tools(self, job_run_id: int | None = None) -> JobTools:
        return JobTools(
            session_factory=self.session_factory,
            models=self.models,
            fanout=self.fanout,
            identity=self.identity,
            quota=self.quota,
            subscriptions=self.subscriptions,
            locations=self.locations,
            clock=self.clock,
            job_run_id=job_run_id,
        )

    def _open_run(self, name: str, key: str, origin: JobOrigin, created_by: int | None) -> int:
        Job = self.models.Job
        session = self.session_factory()
        try:
            run = Job(
                job_type=key,
                display_name=name,
                origin=origin,
                state=JobRunState.RUNNING,
                created_by=created_by,
                created_at=self.clock(),
            )
            session.add(run)
            session.commit()
            return run.id
        finally:
            session.close()

    def _close_run(self, run_id: int, state: JobRunState, log: JobLog, error: str | None, finished_at: datetime) -> None:
        Job = self.models.Job
        session = self.session_factory()
        try:
            run = session.get(Job, run_id)
            if run is None:
                # Pruned while running (cleanup job); the outcome is still logged
                logger.warning("Job run record disappeared", job_run_id=run_id)
                return
            run.state = state
            run.log = log.text() or None
            run.error = error
            run.finished_at = finished_at
            session.commit()
        finally:
            session.close()

    def run(self, name: str, *, origin: JobOrigin = JobOrigin.SCHEDULE, created_by: int | None = None) -> JobRunSummary:
        """Run job ``name`` to completion.

        A raised exception from the job marks the run failed; it is logged and
        reported in the summary, not re-raised. Unknown names raise
        JobNotFoundError.
        """
        definition = self.registry.get(name)
        key = definition.type_key(self.registry.prefix)
        started_at = self.clock()
        run_id = self._open_run(definition.name, key, origin, created_by)
        log = JobLog(definition.name, job_run_id=run_id)
        tools = self.build_tools(run_id)
        logger.info("Job started", job=definition.name, job_run_id=run_id, origin=origin.value)
        perf_start = time.perf_counter()
        error: str | None = None
        try:
            definition.process(tools, log)
            state = JobRunState.SUCCEEDED
        except Exception as e:
            state = JobRunState.FAILED
            error = f"{type(e).__name__}: {e}"
            logger.error("Job failed", job=definition.name, job_run_id=run_id, error=str(e), exc_info=True)
            log(f"Failed: {error}", "debug", traceback=traceback.format_exc())
        duration_ms = (time.perf_counter() - perf_start) * 1000
        finished_at = self.clock()
        self._close_run(run_id, state, log, error, finished_at)
        log_performance(f"job.{key}", duration_ms, {"job_run_id": run_id, "state": state.value})
        logger.info(
            "Job finished",
            job=definition.name,
            job_run_id=run_id,
            state=state.value,
            elapsed=format_elapsed(started_at, finished_at),
        )
        return JobRunSummary(
            job_name=definition.name,
            job_run_id=run_id,
            origin=origin,
            state=state,
            started_at=started_at,
            finished_at=finished_at,
            duration_ms=duration_ms,
            error=error,
            log_lines=len(log.lines),
        )


__all__ = ["JobRunner"]
