"""Scheduler thread: turns cron triggers into job requests.

Every tick asks the registry which automatic jobs fired since the previous
tick and queues one request per job. Fire times missed while the agent was
down are not replayed; the first tick only looks back to agent start.
"""
from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Callable

from jobagent.config import SCHEDULER_SETTINGS
from jobagent.models.db.enums import JobOrigin
from jobagent.scheduling.queue import JobRequest, JobRequestQueue
from jobagent.scheduling.registry import JobScheduleRegistry
from jobagent.utils import get_logger, utc_now

logger = get_logger(__name__)


class JobScheduler:
    def __init__(
        self,
        registry: JobScheduleRegistry,
        queue: JobRequestQueue,
        *,
        clock: Callable[[], datetime] = utc_now,
        tick_seconds: float | None = None,
        heartbeat: Callable[[datetime], None] | None = None,
        heartbeat_seconds: float | None = None,
    ) -> None:
        self.registry = registry
        self.queue = queue
        self.clock = clock
        self.tick_seconds = float(tick_seconds if tick_seconds is not None else SCHEDULER_SETTINGS["tick_seconds"])
        self.heartbeat = heartbeat
        self.heartbeat_interval = timedelta(
            seconds=float(heartbeat_seconds if heartbeat_seconds is not None else SCHEDULER_SETTINGS["heartbeat_seconds"])
        )
        self._last_tick: datetime | None = None
        self._last_heartbeat: datetime | None = None
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    def tick(self, now: datetime | None = None) -> list[str]:
        """Queue the jobs that became due; returns their names."""
        now = now or self.clock()
        since = self._last_tick or now
        self._last_tick = now
        queued: list[str] = []
        for job in self.registry.due(since, now):
            request = JobRequest(job_name=job.name, origin=JobOrigin.SCHEDULE, priority="normal")
            try:
                if self.queue.enqueue(request):
                    queued.append(job.name)
            except OverflowError:
                logger.warning("Queue full, dropping scheduled run", job=job.name)
        if queued:
            logger.info("Scheduled jobs queued", jobs=queued, depth=self.queue.depth())
        self._beat(now)
        return queued

    def _beat(self, now: datetime) -> None:
        if self.heartbeat is None:
            return
        if self._last_heartbeat is not None and now - self._last_heartbeat < self.heartbeat_interval:
            return
        self._last_heartbeat = now
        try:
            self.heartbeat(now)
        except Exception as e:
            logger.error("Agent heartbeat failed", error=str(e), exc_info=True)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():  # pragma: no cover
            return
        self._stop_event.clear()
        self._last_tick = self.clock()
        self._thread = threading.Thread(target=self._loop, name="job-scheduler", daemon=True)
        self._thread.start()
        logger.info("Job scheduler started", tick_seconds=self.tick_seconds, jobs=len(self.registry.automatic()))

    def stop(self) -> None:
        self._stop_event.set()
        logger.info("Job scheduler stop requested")

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _loop(self) -> None:
        while not self._stop_event.wait(self.tick_seconds):
            try:
                self.tick()
            except Exception as e:  # pragma: no cover - keep the scheduler alive
                logger.error("Scheduler tick error", error=str(e), exc_info=True)


__all__ = ["JobScheduler"]
