"""Background workers consuming job requests."""
from __future__ import annotations

import threading
import time

from jobagent.scheduling.locks import RunGuard
from jobagent.scheduling.queue import JobRequest, JobRequestQueue
from jobagent.scheduling.runner import JobRunner
from jobagent.models.schemas.jobs import JobRunSummary
from jobagent.utils import get_logger

logger = get_logger(__name__)


class JobWorker:
    def __init__(
        self,
        queue: JobRequestQueue,
        runner: JobRunner,
        guard: RunGuard,
        *,
        poll_timeout: float = 5.0,
        name: str = "job-worker",
    ) -> None:
        self.queue = queue
        self.runner = runner
        self.guard = guard
        self.poll_timeout = poll_timeout
        self.name = name
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():  # pragma: no cover
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()
        logger.info("Job worker started", worker=self.name)

    def stop(self) -> None:
        self._stop_event.set()
        logger.info("Job worker stop requested", worker=self.name)

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                request = self.queue.dequeue(timeout=self.poll_timeout)
                if request is None:
                    continue
                self.process(request)
            except Exception as e:  # pragma: no cover - keep the worker alive
                logger.error("Worker loop error", worker=self.name, error=str(e), exc_info=True)
                time.sleep(1)

    def process(self, request: JobRequest) -> JobRunSummary | None:
        """Run the requested job unless a run of it is already in progress."""
        token = self.guard.acquire(request.job_name)
        if token is None:
            logger.info("Skipping overlapping job run", job=request.job_name, origin=request.origin.value)
            return None
        try:
            return self.runner.run(request.job_name, origin=request.origin, created_by=request.requested_by)
        finally:
            self.guard.release(request.job_name, token)


__all__ = ["JobWorker"]
