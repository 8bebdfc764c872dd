"""In-memory priority queue of job requests.

- Priority ordering (lower numeric value = higher priority), FIFO within a priority.
- A job has at most one pending request: when a job runs longer than its
  interval the scheduler does not pile up a backlog of identical runs.
- Capacity limit via QUEUE_SETTINGS; thread-safe through a condition variable.
"""
from __future__ import annotations

import heapq
import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from jobagent.config import QUEUE_SETTINGS
from jobagent.models.db.enums import JobOrigin
from jobagent.utils import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class JobRequest:
    job_name: str
    origin: JobOrigin = JobOrigin.SCHEDULE
    priority: str = "normal"
    requested_by: int | None = None
    enqueued_at: float = field(default_factory=time.time)


class JobRequestQueue:
    def __init__(self) -> None:
        priorities_cfg = QUEUE_SETTINGS.get("priorities", {})
        self._priority_map: dict[str, int] = priorities_cfg if isinstance(priorities_cfg, dict) else {"normal": 5}
        self._warn_depth = int(QUEUE_SETTINGS.get("warn_depth", 100))  # type: ignore[arg-type]
        self._max_in_memory = int(QUEUE_SETTINGS.get("max_in_memory", 1000))  # type: ignore[arg-type]
        self._cv = threading.Condition(threading.RLock())
        self._heap: list[tuple[int, int, JobRequest]] = []  # (priority_value, seq, request)
        self._pending: set[str] = set()
        self._seq = 0
        self._shutdown = False

    def enqueue(self, request: JobRequest) -> bool:
        """Queue ``request``; returns False if the job already has a pending request."""
        with self._cv:
            if self._shutdown:
                raise RuntimeError("Queue shutdown")
            if request.priority not in self._priority_map:
                raise ValueError(f"Unknown priority '{request.priority}'")
            if request.job_name in self._pending:
                logger.debug("Job already queued", job=request.job_name)
                return False
            if len(self._heap) >= self._max_in_memory:
                raise OverflowError("Queue capacity exceeded")
            self._seq += 1
            heapq.heappush(self._heap, (self._priority_map[request.priority], self._seq, request))
            self._pending.add(request.job_name)
            if len(self._heap) >= self._warn_depth:
                logger.warning("Queue depth warning", depth=len(self._heap))
            self._cv.notify()
            return True

    def dequeue(self, *, block: bool = True, timeout: Optional[float] = None) -> JobRequest | None:
        """Pop the next request. Returns None on timeout, when non-blocking and
        empty, or once the queue is shut down and drained."""
        end_time = None if timeout is None else time.monotonic() + timeout
        with self._cv:
            while not self._heap:
                if self._shutdown or not block:
                    return None
                remaining = None if end_time is None else end_time - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return None
                self._cv.wait(timeout=remaining)
            _, _, request = heapq.heappop(self._heap)
            self._pending.discard(request.job_name)
            return request

    def shutdown(self) -> None:
        with self._cv:
            self._shutdown = True
            self._cv.notify_all()

    def purge(self) -> None:
        with self._cv:
            self._heap.clear()
            self._pending.clear()

    def depth(self) -> int:
        return len(self._heap)

    def __len__(self) -> int:
        return self.depth()

    def snapshot(self) -> dict:
        with self._cv:
            return {
                "depth": len(self._heap),
                "pending": sorted(self._pending),
                "shutdown": self._shutdown,
            }


__all__ = ["JobRequest", "JobRequestQueue"]
