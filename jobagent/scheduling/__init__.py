"""Job scheduling runtime: triggers, registry, queue, guards, runner, workers."""
from .triggers import Trigger, INTERVALS
from .registry import JobDefinition, JobScheduleRegistry, camelize
from .queue import JobRequest, JobRequestQueue
from .locks import InMemoryRunGuard, RedisRunGuard, create_run_guard
from .tools import JobTools, JobLog
from .runner import JobRunner
from .worker import JobWorker
from .scheduler import JobScheduler

__all__ = [
    "Trigger",
    "INTERVALS",
    "JobDefinition",
    "JobScheduleRegistry",
    "camelize",
    "JobRequest",
    "JobRequestQueue",
    "InMemoryRunGuard",
    "RedisRunGuard",
    "create_run_guard",
    "JobTools",
    "JobLog",
    "JobRunner",
    "JobWorker",
    "JobScheduler",
]
