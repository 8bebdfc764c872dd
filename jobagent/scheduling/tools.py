"""What a job's ``process(tools, log)`` receives.

``JobTools`` bundles database access, the model registry, the fan-out
executor and the policy services. ``JobLog`` is the log callback; lines with
the ``job`` and ``error`` severities are collected into the run record.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterator

from sqlalchemy.orm import Session

from jobagent.core.fanout import FanOutExecutor
from jobagent.core.store import RecordStore
from jobagent.models.registry import ModelRegistry
from jobagent.services.identity import SystemIdentity
from jobagent.services.location_policy import LocationPolicy
from jobagent.services.quota_policy import QuotaPolicy
from jobagent.services.subscription_policy import SubscriptionPolicy
from jobagent.utils import get_logger, utc_now
from jobagent.utils.logger import StructuredLogger

SEVERITIES = ("job", "info", "warning", "error", "debug")
COLLECTED = ("job", "error")


class JobLog:
    def __init__(self, job_name: str, *, job_run_id: int | None = None, logger: StructuredLogger | None = None) -> None:
        self.job_name = job_name
        self.job_run_id = job_run_id
        self.logger = logger or get_logger("jobs")
        self.lines: list[str] = []

    def __call__(self, message: str, severity: str = "job", **data: Any) -> None:
        if severity not in SEVERITIES:
            raise ValueError(f"Unknown log severity '{severity}'")
        if severity in COLLECTED:
            self.lines.append(message)
        if severity == "job":
            severity = "info"
        emit = getattr(self.logger, severity)
        emit(message, job=self.job_name, job_run_id=self.job_run_id, **data)

    def info(self, message: str, **data: Any) -> None:
        self(message, "info", **data)

    def warning(self, message: str, **data: Any) -> None:
        self(message, "warning", **data)

    def error(self, message: str, **data: Any) -> None:
        self(message, "error", **data)

    def debug(self, message: str, **data: Any) -> None:
        self(message, "debug", **data)

    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass
class JobTools:
    session_factory: Callable[[], Session]
    models: ModelRegistry
    fanout: FanOutExecutor
    identity: SystemIdentity
    quota: QuotaPolicy
    subscriptions: SubscriptionPolicy
    locations: LocationPolicy
    clock: Callable[[], datetime] = field(default=utc_now)
    job_run_id: int | None = None

    @contextmanager
    def store(self) -> Iterator[RecordStore]:
        session = self.session_factory()
        try:
            yield RecordStore(session)
        finally:
            session.close()

    def now(self) -> datetime:
        return self.clock()

    def get_system_user_id(self) -> int:
        return self.identity.get_system_user_id()


__all__ = ["JobTools", "JobLog", "SEVERITIES", "COLLECTED"]
