"""Concurrent per-record execution with failure isolation.

Every record gets its own unit of work on a bounded thread pool. The executor
waits for all units to settle; a failing unit is logged with the record's
identifier and never stops its siblings.
"""
from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from jobagent.config import FANOUT_SETTINGS
from jobagent.utils import get_logger, log_performance

logger = get_logger(__name__)


@dataclass(slots=True)
class FanOutFailure:
    record_id: str
    error: str
    error_type: str


@dataclass(slots=True)
class FanOutResult:
    total: int = 0
    succeeded: int = 0
    failures: list[FanOutFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


class FanOutExecutor:
    def __init__(self, max_workers: int | None = None, *, name: str = "fanout") -> None:
        configured = max_workers if max_workers is not None else FANOUT_SETTINGS.get("max_workers", 8)
        self.max_workers = max(1, int(configured))
        self.name = name

    def run(
        self,
        records: Iterable[Any],
        unit: Callable[[Any], None],
        *,
        describe: Callable[[Any], str] | None = None,
        label: str | None = None,
        log: Callable[..., None] | None = None,
    ) -> FanOutResult:
        """Apply ``unit`` to every record; returns counts and per-record failures.

        ``unit`` is a callable or a RecordProcessor. When it is a processor its
        ``describe`` names records in failure logs unless ``describe`` is given.
        With ``log`` (a JobLog) every failure is also reported at error severity
        so it ends up in the run record.
        """
        items = list(records)
        result = FanOutResult(total=len(items))
        if not items:
            return result
        describe = describe or getattr(unit, "describe", None) or _default_describe
        label = label or getattr(unit, "name", None) or self.name
        started = time.perf_counter()
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(items)), thread_name_prefix=self.name) as pool:
            futures = {pool.submit(unit, record): record for record in items}
            for future in as_completed(futures):
                record = futures[future]
                exc = future.exception()
                if exc is None:
                    result.succeeded += 1
                    continue
                record_id = describe(record)
                result.failures.append(FanOutFailure(record_id=record_id, error=str(exc), error_type=type(exc).__name__))
                logger.error(
                    "Record processing failed",
                    unit=label,
                    record_id=record_id,
                    error=str(exc),
                    exc_info=(type(exc), exc, exc.__traceback__),
                )
                if log is not None:
                    log(f"{label} failed for record {record_id}: {exc}", "error")
        log_performance(
            f"fanout.{label}",
            (time.perf_counter() - started) * 1000,
            {"total": result.total, "succeeded": result.succeeded, "failed": result.failed},
        )
        return result


def _default_describe(record: Any) -> str:
    return str(getattr(record, "id", record))


__all__ = ["FanOutExecutor", "FanOutResult", "FanOutFailure"]
