"""Time-threshold selection: records whose timestamp is older than ``now - threshold``."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping

from sqlalchemy import and_, or_

from jobagent.core.store import RecordStore
from jobagent.utils.time import ensure_utc


@dataclass(slots=True, frozen=True)
class ThresholdQuery:
    """Selects records of ``model`` with ``time_field < now - threshold``.

    The comparison is strict: a record stamped exactly at the cutoff is kept.
    With ``include_missing`` records whose field is NULL match as well (agents
    that never reported in). ``criteria`` are AND-ed to the time condition.
    """

    model: type
    time_field: str
    threshold: timedelta
    include_missing: bool = False
    criteria: tuple[Any, ...] = ()

    def cutoff(self, now: datetime) -> datetime:
        return ensure_utc(now) - self.threshold

    def condition(self, now: datetime):
        column = getattr(self.model, self.time_field)
        expired = column < self.cutoff(now)
        if self.include_missing:
            expired = or_(expired, column.is_(None))
        return and_(expired, *self.criteria)

    def select(self, store: RecordStore, *columns: Any, now: datetime) -> list[Any]:
        return store.find(self.model, self.condition(now), columns=columns or None)

    def update(self, store: RecordStore, values: Mapping[str, Any], *, now: datetime) -> int:
        return store.update_many(self.model, [self.condition(now)], values)

    def delete(self, store: RecordStore, *, now: datetime) -> int:
        return store.delete_many(self.model, self.condition(now))


__all__ = ["ThresholdQuery"]
