"""Reference reconciliation: prune stale referencing records, then orphans.

Used for job agents and the job types they serve: once stale agents are gone,
a job type no remaining agent lists is deleted.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from jobagent.core.store import RecordStore
from jobagent.core.threshold import ThresholdQuery
from jobagent.utils import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class ReconcileResult:
    pruned: int
    live: set[Any] = field(default_factory=set)
    orphans_deleted: int = 0


@dataclass(slots=True)
class ReferenceReconciler:
    """``staleness`` selects referencing records to prune; ``reference_field``
    holds a scalar or a list of ids into ``referenced_model.referenced_key``.
    """

    staleness: ThresholdQuery
    reference_field: str
    referenced_model: type
    referenced_key: str = "id"

    def live_references(self, store: RecordStore) -> set[Any]:
        column = getattr(self.staleness.model, self.reference_field)
        live: set[Any] = set()
        for (value,) in store.find(self.staleness.model, columns=[column]):
            if value is None:
                continue
            if isinstance(value, (list, tuple, set)):
                live.update(v for v in value if v is not None)
            else:
                live.add(value)
        return live

    def reconcile(self, store: RecordStore, now: datetime) -> ReconcileResult:
        pruned = self.staleness.delete(store, now=now)
        live = self.live_references(store)
        key = getattr(self.referenced_model, self.referenced_key)
        if live:
            orphans = store.delete_many(self.referenced_model, key.not_in(live))
        else:
            orphans = store.delete_many(self.referenced_model)
        logger.info(
            "Reference reconciliation finished",
            referencing=self.staleness.model.__name__,
            referenced=self.referenced_model.__name__,
            pruned=pruned,
            live=len(live),
            orphans_deleted=orphans,
        )
        return ReconcileResult(pruned=pruned, live=live, orphans_deleted=orphans)


__all__ = ["ReferenceReconciler", "ReconcileResult"]
