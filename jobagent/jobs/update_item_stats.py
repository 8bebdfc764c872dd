"""Recomputes per-item message counts from the item's conversation."""
from __future__ import annotations

from jobagent.core import ItemStatsProcessor
from jobagent.scheduling.registry import JobDefinition
from jobagent.scheduling.tools import JobLog, JobTools


def process(tools: JobTools, log: JobLog) -> None:
    Item = tools.models.Item
    with tools.store() as store:
        rows = store.find(
            Item,
            Item.deleted_at.is_(None),
            Item.conversation_id.is_not(None),
            columns=(Item.id, Item.conversation_id),
        )
    result = tools.fanout.run(rows, ItemStatsProcessor(tools), log=log)
    log(f"Updated stats of {result.succeeded} of {result.total} items")


JOB = JobDefinition(name="Update item stats", process=process, trigger="38 * * * *")
