"""Physically removes items that have been soft-deleted for longer than the grace period."""
from __future__ import annotations

from jobagent.config import RETENTION_SETTINGS
from jobagent.core import ThresholdQuery
from jobagent.scheduling.registry import JobDefinition
from jobagent.scheduling.tools import JobLog, JobTools
from jobagent.utils.time import minutes


def process(tools: JobTools, log: JobLog) -> None:
    Item, ItemStat = tools.models.Item, tools.models.ItemStat
    query = ThresholdQuery(Item, "deleted_at", minutes(RETENTION_SETTINGS["deleted_item_grace_minutes"]))
    with tools.store() as store:
        rows = query.select(store, Item.id, now=tools.now())

    def purge(row) -> None:
        with tools.store() as store:
            # Stats first: if the item delete fails the item is retried next run
            store.delete_many(ItemStat, ItemStat.item_id == row.id)
            store.delete_many(Item, Item.id == row.id)

    result = tools.fanout.run(rows, purge, label="purge_item", log=log)
    log(f"Deleted {result.succeeded} of {result.total} items")


JOB = JobDefinition(name="Deleted items cleanup", process=process, trigger="hourly")
