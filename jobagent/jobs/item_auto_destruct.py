"""Soft-deletes items whose self-destruct time has passed, on behalf of the system user."""
from __future__ import annotations

from datetime import timedelta

from jobagent.core import ThresholdQuery
from jobagent.scheduling.registry import JobDefinition
from jobagent.scheduling.tools import JobLog, JobTools


def process(tools: JobTools, log: JobLog) -> None:
    Item = tools.models.Item
    now = tools.now()
    system_user_id = tools.get_system_user_id()
    query = ThresholdQuery(Item, "auto_destruct_at", timedelta(0), criteria=(Item.deleted_at.is_(None),))
    with tools.store() as store:
        destroyed = query.update(store, {"deleted_at": now, "deleted_by": system_user_id}, now=now)
    log(f"Auto-destructed {destroyed} items")


JOB = JobDefinition(name="Item auto-destruct", process=process, trigger="hourly")
