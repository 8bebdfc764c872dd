"""Assigns each live item the group or user whose quota it counts against.

Only items whose owner was never resolved are processed; resolving stamps
``quota_*_resolved_at`` so an item without an owner is not retried forever.
"""
from __future__ import annotations

from jobagent.core import QuotaAssignmentProcessor
from jobagent.scheduling.registry import JobDefinition
from jobagent.scheduling.tools import JobLog, JobTools


def _assign(owner: str, marker_field: str, tools: JobTools, log: JobLog) -> None:
    Item = tools.models.Item
    with tools.store() as store:
        rows = store.find(
            Item,
            getattr(Item, marker_field).is_(None),
            Item.deleted_at.is_(None),
            columns=(Item.id, Item.folder_id, Item.client_id),
        )
    result = tools.fanout.run(rows, QuotaAssignmentProcessor(tools, owner), log=log)
    log(f"Assigned quota {owner} for {result.succeeded} of {result.total} items")


def process_group(tools: JobTools, log: JobLog) -> None:
    _assign("group", "quota_group_resolved_at", tools, log)


def process_user(tools: JobTools, log: JobLog) -> None:
    _assign("user", "quota_user_resolved_at", tools, log)


GROUP_JOB = JobDefinition(name="Set item quota group", process=process_group, trigger="48 * * * *")
USER_JOB = JobDefinition(name="Set item quota user", process=process_user, trigger="38 * * * *")
