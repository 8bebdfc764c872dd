"""Physically removes groups an hour after they were soft-deleted, memberships first."""
from __future__ import annotations

from jobagent.config import RETENTION_SETTINGS
from jobagent.core import ThresholdQuery
from jobagent.scheduling.registry import JobDefinition
from jobagent.scheduling.tools import JobLog, JobTools
from jobagent.utils.time import minutes


def process(tools: JobTools, log: JobLog) -> None:
    Group, GroupMember = tools.models.Group, tools.models.GroupMember
    query = ThresholdQuery(Group, "deleted_at", minutes(RETENTION_SETTINGS["deleted_group_grace_minutes"]))
    with tools.store() as store:
        rows = query.select(store, Group.id, now=tools.now())

    def purge(row) -> None:
        with tools.store() as store:
            store.delete_many(GroupMember, GroupMember.group_id == row.id)
            store.delete_many(Group, Group.id == row.id)

    result = tools.fanout.run(rows, purge, label="purge_group", log=log)
    log(f"Deleted {result.succeeded} of {result.total} groups")


JOB = JobDefinition(name="Deleted groups cleanup", process=process, trigger="13 * * * *")
