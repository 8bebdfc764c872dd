"""Physically removes folders that have been soft-deleted for longer than the grace period."""
from __future__ import annotations

from jobagent.config import RETENTION_SETTINGS
from jobagent.core import ThresholdQuery
from jobagent.scheduling.registry import JobDefinition
from jobagent.scheduling.tools import JobLog, JobTools
from jobagent.utils.time import minutes


def process(tools: JobTools, log: JobLog) -> None:
    query = ThresholdQuery(tools.models.Folder, "deleted_at", minutes(RETENTION_SETTINGS["deleted_folder_grace_minutes"]))
    with tools.store() as store:
        deleted = query.delete(store, now=tools.now())
    log(f"Deleted {deleted} folders")


JOB = JobDefinition(name="Deleted folders cleanup", process=process, trigger="hourly")
