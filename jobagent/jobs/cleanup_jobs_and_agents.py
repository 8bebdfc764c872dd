"""Drops old job run records and agents that stopped reporting in, then the
job types no live agent serves anymore."""
from __future__ import annotations

from jobagent.config import RETENTION_SETTINGS
from jobagent.core import ReferenceReconciler, ThresholdQuery
from jobagent.scheduling.registry import JobDefinition
from jobagent.scheduling.tools import JobLog, JobTools
from jobagent.utils.time import minutes


def process(tools: JobTools, log: JobLog) -> None:
    models = tools.models
    now = tools.now()
    with tools.store() as store:
        old_runs = ThresholdQuery(models.Job, "created_at", minutes(RETENTION_SETTINGS["job_runs_minutes"]))
        deleted = old_runs.delete(store, now=now)
        log(f"Deleted {deleted} job runs")

        stale_agents = ThresholdQuery(
            models.JobAgent,
            "last_alive",
            minutes(RETENTION_SETTINGS["agent_liveness_minutes"]),
            include_missing=True,
        )
        result = ReferenceReconciler(stale_agents, "job_types", models.JobType).reconcile(store, now)
        log(f"Deleted {result.pruned} stale agents and {result.orphans_deleted} unused job types")


JOB = JobDefinition(name="Cleanup old jobs and agents", process=process, trigger="hourly")
