"""The maintenance jobs hosted by the agent."""
from __future__ import annotations

from jobagent.scheduling.registry import JobDefinition, JobScheduleRegistry

from . import (
    cleanup_email_tokens,
    cleanup_jobs_and_agents,
    deleted_folders_cleanup,
    deleted_groups_cleanup,
    deleted_items_cleanup,
    deleted_users_cleanup,
    inactive_users_cleanup,
    item_auto_destruct,
    process_purchases,
    set_group_location,
    set_item_quota,
    set_user_location,
    update_item_stats,
)

ALL_JOBS: tuple[JobDefinition, ...] = (
    cleanup_jobs_and_agents.JOB,
    cleanup_email_tokens.JOB,
    inactive_users_cleanup.JOB,
    deleted_items_cleanup.JOB,
    deleted_folders_cleanup.JOB,
    deleted_groups_cleanup.JOB,
    deleted_users_cleanup.JOB,
    item_auto_destruct.JOB,
    process_purchases.JOB,
    set_item_quota.GROUP_JOB,
    set_item_quota.USER_JOB,
    update_item_stats.JOB,
    set_user_location.JOB,
    set_group_location.JOB,
)


def build_registry(prefix: str | None = None, jobs: tuple[JobDefinition, ...] = ALL_JOBS) -> JobScheduleRegistry:
    registry = JobScheduleRegistry(prefix)
    for job in jobs:
        registry.register(job)
    return registry


__all__ = ["ALL_JOBS", "build_registry"]
