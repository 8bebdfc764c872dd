"""Physically removes soft-deleted users once no client membership (active or
removed) refers to them anymore."""
from __future__ import annotations

from sqlalchemy import exists

from jobagent.config import RETENTION_SETTINGS
from jobagent.core import ThresholdQuery
from jobagent.scheduling.registry import JobDefinition
from jobagent.scheduling.tools import JobLog, JobTools
from jobagent.utils.time import minutes


def process(tools: JobTools, log: JobLog) -> None:
    User, Membership, GroupMember = tools.models.User, tools.models.Membership, tools.models.GroupMember
    query = ThresholdQuery(
        User,
        "deleted_at",
        minutes(RETENTION_SETTINGS["deleted_user_grace_minutes"]),
        criteria=(
            ~exists().where(Membership.user_id == User.id),
            User.is_system.is_(False),
        ),
    )
    with tools.store() as store:
        user_ids = [row.id for row in query.select(store, User.id, now=tools.now())]
        if not user_ids:
            log("No deleted users to remove")
            return
        store.delete_many(GroupMember, GroupMember.user_id.in_(user_ids))
        deleted = store.delete_many(User, User.id.in_(user_ids))
    log(f"Deleted {deleted} users")


JOB = JobDefinition(name="Deleted users cleanup", process=process, trigger="30 * * * *")
