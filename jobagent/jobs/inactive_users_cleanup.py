"""Removes invitations nobody accepted: inactive users that still carry their
invitation token an hour after creation."""
from __future__ import annotations

from jobagent.config import RETENTION_SETTINGS
from jobagent.core import ThresholdQuery
from jobagent.scheduling.registry import JobDefinition
from jobagent.scheduling.tools import JobLog, JobTools
from jobagent.utils.time import minutes


def process(tools: JobTools, log: JobLog) -> None:
    User, Membership, GroupMember = tools.models.User, tools.models.Membership, tools.models.GroupMember
    query = ThresholdQuery(
        User,
        "created_at",
        minutes(RETENTION_SETTINGS["inactive_user_minutes"]),
        criteria=(
            User.active.is_(False),
            User.client_invitation_token.is_not(None),
            User.is_system.is_(False),
        ),
    )
    with tools.store() as store:
        user_ids = [row.id for row in query.select(store, User.id, now=tools.now())]
        if not user_ids:
            log("No expired invitations")
            return
        store.delete_many(Membership, Membership.user_id.in_(user_ids))
        store.delete_many(GroupMember, GroupMember.user_id.in_(user_ids))
        deleted = store.delete_many(User, User.id.in_(user_ids))
    log(f"Deleted {deleted} inactive invited users")


JOB = JobDefinition(name="Inactive users cleanup", process=process, trigger="30 * * * *")
