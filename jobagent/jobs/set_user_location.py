"""Applies pending user location switches, at most one per cooldown period."""
from __future__ import annotations

from datetime import timedelta

from jobagent.config import LOCATION_SETTINGS
from jobagent.core import RecencyGate
from jobagent.scheduling.registry import JobDefinition
from jobagent.scheduling.tools import JobLog, JobTools


def process(tools: JobTools, log: JobLog) -> None:
    User = tools.models.User
    now = tools.now()
    gate = RecencyGate(timedelta(hours=LOCATION_SETTINGS["user_switch_cooldown_hours"]))
    with tools.store() as store:
        rows = store.find(
            User,
            User.next_location.is_not(None),
            User.deleted_at.is_(None),
            columns=(User.id, User.next_location, User.last_location_switch_at),
        )
    allowed = [row for row in rows if gate.allowed(row.last_location_switch_at, now)]
    if len(allowed) < len(rows):
        log(f"{len(rows) - len(allowed)} users are still in their switch cooldown", "debug")

    def switch(row) -> None:
        tools.locations.set_user_location(row.id, row.next_location)

    result = tools.fanout.run(allowed, switch, label="switch_user_location", log=log)
    log(f"Switched location of {result.succeeded} of {result.total} users")


JOB = JobDefinition(name="Set user location", process=process, trigger="*/10 * * * *")
