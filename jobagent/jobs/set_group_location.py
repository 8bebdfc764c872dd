"""Moves groups to where most of their members are.

New groups follow their members freely during a grace period; afterwards a
group moves at most once per block period.
"""
from __future__ import annotations

from datetime import timedelta

from jobagent.config import LOCATION_SETTINGS
from jobagent.core import GraceRecencyGate
from jobagent.exceptions import PolicyError
from jobagent.scheduling.registry import JobDefinition
from jobagent.scheduling.tools import JobLog, JobTools
from jobagent.utils import get_logger

logger = get_logger(__name__)


def process(tools: JobTools, log: JobLog) -> None:
    Group = tools.models.Group
    now = tools.now()
    gate = GraceRecencyGate(
        grace=timedelta(days=LOCATION_SETTINGS["group_grace_period_days"]),
        cooldown=timedelta(days=LOCATION_SETTINGS["group_block_after_switch_days"]),
    )
    with tools.store() as store:
        rows = store.find(
            Group,
            Group.deleted_at.is_(None),
            columns=(Group.id, Group.created_at, Group.last_location_switch_at),
        )
    allowed = [row for row in rows if gate.allowed(row.created_at, row.last_location_switch_at, now)]
    moved: list[int] = []

    def relocate(row) -> None:
        try:
            best = tools.locations.determine_best_location(row.id)
        except PolicyError as e:
            # Groups without located members stay where they are
            logger.debug("No best location for group", group_id=row.id, reason=str(e))
            return
        if tools.locations.set_group_location(row.id, best):
            moved.append(row.id)

    result = tools.fanout.run(allowed, relocate, label="relocate_group", log=log)
    log(f"Checked {result.total} groups, moved {len(moved)}")


JOB = JobDefinition(name="Set group location", process=process, trigger="*/10 * * * *")
