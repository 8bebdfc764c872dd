"""Expires e-mail confirmation tokens on users and client billing addresses."""
from __future__ import annotations

from jobagent.config import RETENTION_SETTINGS
from jobagent.core import ThresholdQuery
from jobagent.scheduling.registry import JobDefinition
from jobagent.scheduling.tools import JobLog, JobTools
from jobagent.utils.time import minutes

_CLEARED = {"confirm_email_token": None, "confirm_email_date": None, "email_to_confirm": None}


def process(tools: JobTools, log: JobLog) -> None:
    now = tools.now()
    threshold = minutes(RETENTION_SETTINGS["email_token_minutes"])
    with tools.store() as store:
        users = ThresholdQuery(tools.models.User, "confirm_email_date", threshold).update(store, _CLEARED, now=now)
        clients = ThresholdQuery(tools.models.Client, "confirm_email_date", threshold).update(store, _CLEARED, now=now)
    log(f"Cleared {users} user and {clients} client e-mail tokens")


JOB = JobDefinition(name="Cleanup old email tokens", process=process, trigger="hourly")
