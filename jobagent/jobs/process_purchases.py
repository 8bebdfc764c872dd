"""Renews overdue subscriptions, or ends them when they were canceled."""
from __future__ import annotations

from datetime import timedelta

from jobagent.core import ThresholdQuery
from jobagent.scheduling.registry import JobDefinition
from jobagent.scheduling.tools import JobLog, JobTools


def process(tools: JobTools, log: JobLog) -> None:
    Purchase = tools.models.Purchase
    overdue = ThresholdQuery(Purchase, "paid_until", timedelta(0), criteria=(Purchase.active.is_(True),))
    with tools.store() as store:
        rows = overdue.select(store, Purchase.id, Purchase.canceled_at, now=tools.now())

    def settle(row) -> None:
        # A purchase is either renewed or deactivated in one run, never both
        if row.canceled_at is None:
            tools.subscriptions.extend_subscription(row.id)
        else:
            tools.subscriptions.deactivate_purchase(row.id)

    result = tools.fanout.run(rows, settle, label="settle_purchase", log=log)
    log(f"Processed {result.succeeded} of {result.total} overdue purchases")


JOB = JobDefinition(name="Process purchases", process=process, trigger="hourly")
