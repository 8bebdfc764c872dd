"""Subscription lifecycle: renewing recurring purchases and ending canceled ones."""
from __future__ import annotations

import calendar
from datetime import datetime
from typing import Callable, Protocol

from sqlalchemy.orm import Session

from jobagent.exceptions import PolicyError
from jobagent.models.db.enums import PurchaseInterval
from jobagent.models.registry import ModelRegistry
from jobagent.utils import get_logger, log_business_event, utc_now
from jobagent.utils.time import ensure_utc

logger = get_logger(__name__)

_INTERVAL_MONTHS = {
    PurchaseInterval.MONTHLY: 1,
    PurchaseInterval.YEARLY: 12,
}


def add_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping the day (Jan 31 + 1 month -> Feb 28/29)."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


class SubscriptionPolicy(Protocol):
    def extend_subscription(self, purchase_id: int) -> datetime: ...
    def deactivate_purchase(self, purchase_id: int) -> None: ...


class DatabaseSubscriptionPolicy:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        models: ModelRegistry,
        *,
        actor_id: Callable[[], int | None] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.session_factory = session_factory
        self.models = models
        self.actor_id = actor_id or (lambda: None)
        self.clock = clock

    def _load(self, session: Session, purchase_id: int):
        purchase = session.get(self.models.Purchase, purchase_id)
        if purchase is None:
            raise PolicyError(f"Purchase {purchase_id} not found")
        return purchase

    def extend_subscription(self, purchase_id: int) -> datetime:
        """Move ``paid_until`` one billing interval forward; returns the new value."""
        session = self.session_factory()
        try:
            purchase = self._load(session, purchase_id)
            if not purchase.active:
                raise PolicyError(f"Purchase {purchase_id} is not active")
            months = _INTERVAL_MONTHS.get(purchase.interval)
            if months is None:
                raise PolicyError(f"Purchase {purchase_id} has non-recurring interval '{purchase.interval}'")
            previous = ensure_utc(purchase.paid_until)
            purchase.paid_until = add_months(previous, months)
            purchase.renewal_count = (purchase.renewal_count or 0) + 1
            session.commit()
            new_paid_until = purchase.paid_until
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
        log_business_event(
            "subscription_extended",
            {"purchase_id": purchase_id, "previous_paid_until": previous, "paid_until": new_paid_until},
            actor_id=self.actor_id(),
        )
        return new_paid_until

    def deactivate_purchase(self, purchase_id: int) -> None:
        session = self.session_factory()
        try:
            purchase = self._load(session, purchase_id)
            if purchase.canceled_at is None:
                raise PolicyError(f"Purchase {purchase_id} was not canceled")
            purchase.active = False
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
        log_business_event(
            "subscription_deactivated",
            {"purchase_id": purchase_id},
            actor_id=self.actor_id(),
        )


__all__ = ["SubscriptionPolicy", "DatabaseSubscriptionPolicy", "add_months"]
