"""Cooldown checks for fields that may only change every so often."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from jobagent.utils.time import ensure_utc


@dataclass(slots=True, frozen=True)
class RecencyGate:
    cooldown: timedelta

    def allowed(self, last_action_at: datetime | None, now: datetime) -> bool:
        if last_action_at is None:
            return True
        return ensure_utc(now) - ensure_utc(last_action_at) >= self.cooldown


@dataclass(slots=True, frozen=True)
class GraceRecencyGate:
    """Always open during ``grace`` after creation, then a plain cooldown."""

    grace: timedelta
    cooldown: timedelta

    def allowed(self, created_at: datetime | None, last_action_at: datetime | None, now: datetime) -> bool:
        if created_at is not None and ensure_utc(now) - ensure_utc(created_at) < self.grace:
            return True
        return RecencyGate(self.cooldown).allowed(last_action_at, now)


__all__ = ["RecencyGate", "GraceRecencyGate"]
