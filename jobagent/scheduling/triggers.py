"""Job triggers: one cron vocabulary for every job.

Symbolic intervals are sugar for cron expressions; everything is validated
and evaluated with croniter in UTC.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from croniter import croniter

from jobagent.exceptions import InvalidTriggerError
from jobagent.utils.time import ensure_utc

INTERVALS: dict[str, str] = {
    "minutely": "* * * * *",
    "hourly": "0 * * * *",
    "daily": "0 0 * * *",
    "weekly": "0 0 * * 0",
    "monthly": "0 0 1 * *",
}


@dataclass(slots=True, frozen=True)
class Trigger:
    expression: str

    @classmethod
    def parse(cls, value: "str | Trigger") -> "Trigger":
        if isinstance(value, Trigger):
            return value
        text = " ".join(str(value).split())
        expression = INTERVALS.get(text.lower(), text)
        if not croniter.is_valid(expression):
            raise InvalidTriggerError(f"Invalid trigger '{value}'")
        return cls(expression)

    def next_after(self, moment: datetime) -> datetime:
        """First fire time strictly after ``moment``."""
        return croniter(self.expression, ensure_utc(moment)).get_next(datetime)

    def fires_between(self, since: datetime, until: datetime) -> bool:
        """True if the trigger fires in the half-open window ``(since, until]``."""
        return self.next_after(since) <= ensure_utc(until)

    def __str__(self) -> str:
        return self.expression


__all__ = ["Trigger", "INTERVALS"]
