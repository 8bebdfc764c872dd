"""Declarative table of the jobs an agent hosts."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterator, TYPE_CHECKING

from jobagent.config import AGENT_SETTINGS
from jobagent.exceptions import DuplicateJobError, JobNotFoundError
from jobagent.models.schemas.jobs import JobDescriptor
from jobagent.scheduling.triggers import Trigger

if TYPE_CHECKING:  # pragma: no cover
    from jobagent.scheduling.tools import JobTools, JobLog

ProcessFn = Callable[["JobTools", "JobLog"], None]


def camelize(name: str) -> str:
    """'Cleanup old email tokens' -> 'CleanupOldEmailTokens'."""
    return "".join(part[:1].upper() + part[1:] for part in re.split(r"[^0-9A-Za-z]+", name) if part)


@dataclass(slots=True)
class JobDefinition:
    name: str
    process: ProcessFn
    trigger: Trigger | str | None = None
    manual_start: bool = False
    key: str | None = None
    description: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.trigger is not None:
            self.trigger = Trigger.parse(self.trigger)
        elif not self.manual_start:
            raise ValueError(f"Job '{self.name}' has neither a trigger nor manual start")

    @property
    def automatic(self) -> bool:
        return self.trigger is not None and not self.manual_start

    def type_key(self, prefix: str) -> str:
        return self.key or f"{prefix}{camelize(self.name)}"


class JobScheduleRegistry:
    def __init__(self, prefix: str | None = None) -> None:
        self.prefix = prefix if prefix is not None else AGENT_SETTINGS["prefix"]
        self._jobs: dict[str, JobDefinition] = {}
        self._keys: dict[str, str] = {}

    def register(self, definition: JobDefinition) -> JobDefinition:
        key = definition.type_key(self.prefix)
        if definition.name in self._jobs:
            raise DuplicateJobError(f"Job '{definition.name}' is already registered")
        if key in self._keys:
            raise DuplicateJobError(f"Job key '{key}' is already used by '{self._keys[key]}'")
        self._jobs[definition.name] = definition
        self._keys[key] = definition.name
        return definition

    def get(self, name: str) -> JobDefinition:
        """Look a job up by name or by type key."""
        if name in self._jobs:
            return self._jobs[name]
        if name in self._keys:
            return self._jobs[self._keys[name]]
        raise JobNotFoundError(name)

    def key_of(self, name: str) -> str:
        return self.get(name).type_key(self.prefix)

    def __iter__(self) -> Iterator[JobDefinition]:
        return iter(self._jobs.values())

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, name: object) -> bool:
        return name in self._jobs or name in self._keys

    def automatic(self) -> list[JobDefinition]:
        return [job for job in self._jobs.values() if job.automatic]

    def due(self, since: datetime, until: datetime) -> list[JobDefinition]:
        """Automatic jobs whose trigger fired in ``(since, until]``."""
        return [job for job in self.automatic() if job.trigger.fires_between(since, until)]  # type: ignore[union-attr]

    def descriptors(self) -> list[JobDescriptor]:
        return [
            JobDescriptor(
                name=job.name,
                key=job.type_key(self.prefix),
                trigger=str(job.trigger) if job.trigger is not None else None,
                manual_start=job.manual_start,
            )
            for job in self._jobs.values()
        ]


__all__ = ["JobDefinition", "JobScheduleRegistry", "camelize"]
