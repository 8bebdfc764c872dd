"""Exception hierarchy shared by the job agent runtime, jobs and policies."""
from __future__ import annotations


class JobAgentError(Exception):
    """Base class for all errors raised by the job agent."""


class PolicyError(JobAgentError):
    """A policy service refused to perform an operation on a record."""


class JobNotFoundError(JobAgentError, KeyError):
    """No job with the requested name is registered."""


class DuplicateJobError(JobAgentError, ValueError):
    """A job with the same name or key is already registered."""


class InvalidTriggerError(JobAgentError, ValueError):
    """A trigger interval or cron expression could not be understood."""


__all__ = [
    "JobAgentError",
    "PolicyError",
    "JobNotFoundError",
    "DuplicateJobError",
    "InvalidTriggerError",
]
