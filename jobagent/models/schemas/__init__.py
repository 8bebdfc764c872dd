from .jobs import JobDescriptor, JobRunSummary, AgentRegistration

__all__ = ["JobDescriptor", "JobRunSummary", "AgentRegistration"]
