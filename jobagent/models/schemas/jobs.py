"""
Pydantic schemas describing jobs, job runs and agent registrations.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from jobagent.models.db.enums import JobRunState, JobOrigin

class JobDescriptor(BaseModel):
    """A job as advertised by the agent in its JobType rows."""
    name: str = Field(description="Human readable job name")
    key: str = Field(description="Job type id: agent prefix + camelized name")
    trigger: Optional[str] = Field(None, description="Cron expression, None for manual-only jobs")
    manual_start: bool = Field(False, description="Whether operators may start the job on demand")

class JobRunSummary(BaseModel):
    """Outcome of one job execution."""
    job_name: str
    job_run_id: Optional[int] = Field(None, description="Id of the Job run record")
    origin: JobOrigin = JobOrigin.SCHEDULE
    state: JobRunState
    started_at: datetime
    finished_at: datetime
    duration_ms: float = Field(ge=0)
    error: Optional[str] = None
    log_lines: int = Field(0, ge=0, description="Number of lines collected into the run log")

    @property
    def succeeded(self) -> bool:
        return self.state == JobRunState.SUCCEEDED

class AgentRegistration(BaseModel):
    """What the agent wrote to the JobAgent/JobType tables on start."""
    agent_id: str
    name: str
    agent_type: str
    version: str
    job_types: List[str] = Field(default_factory=list)
    registered_at: datetime
