from __future__ import annotations
"""SQLAlchemy models for the job system: run records, agents and job types."""
from datetime import datetime
from sqlalchemy import Integer, String, DateTime, Boolean, ForeignKey, Enum, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from jobagent.database import Base
from .enums import JobRunState, JobOrigin

class Job(Base):
    """One execution of a job type."""
    __tablename__ = "jobs"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    job_type: Mapped[str] = mapped_column(String, index=True)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    origin: Mapped[JobOrigin] = mapped_column(Enum(JobOrigin), default=JobOrigin.SCHEDULE)
    state: Mapped[JobRunState] = mapped_column(Enum(JobRunState), default=JobRunState.RUNNING, index=True)
    log: Mapped[str | None] = mapped_column(Text, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class JobAgent(Base):
    """Liveness record of an agent process and the job types it serves."""
    __tablename__ = "job_agents"
    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    agent_type: Mapped[str] = mapped_column(String, nullable=False)
    version: Mapped[str | None] = mapped_column(String, nullable=True)
    # Job type ids, kept as a list so stale agents can be pruned in one delete
    job_types: Mapped[list[str]] = mapped_column(JSON, default=list)
    last_alive: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class JobType(Base):
    """Capability registry entry; exists while at least one live agent serves it."""
    __tablename__ = "job_types"
    id: Mapped[str] = mapped_column(String, primary_key=True)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    manual_start: Mapped[bool] = mapped_column(Boolean, default=False)
    trigger: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
