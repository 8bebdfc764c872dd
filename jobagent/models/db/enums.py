"""Central Enum definitions for core domain states.

These replace scattered string literals to ensure consistency across
DB models, schemas, jobs and policies.
"""
from __future__ import annotations
import enum


class ItemVisibility(str, enum.Enum):
    DRAFT = "draft"
    PRIVATE = "private"
    PUBLIC = "public"


class PurchaseInterval(str, enum.Enum):
    ONCE = "once"
    MONTHLY = "monthly"
    YEARLY = "yearly"

# ------------------------------ Job runtime ------------------------------ #

class JobRunState(str, enum.Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class JobOrigin(str, enum.Enum):
    SCHEDULE = "schedule"
    MANUAL = "manual"

__all__ = [
    "ItemVisibility",
    "PurchaseInterval",
    "JobRunState",
    "JobOrigin",
]
