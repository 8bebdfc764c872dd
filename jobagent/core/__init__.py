"""Reusable reconciliation building blocks shared by every maintenance job."""
from .store import RecordStore
from .threshold import ThresholdQuery
from .processors import RecordProcessor, QuotaAssignmentProcessor, ItemStatsProcessor
from .fanout import FanOutExecutor, FanOutResult, FanOutFailure
from .reconciler import ReferenceReconciler, ReconcileResult
from .recency import RecencyGate, GraceRecencyGate

__all__ = [
    "RecordStore",
    "ThresholdQuery",
    "RecordProcessor",
    "QuotaAssignmentProcessor",
    "ItemStatsProcessor",
    "FanOutExecutor",
    "FanOutResult",
    "FanOutFailure",
    "ReferenceReconciler",
    "ReconcileResult",
    "RecencyGate",
    "GraceRecencyGate",
]
