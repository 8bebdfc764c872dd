"""Database-backed policy services the maintenance jobs delegate to."""
from .quota_policy import QuotaPolicy, FolderQuotaPolicy
from .subscription_policy import SubscriptionPolicy, DatabaseSubscriptionPolicy, add_months
from .location_policy import LocationPolicy, DatabaseLocationPolicy
from .identity import SystemIdentity

__all__ = [
    "QuotaPolicy",
    "FolderQuotaPolicy",
    "SubscriptionPolicy",
    "DatabaseSubscriptionPolicy",
    "add_months",
    "LocationPolicy",
    "DatabaseLocationPolicy",
    "SystemIdentity",
]
