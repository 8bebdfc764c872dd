"""Per-record processors applied by the fan-out executor.

A processor recomputes a derived field from current global state and the
record's own foreign keys, so applying it twice leaves the same result.
Each ``apply`` opens its own store; records are processed concurrently.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, TYPE_CHECKING

from jobagent.utils import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from jobagent.scheduling.tools import JobTools

logger = get_logger(__name__)


class RecordProcessor(ABC):
    name: str = "processor"

    def describe(self, record: Any) -> str:
        """Identifier used when logging a failure for ``record``."""
        return str(getattr(record, "id", record))

    @abstractmethod
    def apply(self, record: Any) -> None:
        ...

    def __call__(self, record: Any) -> None:
        self.apply(record)


class QuotaAssignmentProcessor(RecordProcessor):
    """Sets an item's quota owner (group or user) from its folder chain.

    Records are rows of ``(id, folder_id, client_id)``. The owner may be None;
    the resolved marker is set either way so the item is not picked up again.
    """

    _FIELDS = {
        "group": ("quota_group_id", "quota_group_resolved_at"),
        "user": ("quota_user_id", "quota_user_resolved_at"),
    }

    def __init__(self, tools: "JobTools", owner: str) -> None:
        if owner not in self._FIELDS:
            raise ValueError(f"Unknown quota owner '{owner}'")
        self.tools = tools
        self.owner = owner
        self.name = f"quota_{owner}"

    def _resolve(self, folder_id: int | None, client_id: int) -> int | None:
        if self.owner == "group":
            return self.tools.quota.get_folder_quota_group(folder_id, client_id)
        return self.tools.quota.get_folder_quota_user(folder_id, client_id)

    def apply(self, record: Any) -> None:
        owner_field, marker_field = self._FIELDS[self.owner]
        owner_id = self._resolve(record.folder_id, record.client_id)
        Item = self.tools.models.Item
        with self.tools.store() as store:
            store.update_many(
                Item,
                [Item.id == record.id],
                {owner_field: owner_id, marker_field: self.tools.now()},
            )
        logger.debug("Quota owner assigned", item_id=record.id, owner=self.owner, owner_id=owner_id)


class ItemStatsProcessor(RecordProcessor):
    """Recounts the messages of an item's conversation into its ItemStat row.

    Records are rows of ``(id, conversation_id)``.
    """

    name = "item_stats"

    def __init__(self, tools: "JobTools") -> None:
        self.tools = tools

    def apply(self, record: Any) -> None:
        models = self.tools.models
        with self.tools.store() as store:
            messages = store.count(
                models.ConversationEntry,
                models.ConversationEntry.conversation_id == record.conversation_id,
            )
            store.upsert(
                models.ItemStat,
                {"item_id": record.id},
                {"message_count": messages, "updated_at": self.tools.now()},
            )


__all__ = ["RecordProcessor", "QuotaAssignmentProcessor", "ItemStatsProcessor"]
