"""Name -> ORM class lookup passed to every job through its tools.

Jobs resolve their models through the registry instead of importing them, so
tests (or another deployment) can hand in a different mapping.
"""
from __future__ import annotations

from typing import Iterator, Mapping

from jobagent.database import Base


class ModelRegistry(Mapping[str, type[Base]]):
    def __init__(self, models: Mapping[str, type[Base]] | None = None) -> None:
        self._models: dict[str, type[Base]] = dict(models or {})

    def register(self, name: str, model: type[Base]) -> None:
        self._models[name] = model

    def __getitem__(self, name: str) -> type[Base]:
        try:
            return self._models[name]
        except KeyError:
            raise KeyError(f"Unknown model '{name}'") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)

    def __getattr__(self, name: str) -> type[Base]:
        # Allows tools.models.Item as a shorthand for tools.models["Item"]
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError as e:
            raise AttributeError(str(e)) from None


def default_registry() -> ModelRegistry:
    from jobagent.models import db

    return ModelRegistry({
        "User": db.User,
        "Membership": db.Membership,
        "Client": db.Client,
        "Folder": db.Folder,
        "Item": db.Item,
        "ItemStat": db.ItemStat,
        "Conversation": db.Conversation,
        "ConversationEntry": db.ConversationEntry,
        "Group": db.Group,
        "GroupMember": db.GroupMember,
        "Purchase": db.Purchase,
        "Job": db.Job,
        "JobAgent": db.JobAgent,
        "JobType": db.JobType,
    })


__all__ = ["ModelRegistry", "default_registry"]
