"""Quota ownership derived from an item's folder chain.

Home folders live directly below a client's root folders ``Groups`` and
``Users`` and are named after the owning group or user id:

    Groups/<group id>/.../folder  -> quota group <group id>
    Users/<user id>/.../folder    -> quota user <user id>

Anything else has no quota owner.
"""
from __future__ import annotations

from typing import Callable, Protocol

from sqlalchemy.orm import Session

from jobagent.exceptions import PolicyError
from jobagent.models.registry import ModelRegistry
from jobagent.utils import get_logger

logger = get_logger(__name__)

GROUPS_ROOT = "Groups"
USERS_ROOT = "Users"


class QuotaPolicy(Protocol):
    def get_folder_quota_group(self, folder_id: int | None, client_id: int) -> int | None: ...
    def get_folder_quota_user(self, folder_id: int | None, client_id: int) -> int | None: ...


class FolderQuotaPolicy:
    def __init__(self, session_factory: Callable[[], Session], models: ModelRegistry) -> None:
        self.session_factory = session_factory
        self.models = models

    def folder_chain(self, session: Session, folder_id: int, client_id: int) -> list:
        """Folders from ``folder_id`` up to its root, in that order."""
        Folder = self.models.Folder
        chain = []
        seen: set[int] = set()
        current_id: int | None = folder_id
        while current_id is not None:
            if current_id in seen:
                raise PolicyError(f"Folder {folder_id} has a cyclic parent chain")
            seen.add(current_id)
            folder = session.get(Folder, current_id)
            if folder is None or folder.client_id != client_id:
                raise PolicyError(f"Folder {current_id} not found for client {client_id}")
            chain.append(folder)
            current_id = folder.parent_id
        return chain

    def _owner_below(self, root_name: str, folder_id: int | None, client_id: int) -> int | None:
        if folder_id is None:
            return None
        session = self.session_factory()
        try:
            chain = self.folder_chain(session, folder_id, client_id)
        finally:
            session.close()
        if len(chain) < 2 or chain[-1].name != root_name:
            return None
        home = chain[-2].name
        try:
            return int(home)
        except ValueError:
            raise PolicyError(f"Home folder '{home}' below {root_name} is not named after an id") from None

    def get_folder_quota_group(self, folder_id: int | None, client_id: int) -> int | None:
        return self._owner_below(GROUPS_ROOT, folder_id, client_id)

    def get_folder_quota_user(self, folder_id: int | None, client_id: int) -> int | None:
        return self._owner_below(USERS_ROOT, folder_id, client_id)


__all__ = ["QuotaPolicy", "FolderQuotaPolicy", "GROUPS_ROOT", "USERS_ROOT"]
