"""The system user that maintenance writes are attributed to."""
from __future__ import annotations

import threading
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobagent.models.registry import ModelRegistry
from jobagent.utils import get_logger

logger = get_logger(__name__)

SYSTEM_ACCOUNT = "system"

class SystemIdentity:
    def __init__(self, session_factory: Callable[[], Session], models: ModelRegistry) -> None:
        self.session_factory = session_factory
        self.models = models
        self._lock = threading.Lock()
        self._user_id: int | None = None

    def get_system_user_id(self) -> int:
        """Id of the system user, created on first use."""
        with self._lock:
            if self._user_id is None:
                self._user_id = self._ensure_system_user()
            return self._user_id

    def _ensure_system_user(self) -> int:
        User = self.models.User
        session = self.session_factory()
        try:
            existing = session.scalars(select(User.id).where(User.is_system.is_(True)).limit(1)).first()
            if existing is not None:
                return existing
            user = User(account=SYSTEM_ACCOUNT, active=True, is_system=True)
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                # Another agent created it first
                session.rollback()
                return session.scalars(select(User.id).where(User.account == SYSTEM_ACCOUNT)).one()
            logger.info("Created system user", user_id=user.id)
            return user.id
        finally:
            session.close()


__all__ = ["SystemIdentity", "SYSTEM_ACCOUNT"]
