"""Data location switches for users and groups."""
from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Callable, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from jobagent.exceptions import PolicyError
from jobagent.models.registry import ModelRegistry
from jobagent.utils import get_logger, log_business_event, utc_now

logger = get_logger(__name__)


class LocationPolicy(Protocol):
    def set_user_location(self, user_id: int, location: str) -> None: ...
    def set_group_location(self, group_id: int, location: str) -> bool: ...
    def determine_best_location(self, group_id: int) -> str: ...


class DatabaseLocationPolicy:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        models: ModelRegistry,
        *,
        actor_id: Callable[[], int | None] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.session_factory = session_factory
        self.models = models
        self.actor_id = actor_id or (lambda: None)
        self.clock = clock

    def set_user_location(self, user_id: int, location: str) -> None:
        """Apply a pending location and clear the request.

        A request for the current location is only cleared; it is not a switch
        and does not start a new cooldown.
        """
        session = self.session_factory()
        try:
            user = session.get(self.models.User, user_id)
            if user is None:
                raise PolicyError(f"User {user_id} not found")
            previous = user.location
            user.next_location = None
            if previous == location:
                session.commit()
                return
            user.location = location
            user.last_location_switch_at = self.clock()
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
        log_business_event(
            "user_location_switched",
            {"user_id": user_id, "from": previous, "to": location},
            actor_id=self.actor_id(),
        )

    def set_group_location(self, group_id: int, location: str) -> bool:
        """Move the group; returns False when it already is at ``location``."""
        session = self.session_factory()
        try:
            group = session.get(self.models.Group, group_id)
            if group is None:
                raise PolicyError(f"Group {group_id} not found")
            previous = group.location
            if previous == location:
                return False
            group.location = location
            group.last_location_switch_at = self.clock()
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
        log_business_event(
            "group_location_switched",
            {"group_id": group_id, "from": previous, "to": location},
            actor_id=self.actor_id(),
        )
        return True

    def determine_best_location(self, group_id: int) -> str:
        """Most common location among the group's active members.

        Ties go to the alphabetically first location so repeated runs agree.
        """
        User, GroupMember = self.models.User, self.models.GroupMember
        stmt = (
            select(User.location)
            .join(GroupMember, GroupMember.user_id == User.id)
            .where(
                GroupMember.group_id == group_id,
                User.location.is_not(None),
                User.deleted_at.is_(None),
            )
        )
        session = self.session_factory()
        try:
            counts = Counter(session.scalars(stmt).all())
        finally:
            session.close()
        if not counts:
            raise PolicyError(f"Group {group_id} has no members with a location")
        best, _ = min(counts.items(), key=lambda entry: (-entry[1], entry[0]))
        return best


__all__ = ["LocationPolicy", "DatabaseLocationPolicy"]
