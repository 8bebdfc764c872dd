"""Record store: the small set of bulk operations jobs perform on the database.

Every write commits on its own so a job that fails halfway keeps what it
already did; the next run picks up the rest. Criteria are plain SQLAlchemy
boolean expressions.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobagent.utils import get_logger

logger = get_logger(__name__)


class RecordStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find(self, model: type, *criteria: Any, columns: Sequence[Any] | None = None) -> list[Any]:
        """Return matching records.

        With ``columns`` the result is a list of Row tuples holding only those
        columns; otherwise it is a list of ORM instances.
        """
        if columns:
            stmt = select(*columns).where(*criteria)
            return list(self.session.execute(stmt).all())
        stmt = select(model).where(*criteria)
        return list(self.session.scalars(stmt).all())

    def count(self, model: type, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(model).where(*criteria)
        return int(self.session.execute(stmt).scalar_one())

    def update_many(self, model: type, criteria: Iterable[Any], values: Mapping[str, Any]) -> int:
        stmt = (
            update(model)
            .where(*criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return int(result.rowcount or 0)

    def delete_many(self, model: type, *criteria: Any) -> int:
        stmt = delete(model).where(*criteria).execution_options(synchronize_session=False)
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return int(result.rowcount or 0)

    def upsert(self, model: type, key: Mapping[str, Any], values: Mapping[str, Any]) -> bool:
        """Update the record identified by ``key`` or insert it.

        Returns True when a new record was inserted. A concurrent insert of the
        same key surfaces as an IntegrityError and is turned into an update.
        """
        criteria = [getattr(model, name) == value for name, value in key.items()]
        if self.update_many(model, criteria, values):
            return False
        try:
            self.session.add(model(**key, **values))
            self.session.commit()
            return True
        except IntegrityError:
            self.session.rollback()
            logger.debug("Upsert raced with concurrent insert, updating", model=model.__name__, key=dict(key))
            self.update_many(model, criteria, values)
            return False


__all__ = ["RecordStore"]
