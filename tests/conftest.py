import secrets
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Ensure project root on sys.path so 'jobagent' resolves without an install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from jobagent.database import Base  # type: ignore
"""Pytest fixtures and factories.

Every test gets its own file-backed SQLite database: fan-out units and job
workers open sessions from other threads, which an in-memory database with a
single shared connection does not handle well.
"""
from jobagent.models.db import (  # noqa: E402  (registers every table on Base.metadata)
    Client, User, Folder, Item, Group, GroupMember, Membership, Purchase,
)
from jobagent.core.fanout import FanOutExecutor  # noqa: E402
from jobagent.jobs import build_registry  # noqa: E402
from jobagent.scheduling.runner import JobRunner  # noqa: E402
from jobagent.scheduling.tools import JobLog  # noqa: E402

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


@pytest.fixture()
def engine(tmp_path):
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'jobagent_test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()

@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture()
def db_session(session_factory):
    session = session_factory(expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()

@pytest.fixture()
def clock():
    return FrozenClock(NOW)

@pytest.fixture()
def registry():
    return build_registry()

@pytest.fixture()
def runner(registry, session_factory, clock):
    return JobRunner(
        registry,
        session_factory=session_factory,
        fanout=FanOutExecutor(max_workers=4),
        clock=clock,
    )

@pytest.fixture()
def tools(runner):
    return runner.build_tools()

@pytest.fixture()
def job_log():
    return JobLog("test job")

# ---------- Data factory helpers ----------

@pytest.fixture()
def make(db_session):
    """Insert one row of ``model`` and return it (committed, refreshed)."""
    def _create(model, **fields):
        obj = model(**fields)
        db_session.add(obj)
        db_session.commit()
        db_session.refresh(obj)
        return obj
    return _create

@pytest.fixture()
def tenant(make):
    return make(Client, name=f"Client {secrets.token_hex(3)}")

@pytest.fixture()
def user_factory(make):
    def _create(**fields):
        fields.setdefault("account", f"user_{secrets.token_hex(4)}")
        fields.setdefault("created_at", NOW - timedelta(days=30))
        return make(User, **fields)
    return _create

@pytest.fixture()
def folder_factory(make, tenant):
    def _create(name: str, parent=None, **fields):
        fields.setdefault("client_id", tenant.id)
        return make(Folder, name=name, parent_id=parent.id if parent is not None else None, **fields)
    return _create

@pytest.fixture()
def item_factory(make, tenant):
    def _create(**fields):
        fields.setdefault("name", f"item-{secrets.token_hex(2)}")
        fields.setdefault("client_id", tenant.id)
        return make(Item, **fields)
    return _create

@pytest.fixture()
def group_factory(make, tenant):
    def _create(*, members=(), **fields):
        fields.setdefault("name", f"group-{secrets.token_hex(2)}")
        fields.setdefault("client_id", tenant.id)
        group = make(Group, **fields)
        for member in members:
            make(GroupMember, group_id=group.id, user_id=member.id)
        return group
    return _create

@pytest.fixture()
def purchase_factory(make, tenant):
    def _create(**fields):
        fields.setdefault("client_id", tenant.id)
        return make(Purchase, **fields)
    return _create

@pytest.fixture()
def membership_factory(make, tenant):
    def _create(user, **fields):
        fields.setdefault("client_id", tenant.id)
        return make(Membership, user_id=user.id, **fields)
    return _create
