from datetime import timedelta

from jobagent.jobs import (
    cleanup_email_tokens,
    cleanup_jobs_and_agents,
    deleted_folders_cleanup,
    deleted_groups_cleanup,
    deleted_items_cleanup,
    deleted_users_cleanup,
    inactive_users_cleanup,
    item_auto_destruct,
)
from jobagent.models.db import (
    Client, Folder, Group, GroupMember, Item, ItemStat, Job, JobAgent, JobType, Membership, User,
)
from jobagent.utils.time import ensure_utc

from conftest import NOW


def test_cleanup_jobs_and_agents(tools, job_log, make, db_session):
    make(Job, job_type="MJA", display_name="old", created_at=NOW - timedelta(days=2))
    recent = make(Job, job_type="MJA", display_name="recent", created_at=NOW - timedelta(hours=3))
    make(JobType, id="MJA", display_name="a")
    make(JobType, id="MJB", display_name="b")
    make(JobAgent, id="alive", name="a", agent_type="t", job_types=["MJA"], last_alive=NOW - timedelta(minutes=1))
    make(JobAgent, id="dead", name="d", agent_type="t", job_types=["MJB"], last_alive=NOW - timedelta(hours=1))

    cleanup_jobs_and_agents.process(tools, job_log)

    assert [j.id for j in db_session.query(Job).all()] == [recent.id]
    assert [a.id for a in db_session.query(JobAgent).all()] == ["alive"]
    assert [t.id for t in db_session.query(JobType).all()] == ["MJA"]
    assert job_log.lines == ["Deleted 1 job runs", "Deleted 1 stale agents and 1 unused job types"]


def test_cleanup_email_tokens(tools, job_log, user_factory, make, db_session):
    expired = user_factory(
        confirm_email_token="tok", confirm_email_date=NOW - timedelta(days=2), email_to_confirm="new@example.com"
    )
    pending = user_factory(
        confirm_email_token="tok2", confirm_email_date=NOW - timedelta(hours=2), email_to_confirm="other@example.com"
    )
    billing = make(
        Client, name="Billing", confirm_email_token="c", confirm_email_date=NOW - timedelta(days=3),
        email_to_confirm="billing@example.com",
    )

    cleanup_email_tokens.process(tools, job_log)

    db_session.expire_all()
    cleared = db_session.get(User, expired.id)
    assert (cleared.confirm_email_token, cleared.confirm_email_date, cleared.email_to_confirm) == (None, None, None)
    assert db_session.get(User, pending.id).confirm_email_token == "tok2"
    assert db_session.get(Client, billing.id).email_to_confirm is None


def test_inactive_invited_users_are_removed(tools, job_log, user_factory, membership_factory, db_session):
    old = NOW - timedelta(hours=2)
    stale_invite = user_factory(active=False, client_invitation_token="inv", created_at=old)
    membership_factory(stale_invite)
    fresh_invite = user_factory(active=False, client_invitation_token="inv", created_at=NOW - timedelta(minutes=10))
    active = user_factory(active=True, client_invitation_token="inv", created_at=old)
    deactivated = user_factory(active=False, client_invitation_token=None, created_at=old)

    inactive_users_cleanup.process(tools, job_log)

    remaining = {u.id for u in db_session.query(User).all()}
    assert stale_invite.id not in remaining
    assert {fresh_invite.id, active.id, deactivated.id} <= remaining
    assert db_session.query(Membership).filter_by(user_id=stale_invite.id).count() == 0


def test_deleted_items_are_purged_with_stats(tools, job_log, item_factory, make, db_session):
    purged = item_factory(deleted_at=NOW - timedelta(days=2))
    make(ItemStat, item_id=purged.id, message_count=3)
    recently_deleted = item_factory(deleted_at=NOW - timedelta(hours=1))
    live = item_factory()

    deleted_items_cleanup.process(tools, job_log)

    assert {i.id for i in db_session.query(Item).all()} == {recently_deleted.id, live.id}
    assert db_session.query(ItemStat).count() == 0
    assert job_log.lines == ["Deleted 1 of 1 items"]


def test_deleted_folders_are_purged(tools, job_log, folder_factory, db_session):
    folder_factory("old", deleted_at=NOW - timedelta(days=1, seconds=1))
    kept = folder_factory("grace", deleted_at=NOW - timedelta(hours=23))
    live = folder_factory("live")

    deleted_folders_cleanup.process(tools, job_log)

    assert {f.id for f in db_session.query(Folder).all()} == {kept.id, live.id}


def test_deleted_groups_are_purged_with_members(tools, job_log, user_factory, group_factory, db_session):
    alice, bob = user_factory(), user_factory()
    gone = group_factory(members=(alice, bob), deleted_at=NOW - timedelta(hours=1, seconds=1))
    recent = group_factory(members=(alice,), deleted_at=NOW - timedelta(minutes=30))
    live = group_factory(members=(bob,))

    deleted_groups_cleanup.process(tools, job_log)

    assert {g.id for g in db_session.query(Group).all()} == {recent.id, live.id}
    assert {m.group_id for m in db_session.query(GroupMember).all()} == {recent.id, live.id}
    assert db_session.query(User).filter(User.id.in_((alice.id, bob.id))).count() == 2
    assert job_log.lines == ["Deleted 1 of 1 groups"]


def test_deleted_users_without_memberships_are_purged(tools, job_log, user_factory, membership_factory, db_session):
    old = NOW - timedelta(days=2)
    gone = user_factory(deleted_at=old)
    still_member = user_factory(deleted_at=old)
    membership_factory(still_member, removed_at=old)
    recent = user_factory(deleted_at=NOW - timedelta(hours=1))
    system = user_factory(account="sys", is_system=True, deleted_at=old)

    deleted_users_cleanup.process(tools, job_log)

    remaining = {u.id for u in db_session.query(User).all()}
    assert gone.id not in remaining
    assert {still_member.id, recent.id, system.id} <= remaining


def test_item_auto_destruct_is_attributed_to_system_user(tools, job_log, item_factory, db_session):
    expired = item_factory(auto_destruct_at=NOW - timedelta(minutes=1))
    future = item_factory(auto_destruct_at=NOW + timedelta(minutes=1))
    already = item_factory(auto_destruct_at=NOW - timedelta(days=1), deleted_at=NOW - timedelta(hours=5))

    item_auto_destruct.process(tools, job_log)
    item_auto_destruct.process(tools, job_log)

    db_session.expire_all()
    system_id = tools.get_system_user_id()
    destroyed = db_session.get(Item, expired.id)
    assert ensure_utc(destroyed.deleted_at) == NOW
    assert destroyed.deleted_by == system_id
    assert db_session.get(Item, future.id).deleted_at is None
    assert db_session.get(Item, already.id).deleted_by is None
    assert db_session.get(User, system_id).is_system is True
