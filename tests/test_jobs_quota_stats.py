from datetime import timedelta

from jobagent.models.db import Conversation, ConversationEntry, Item, ItemStat
from jobagent.models.db.enums import JobRunState

from conftest import NOW


def test_quota_jobs_resolve_only_unresolved_live_items(runner, folder_factory, item_factory, db_session):
    groups = folder_factory("Groups")
    users = folder_factory("Users")
    group_home = folder_factory("12", parent=groups)
    user_home = folder_factory("34", parent=users)
    in_group = item_factory(folder_id=group_home.id)
    in_user = item_factory(folder_id=user_home.id)
    resolved = item_factory(folder_id=group_home.id, quota_group_id=99, quota_group_resolved_at=NOW - timedelta(days=1))
    deleted = item_factory(folder_id=group_home.id, deleted_at=NOW)

    assert runner.run("Set item quota group").state == JobRunState.SUCCEEDED
    assert runner.run("Set item quota user").state == JobRunState.SUCCEEDED

    db_session.expire_all()
    assert db_session.get(Item, in_group.id).quota_group_id == 12
    assert db_session.get(Item, in_group.id).quota_user_id is None
    assert db_session.get(Item, in_user.id).quota_user_id == 34
    assert db_session.get(Item, in_user.id).quota_group_id is None
    assert db_session.get(Item, resolved.id).quota_group_id == 99
    assert db_session.get(Item, deleted.id).quota_group_resolved_at is None


def test_badly_named_home_folder_fails_only_that_item(runner, folder_factory, item_factory, db_session):
    groups = folder_factory("Groups")
    bad_home = folder_factory("not-an-id", parent=groups)
    good_home = folder_factory("3", parent=groups)
    bad = item_factory(folder_id=bad_home.id)
    good = item_factory(folder_id=good_home.id)

    summary = runner.run("Set item quota group")

    assert summary.succeeded
    db_session.expire_all()
    assert db_session.get(Item, bad.id).quota_group_resolved_at is None
    assert db_session.get(Item, good.id).quota_group_id == 3


def test_update_item_stats_job(runner, make, tenant, item_factory, db_session):
    busy = make(Conversation, client_id=tenant.id)
    quiet = make(Conversation, client_id=tenant.id)
    for i in range(5):
        make(ConversationEntry, conversation_id=busy.id, text=f"m{i}")
    a = item_factory(conversation_id=busy.id)
    b = item_factory(conversation_id=quiet.id)
    item_factory()
    item_factory(conversation_id=busy.id, deleted_at=NOW)

    runner.run("Update item stats")
    runner.run("Update item stats")

    counts = {s.item_id: s.message_count for s in db_session.query(ItemStat).all()}
    assert counts == {a.id: 5, b.id: 0}
