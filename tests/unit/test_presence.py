from __future__ import annotations

from datetime import timedelta

from collab_chat.infrastructure.realtime.presence import PresenceTracker
from tests.conftest import T0, make_online_user


def test_upsert_is_last_write_wins():
    tracker = PresenceTracker()

    tracker.upsert(make_online_user("u1"))
    tracker.upsert(make_online_user("u2"))
    tracker.upsert(make_online_user("u1", last_seen=T0 + timedelta(minutes=5)))

    assert len(tracker) == 2
    assert tracker.get("u1").last_seen == T0 + timedelta(minutes=5)
    assert [u.user_id for u in tracker.users] == ["u2", "u1"]


def test_replace_drops_previous_entries():
    tracker = PresenceTracker()
    tracker.upsert(make_online_user("stale"))

    tracker.replace([make_online_user("u1"), make_online_user("u2"), make_online_user("u1")])

    assert "stale" not in tracker
    assert [u.user_id for u in tracker.users] == ["u2", "u1"]


def test_remove_and_is_online():
    tracker = PresenceTracker()
    tracker.upsert(make_online_user("u1"))

    assert tracker.is_online("u1") is True
    assert tracker.remove("u1").user_id == "u1"
    assert tracker.remove("u1") is None
    assert tracker.is_online("u1") is False


def test_users_returns_a_snapshot():
    tracker = PresenceTracker()
    tracker.upsert(make_online_user("u1"))

    snapshot = tracker.users
    tracker.clear()

    assert [u.user_id for u in snapshot] == ["u1"]
    assert len(tracker) == 0
