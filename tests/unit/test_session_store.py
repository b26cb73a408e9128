import sys
from datetime import datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import pytest

from managers.notification_center import NotificationCenter
from managers.session_store import SessionStore
from models import UserProfile, UserRole


@pytest.fixture
def store(console_config):
    console_config.session.ttl_seconds = 60
    console_config.session.max_notifications = 3
    return SessionStore(console_config)


def _user(email="ada@example.com"):
    return UserProfile(id="u1", email=email, role=UserRole.EMPLOYEE)


def _age(context, seconds):
    context.last_seen = datetime.utcnow() - timedelta(seconds=seconds)


def test_live_session_is_returned_and_touched(store):
    context = store.init_session("tok", _user())
    _age(context, 30)

    assert store.get(context.session_id) is context
    assert datetime.utcnow() - context.last_seen < timedelta(seconds=5)


def test_idle_session_expires_on_lookup(store):
    context = store.init_session("tok", _user())
    _age(context, 120)

    assert store.get(context.session_id) is None
    assert len(store) == 0


def test_unknown_or_blank_ids_have_no_session(store):
    assert store.get(None) is None
    assert store.get("") is None
    assert store.get("missing") is None


def test_purge_expired_drops_only_idle_sessions(store):
    idle = store.init_session("t1", _user("idle@example.com"))
    active = store.init_session("t2", _user("active@example.com"))
    _age(idle, 120)

    assert store.purge_expired() == 1
    assert store.get(idle.session_id) is None
    assert store.get(active.session_id) is active
    assert store.purge_expired() == 0


def test_session_notifications_are_bounded_by_config(store):
    context = store.init_session("tok", _user())
    for i in range(5):
        context.notifications.info(f"message {i}")

    assert [n['message'] for n in context.notifications.drain()] == ["message 2", "message 3", "message 4"]
    assert len(context.notifications) == 0


def test_notification_center_keeps_newest_items():
    center = NotificationCenter(max_items=2)
    center.success("saved")
    center.error("failed")
    center.warning("careful")

    assert [(n.level.value, n.message) for n in center.peek()] == [("error", "failed"), ("warning", "careful")]


def test_notification_center_holds_at_least_one_item():
    center = NotificationCenter(max_items=0)
    center.info("first")
    center.info("second")

    assert [n['message'] for n in center.drain()] == ["second"]
