from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import MessageNotFound
from app.db.session import SessionLocal
from app.models.message import Message
from app.schemas.message import NotificationPayload
from app.services.history import HISTORY_LIMIT, HistoryService
from app.services.topics import TopicService


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


def test_history_is_newest_first_and_limited(db):
    history = HistoryService()
    for i in range(HISTORY_LIMIT + 5):
        history.save(db, "alerts", NotificationPayload(title="t", message=f"msg {i}"))
    history.save(db, "other", NotificationPayload(title="t", message="elsewhere"))

    messages = history.list_by_topic(db, "alerts")

    assert len(messages) == HISTORY_LIMIT
    assert messages[0].message == f"msg {HISTORY_LIMIT + 4}"
    assert all(m.topic == "alerts" for m in messages)


def test_delete_message_checks_topic(db):
    history = HistoryService()
    msg = history.save(db, "alerts", NotificationPayload(title="t", message="hi"))

    with pytest.raises(MessageNotFound, match="does not belong"):
        history.delete_message(db, "other", msg.id)
    with pytest.raises(MessageNotFound, match="not found"):
        history.delete_message(db, "alerts", msg.id + 100)

    history.delete_message(db, "alerts", msg.id)
    assert history.count(db) == 0


def test_clear_only_affects_topic(db):
    history = HistoryService()
    history.save(db, "alerts", NotificationPayload(title="t", message="a"))
    history.save(db, "other", NotificationPayload(title="t", message="b"))

    assert history.clear(db, "alerts") == 1
    assert history.count(db) == 1


def test_delete_older_than(db):
    history = HistoryService()
    db.add(Message(topic="alerts", title="t", message="old", created_at=datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=10)))
    db.commit()
    history.save(db, "alerts", NotificationPayload(title="t", message="fresh"))

    assert history.delete_older_than(db, 7) == 1
    assert [m.message for m in history.list_by_topic(db, "alerts")] == ["fresh"]


def test_topic_protection_lifecycle(db):
    topics = TopicService()
    assert topics.verify_secret(db, "alerts", "")

    topics.protect(db, "alerts", "first-secret")
    assert topics.is_protected(db, "alerts")
    assert topics.verify_secret(db, "alerts", "first-secret")
    assert not topics.verify_secret(db, "alerts", "")
    assert not topics.verify_secret(db, "alerts", "wrong-secret")

    topics.protect(db, "alerts", "second-secret")
    assert not topics.verify_secret(db, "alerts", "first-secret")
    assert topics.verify_secret(db, "alerts", "second-secret")

    topics.unprotect(db, "alerts")
    assert not topics.is_protected(db, "alerts")


def test_list_and_delete_topic(db, store):
    store.upsert("alerts", "https://fcm.googleapis.com/fcm/send/1", "k", "a")
    store.upsert("alerts", "https://fcm.googleapis.com/fcm/send/2", "k", "a")
    store.upsert("deploys", "https://fcm.googleapis.com/fcm/send/1", "k", "a")
    HistoryService().save(db, "alerts", NotificationPayload(title="t", message="hi"))
    topics = TopicService()
    topics.protect(db, "alerts", "first-secret")

    listed = {t.name: t for t in topics.list_topics(db)}

    assert set(listed) == {"alerts", "deploys"}
    assert listed["alerts"].subscription_count == 2
    assert listed["alerts"].message_count == 1
    assert listed["alerts"].is_protected
    assert not listed["deploys"].is_protected

    topics.delete_topic(db, "alerts")

    assert store.count_by_topic("alerts") == 0
    assert store.count_by_topic("deploys") == 1
    assert HistoryService().count(db) == 0
    assert not topics.is_protected(db, "alerts")
