from __future__ import annotations

from datetime import datetime, timedelta, timezone

from adapters.sqlite_storage import SQLiteStorage
from core.feed import FeedRepository
from core.models import IssueStatus, Location, NewIssue
from core.store import LocalStore


def _storage(tmp_path) -> SQLiteStorage:
    storage = SQLiteStorage(str(tmp_path / "guardianbot.db"))
    storage.init_db()
    return storage


def test_key_value_upsert(tmp_path) -> None:
    storage = _storage(tmp_path)

    assert storage.get_value("chat_messages") is None
    storage.set_value("chat_messages", "[]")
    storage.set_value("chat_messages", '[{"x": 1}]')

    assert storage.get_value("chat_messages") == '[{"x": 1}]'


def test_feed_survives_reopen(tmp_path) -> None:
    feed = FeedRepository(LocalStore(_storage(tmp_path)))
    post = feed.create_post("Water main burst", "#water", donation_goal=500)
    feed.donate(post.id, 40)

    reopened = FeedRepository(LocalStore(_storage(tmp_path)))

    posts = reopened.list_posts()
    assert [p.id for p in posts] == [post.id]
    assert posts[0].donation_current == 40


def test_issue_insert_select_update(tmp_path) -> None:
    storage = _storage(tmp_path)
    flood = storage.insert_issue(
        NewIssue(
            type="Flood",
            description="Knee-deep water",
            location=Location(12.97, 77.59),
            reporter_name="Asha",
            reporter_phone="+911234567890",
        )
    )
    storage.insert_issue(NewIssue(type="Road Damage", description="Pothole", location=Location(1.0, 2.0)))

    assert flood.status is IssueStatus.PENDING
    assert flood.location == Location(12.97, 77.59)
    assert len(storage.select_issues()) == 2
    assert [i.id for i in storage.select_issues(issue_type="Flood")] == [flood.id]

    updated = storage.update_issue_status(flood.id, IssueStatus.VERIFIED)

    assert updated is not None
    assert updated.status is IssueStatus.VERIFIED
    assert [i.id for i in storage.select_issues(status=IssueStatus.VERIFIED)] == [flood.id]
    assert storage.select_issues(status=IssueStatus.RESOLVED) == []


def test_issue_date_filter(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.insert_issue(NewIssue(type="Flood", description="now", location=Location(0, 0)))

    future = datetime.now(timezone.utc) + timedelta(days=1)
    past = datetime.now(timezone.utc) - timedelta(days=1)

    assert storage.select_issues(created_since=future) == []
    assert len(storage.select_issues(created_since=past)) == 1


def test_update_unknown_issue_returns_none(tmp_path) -> None:
    storage = _storage(tmp_path)

    assert storage.update_issue_status("missing", IssueStatus.RESOLVED) is None
