from __future__ import annotations

import logging
from typing import Optional

import pytest

import app
from client import Services
from core.feed import FeedRepository
from core.store import POSTS_KEY, LocalStore


def test_redacting_formatter_masks_secrets() -> None:
    formatter = app._RedactingFormatter(["sk-secret-123"], fmt="%(message)s")
    record = logging.LogRecord("guardianbot", logging.INFO, __file__, 1, "key=%s", ("sk-secret-123",), None)

    assert formatter.format(record) == "key=***"


def test_redaction_values_come_from_env(monkeypatch) -> None:
    monkeypatch.setenv("OPENROUTER_API_KEY", "short")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "much-longer-value")
    config = {"redact": {"enabled": True, "patterns": ["OPENROUTER_API_KEY", "SUPABASE_ANON_KEY", "UNSET_VAR_X"]}}
    monkeypatch.delenv("UNSET_VAR_X", raising=False)

    assert app._collect_redaction_values(config) == ["much-longer-value", "short"]
    assert app._collect_redaction_values({"redact": {"enabled": False}}) == []


def test_parser_subcommands() -> None:
    parser = app._build_parser()

    args = parser.parse_args(["donate", "abc123", "25"])
    assert (args.command, args.post_id, args.amount) == ("donate", "abc123", 25.0)

    args = parser.parse_args(["issues", "--status", "pending", "--days", "7"])
    assert (args.status, args.type, args.days) == ("pending", "all", 7)

    assert parser.parse_args([]).command is None


class FakeKeyValue:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def get_value(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set_value(self, key: str, value: str) -> None:
        self.values[key] = value


def test_corrupt_feed_prints_error_and_exits(monkeypatch, capsys) -> None:
    kv = FakeKeyValue()
    kv.values[POSTS_KEY] = "{not json"
    store = LocalStore(kv)
    services = Services(
        store=store,
        feed=FeedRepository(store),
        issues=None,
        responder=None,
        assistant_name="GuardianBot",
        greeting="Hello!",
    )
    monkeypatch.setattr(app, "_configure_logging", lambda: None)
    monkeypatch.setattr(app, "build_services", lambda: services)

    with pytest.raises(SystemExit) as excinfo:
        app.main(["feed"])

    assert excinfo.value.code == 1
    assert capsys.readouterr().err.startswith("error: Stored value for 'community_posts'")
