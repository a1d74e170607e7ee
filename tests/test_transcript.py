from __future__ import annotations

import asyncio
import http.client
import io
import urllib.error
import urllib.request
from datetime import datetime, timezone
from typing import Optional, Sequence

import pytest

from adapters.openrouter_client import OpenRouterCompletionClient
from core.config import CompletionConfig
from core.errors import RemoteCompletionUnavailable
from core.models import ChatMessage, Role
from core.responder import RemoteResponder
from core.store import LocalStore
from core.transcript import REMOTE_FAILURE_MESSAGE, ChatTranscript, TranscriptState

GREETING = "Hello! How can I help?"


class FakeKeyValue:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def get_value(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set_value(self, key: str, value: str) -> None:
        self.values[key] = value


class FailingKeyValue(FakeKeyValue):
    def __init__(self) -> None:
        super().__init__()
        self.fail = False

    def set_value(self, key: str, value: str) -> None:
        if self.fail:
            raise OSError("disk full")
        super().set_value(key, value)


class EchoResponder:
    def __init__(self) -> None:
        self.seen: list[list[ChatMessage]] = []

    async def reply(self, transcript: Sequence[ChatMessage]) -> str:
        self.seen.append(list(transcript))
        return f"echo: {transcript[-1].content}"


class FailingResponder:
    async def reply(self, transcript: Sequence[ChatMessage]) -> str:
        raise RemoteCompletionUnavailable("rate_limited", "HTTP 429")


class FakeErrorSink:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def error(self, message: str) -> None:
        self.messages.append(message)


def _transcript(kv, responder, errors) -> ChatTranscript:
    return ChatTranscript(
        LocalStore(kv),
        responder,
        errors,
        greeting=GREETING,
        clock=lambda: datetime(2025, 1, 1, tzinfo=timezone.utc),
    )


def test_open_seeds_greeting_once() -> None:
    kv = FakeKeyValue()
    transcript = _transcript(kv, EchoResponder(), FakeErrorSink())

    messages = transcript.open()
    reopened = _transcript(kv, EchoResponder(), FakeErrorSink()).open()

    assert [(m.role, m.content) for m in messages] == [(Role.ASSISTANT, GREETING)]
    assert reopened == messages


def test_blank_submit_is_ignored() -> None:
    kv = FakeKeyValue()
    responder = EchoResponder()
    transcript = _transcript(kv, responder, FakeErrorSink())
    transcript.open()

    assert asyncio.run(transcript.submit("   ")) is None
    assert asyncio.run(transcript.submit("")) is None

    assert len(transcript.messages) == 1
    assert responder.seen == []
    assert transcript.state is TranscriptState.IDLE


def test_submit_persists_user_then_assistant() -> None:
    kv = FakeKeyValue()
    responder = EchoResponder()
    transcript = _transcript(kv, responder, FakeErrorSink())
    transcript.open()

    reply = asyncio.run(transcript.submit("is the bridge open?"))

    assert reply is not None
    assert reply.role is Role.ASSISTANT
    assert reply.content == "echo: is the bridge open?"
    # The responder sees the full log ending with the user's turn.
    assert responder.seen[0][-1].content == "is the bridge open?"
    saved = LocalStore(kv).get_chat_messages()
    assert [m.role for m in saved] == [Role.ASSISTANT, Role.USER, Role.ASSISTANT]
    assert saved == transcript.messages
    assert transcript.state is TranscriptState.IDLE


def test_remote_failure_keeps_user_turn_and_signals_once() -> None:
    kv = FakeKeyValue()
    errors = FakeErrorSink()
    transcript = _transcript(kv, FailingResponder(), errors)
    transcript.open()

    reply = asyncio.run(transcript.submit("help, there is smoke"))

    assert reply is None
    assert errors.messages == [REMOTE_FAILURE_MESSAGE]
    saved = LocalStore(kv).get_chat_messages()
    assert [m.role for m in saved] == [Role.ASSISTANT, Role.USER]
    assert saved[-1].content == "help, there is smoke"
    assert not transcript.busy


def test_storage_failure_propagates_without_touching_log() -> None:
    kv = FailingKeyValue()
    transcript = _transcript(kv, EchoResponder(), FakeErrorSink())
    transcript.open()
    kv.fail = True

    with pytest.raises(OSError):
        asyncio.run(transcript.submit("hello"))

    assert len(transcript.messages) == 1
    assert transcript.state is TranscriptState.IDLE


def test_concurrent_submits_do_not_interleave() -> None:
    kv = FakeKeyValue()

    class SlowResponder:
        async def reply(self, transcript: Sequence[ChatMessage]) -> str:
            await asyncio.sleep(0.01)
            return f"re: {transcript[-1].content}"

    transcript = _transcript(kv, SlowResponder(), FakeErrorSink())
    transcript.open()

    async def _both() -> None:
        await asyncio.gather(transcript.submit("first"), transcript.submit("second"))

    asyncio.run(_both())

    contents = [m.content for m in transcript.messages[1:]]
    assert contents == ["first", "re: first", "second", "re: second"]


def test_server_error_through_completion_client(monkeypatch) -> None:
    config = CompletionConfig(
        endpoint="https://example.test/api/v1/chat/completions",
        model="mistralai/mistral-7b-instruct",
        temperature=0.7,
        max_tokens=1000,
        timeout_seconds=5,
    )
    requests = []

    def fake_urlopen(request, timeout):
        requests.append(request)
        raise urllib.error.HTTPError(config.endpoint, 500, "server error", {}, io.BytesIO(b"upstream down"))

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    kv = FakeKeyValue()
    errors = FakeErrorSink()
    client = OpenRouterCompletionClient(config, lambda: "sk-test")
    transcript = _transcript(kv, RemoteResponder(client, "be brief"), errors)
    transcript.open()

    reply = asyncio.run(transcript.submit("there is a fire on 3rd street"))

    assert reply is None
    assert len(requests) == 1
    assert errors.messages == [REMOTE_FAILURE_MESSAGE]
    saved = LocalStore(kv).get_chat_messages()
    assert [(m.role, m.content) for m in saved] == [
        (Role.ASSISTANT, GREETING),
        (Role.USER, "there is a fire on 3rd street"),
    ]
    assert transcript.state is TranscriptState.IDLE


def test_truncated_reply_body_signals_error_sink(monkeypatch) -> None:
    class TruncatedResponse:
        def read(self) -> bytes:
            raise http.client.IncompleteRead(b"{\"cho", 100)

        def __enter__(self):
            return self

        def __exit__(self, *exc) -> None:
            return None

    config = CompletionConfig(
        endpoint="https://example.test/api/v1/chat/completions",
        model="mistralai/mistral-7b-instruct",
        temperature=0.7,
        max_tokens=1000,
        timeout_seconds=5,
    )
    monkeypatch.setattr(urllib.request, "urlopen", lambda request, timeout: TruncatedResponse())
    kv = FakeKeyValue()
    errors = FakeErrorSink()
    client = OpenRouterCompletionClient(config, lambda: "sk-test")
    transcript = _transcript(kv, RemoteResponder(client, "be brief"), errors)
    transcript.open()

    reply = asyncio.run(transcript.submit("fire"))

    assert reply is None
    assert errors.messages == [REMOTE_FAILURE_MESSAGE]
    assert LocalStore(kv).get_chat_messages()[-1].content == "fire"
