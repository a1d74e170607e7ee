from __future__ import annotations

import asyncio
import dataclasses
import http.client
import io
import json
import threading
import time
import urllib.error
import urllib.request

import pytest

from adapters.openrouter_client import OpenRouterCompletionClient, build_payload, extract_reply
from core.config import CompletionConfig
from core.errors import RemoteCompletionUnavailable

CONFIG = CompletionConfig(
    endpoint="https://example.test/api/v1/chat/completions",
    model="mistralai/mistral-7b-instruct",
    temperature=0.7,
    max_tokens=1000,
    timeout_seconds=5,
    referer="https://guardianbot.test",
)
HISTORY = [
    {"role": "system", "content": "be brief"},
    {"role": "user", "content": "is there a fire?"},
]


class FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc) -> None:
        return None


def _client(key: str | None = "sk-test") -> OpenRouterCompletionClient:
    return OpenRouterCompletionClient(CONFIG, lambda: key)


def _http_error(code: int) -> urllib.error.HTTPError:
    return urllib.error.HTTPError(CONFIG.endpoint, code, "error", {}, io.BytesIO(b'{"error": "nope"}'))


def test_build_payload_shape() -> None:
    payload = build_payload(CONFIG, HISTORY)

    assert payload == {
        "model": "mistralai/mistral-7b-instruct",
        "messages": HISTORY,
        "temperature": 0.7,
        "max_tokens": 1000,
    }


def test_complete_sends_request_and_reads_reply(monkeypatch) -> None:
    captured = {}

    def fake_urlopen(request, timeout):
        captured["request"] = request
        captured["timeout"] = timeout
        body = {"choices": [{"message": {"role": "assistant", "content": "Move to higher ground."}}]}
        return FakeResponse(json.dumps(body).encode("utf-8"))

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    reply = asyncio.run(_client().complete(HISTORY))

    request = captured["request"]
    assert reply == "Move to higher ground."
    assert captured["timeout"] == 5
    assert request.get_method() == "POST"
    assert request.full_url == CONFIG.endpoint
    assert request.get_header("Authorization") == "Bearer sk-test"
    assert request.get_header("Http-referer") == "https://guardianbot.test"
    assert json.loads(request.data)["messages"] == HISTORY


@pytest.mark.parametrize("code, kind", [(401, "auth"), (403, "auth"), (429, "rate_limited"), (500, "http")])
def test_http_errors_are_classified(monkeypatch, code, kind) -> None:
    def fake_urlopen(request, timeout):
        raise _http_error(code)

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(RemoteCompletionUnavailable) as excinfo:
        asyncio.run(_client().complete(HISTORY))

    assert excinfo.value.kind == kind


def test_network_and_timeout_errors(monkeypatch) -> None:
    def refused(request, timeout):
        raise urllib.error.URLError(ConnectionRefusedError("refused"))

    def slow(request, timeout):
        raise TimeoutError("timed out")

    monkeypatch.setattr(urllib.request, "urlopen", refused)
    with pytest.raises(RemoteCompletionUnavailable) as excinfo:
        asyncio.run(_client().complete(HISTORY))
    assert excinfo.value.kind == "network"

    monkeypatch.setattr(urllib.request, "urlopen", slow)
    with pytest.raises(RemoteCompletionUnavailable) as excinfo:
        asyncio.run(_client().complete(HISTORY))
    assert excinfo.value.kind == "timeout"


@pytest.mark.parametrize("body", [b"not json", b"{}", b'{"choices": []}', b'{"choices": [{"message": {"content": ""}}]}'])
def test_malformed_bodies(monkeypatch, body) -> None:
    monkeypatch.setattr(urllib.request, "urlopen", lambda request, timeout: FakeResponse(body))

    with pytest.raises(RemoteCompletionUnavailable) as excinfo:
        asyncio.run(_client().complete(HISTORY))

    assert excinfo.value.kind == "malformed"


def test_missing_key_fails_without_request(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(urllib.request, "urlopen", lambda request, timeout: calls.append(request))

    with pytest.raises(RemoteCompletionUnavailable) as excinfo:
        asyncio.run(_client(key=None).complete(HISTORY))

    assert excinfo.value.kind == "config"
    assert calls == []


def test_key_is_resolved_per_call(monkeypatch) -> None:
    keys = iter(["first", "second"])
    seen = []

    def fake_urlopen(request, timeout):
        seen.append(request.get_header("Authorization"))
        return FakeResponse(b'{"choices": [{"message": {"content": "ok"}}]}')

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    client = OpenRouterCompletionClient(CONFIG, lambda: next(keys))

    asyncio.run(client.complete(HISTORY))
    asyncio.run(client.complete(HISTORY))

    assert seen == ["Bearer first", "Bearer second"]


def test_extract_reply_reads_first_choice() -> None:
    body = {"choices": [{"message": {"content": "one"}}, {"message": {"content": "two"}}]}

    assert extract_reply(body) == "one"


class TruncatedResponse(FakeResponse):
    def read(self) -> bytes:
        raise http.client.IncompleteRead(b"partia", 100)


def test_truncated_body_is_a_network_failure(monkeypatch) -> None:
    monkeypatch.setattr(urllib.request, "urlopen", lambda request, timeout: TruncatedResponse(b""))

    with pytest.raises(RemoteCompletionUnavailable) as excinfo:
        asyncio.run(_client().complete(HISTORY))

    assert excinfo.value.kind == "network"


def test_garbage_status_line_is_a_network_failure(monkeypatch) -> None:
    def fake_urlopen(request, timeout):
        raise http.client.BadStatusLine("garbage")

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(RemoteCompletionUnavailable) as excinfo:
        asyncio.run(_client().complete(HISTORY))

    assert excinfo.value.kind == "network"


def test_unusable_endpoint_is_a_config_failure(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(urllib.request, "urlopen", lambda request, timeout: calls.append(request))
    client = OpenRouterCompletionClient(dataclasses.replace(CONFIG, endpoint="openrouter.ai/chat"), lambda: "sk-test")

    with pytest.raises(RemoteCompletionUnavailable) as excinfo:
        asyncio.run(client.complete(HISTORY))

    assert excinfo.value.kind == "config"
    assert calls == []


def test_stuck_request_is_cut_off_by_timeout(monkeypatch) -> None:
    release = threading.Event()

    def stuck_urlopen(request, timeout):
        release.wait(5)
        return FakeResponse(b'{"choices": [{"message": {"content": "late"}}]}')

    monkeypatch.setattr(urllib.request, "urlopen", stuck_urlopen)
    client = OpenRouterCompletionClient(dataclasses.replace(CONFIG, timeout_seconds=0.2), lambda: "sk-test")

    async def _call() -> tuple[str, float]:
        started = time.monotonic()
        try:
            await client.complete(HISTORY)
        except RemoteCompletionUnavailable as exc:
            return exc.kind, time.monotonic() - started
        finally:
            # Let the worker thread finish so the loop can shut down.
            release.set()
        return "ok", time.monotonic() - started

    kind, elapsed = asyncio.run(_call())

    assert kind == "timeout"
    assert elapsed < 2
