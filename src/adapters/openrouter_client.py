"""Chat-completion adapter for OpenRouter-compatible endpoints.

Implements the core CompletionPort. Every failure leaves this module as
RemoteCompletionUnavailable so the transcript manager has one thing to catch.
"""

from __future__ import annotations

import asyncio
import http.client
import json
import logging
import urllib.error
import urllib.request
from typing import Any, Callable, Optional, Sequence

from core.config import CompletionConfig
from core.errors import RemoteCompletionUnavailable

LOGGER = logging.getLogger(__name__)


def build_payload(config: CompletionConfig, history: Sequence[dict[str, str]]) -> dict[str, Any]:
    """Return the JSON body for one completion request."""

    return {
        "model": config.model,
        "messages": [{"role": item["role"], "content": item["content"]} for item in history],
        "temperature": config.temperature,
        "max_tokens": config.max_tokens,
    }


def extract_reply(body: Any) -> str:
    """Read choices[0].message.content or raise RemoteCompletionUnavailable."""

    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise RemoteCompletionUnavailable("malformed", "missing choices[0].message.content") from exc
    if not isinstance(content, str) or not content.strip():
        raise RemoteCompletionUnavailable("malformed", "empty completion content")
    return content


def _classify_http_error(code: int) -> str:
    if code in (401, 403):
        return "auth"
    if code == 429:
        return "rate_limited"
    return "http"


class OpenRouterCompletionClient:
    """CompletionPort adapter that posts to a chat-completions endpoint."""

    def __init__(self, config: CompletionConfig, api_key_provider: Callable[[], Optional[str]]) -> None:
        self._config = config
        # Resolved on every call; the credential is never cached here.
        self._api_key_provider = api_key_provider

    def _build_request(self, payload: dict[str, Any], api_key: str) -> urllib.request.Request:
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._config.endpoint, data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        request.add_header("Authorization", f"Bearer {api_key}")
        if self._config.referer:
            request.add_header("HTTP-Referer", self._config.referer)
        return request

    def _post(self, payload: dict[str, Any]) -> str:
        api_key = self._api_key_provider()
        if not api_key:
            raise RemoteCompletionUnavailable("config", f"{self._config.api_key_env} is not set")

        try:
            request = self._build_request(payload, api_key)
            with urllib.request.urlopen(request, timeout=self._config.timeout_seconds) as response:
                raw = response.read()
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise RemoteCompletionUnavailable(_classify_http_error(e.code), f"HTTP {e.code}: {body[:200]}") from e
        except urllib.error.URLError as e:
            kind = "timeout" if isinstance(e.reason, TimeoutError) else "network"
            raise RemoteCompletionUnavailable(kind, str(e.reason)) from e
        except TimeoutError as e:
            raise RemoteCompletionUnavailable("timeout", str(e)) from e
        except OSError as e:
            raise RemoteCompletionUnavailable("network", str(e)) from e
        except http.client.HTTPException as e:
            # IncompleteRead, BadStatusLine and friends are not OSErrors.
            raise RemoteCompletionUnavailable("network", f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            # urllib rejects unknown URL schemes with ValueError.
            raise RemoteCompletionUnavailable("config", f"bad endpoint {self._config.endpoint!r}: {e}") from e

        try:
            body = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RemoteCompletionUnavailable("malformed", "response is not JSON") from e
        return extract_reply(body)

    async def complete(self, history: Sequence[dict[str, str]]) -> str:
        """Send the history and return the reply text."""

        payload = build_payload(self._config, history)
        LOGGER.debug("Requesting completion from %s (%s messages)", self._config.model, len(history))
        # The blocking request runs off the event loop so the UI stays responsive.
        # The socket timeout bounds each read; wait_for bounds the whole call.
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._post, payload),
                timeout=self._config.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise RemoteCompletionUnavailable(
                "timeout", f"no reply within {self._config.timeout_seconds}s"
            ) from e
