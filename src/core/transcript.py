"""Chat transcript manager.

This module is UI-agnostic. It only relies on ports for persistence, reply
generation and error reporting, so the terminal UI and the console chat share
exactly the same turn handling.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from core.errors import RemoteCompletionUnavailable
from core.models import ChatMessage, Role
from core.ports import ErrorSinkPort, ResponderPort
from core.store import LocalStore, utc_now

LOGGER = logging.getLogger(__name__)

REMOTE_FAILURE_MESSAGE = "Failed to get response. Please try again."


class TranscriptState(str, Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"


class ChatTranscript:
    """Owns one session's ordered message log and its submit cycle."""

    def __init__(
        self,
        store: LocalStore,
        responder: ResponderPort,
        errors: ErrorSinkPort,
        greeting: str,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._responder = responder
        self._errors = errors
        self._greeting = greeting
        self._clock = clock
        self._messages: list[ChatMessage] = []
        self._state = TranscriptState.IDLE
        self._lock = asyncio.Lock()

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def state(self) -> TranscriptState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state is TranscriptState.AWAITING_RESPONSE

    def open(self) -> list[ChatMessage]:
        """Load the saved transcript, seeding the greeting for a new session."""

        saved = self._store.get_chat_messages()
        if not saved:
            greeting = ChatMessage(role=Role.ASSISTANT, content=self._greeting, created_at=self._clock())
            self._store.save_chat_message(greeting)
            saved = [greeting]
        self._messages = saved
        return self.messages

    def _append(self, role: Role, content: str) -> ChatMessage:
        message = ChatMessage(role=role, content=content, created_at=self._clock())
        # Persist first: a storage error must leave the in-memory log untouched.
        self._store.save_chat_message(message)
        self._messages.append(message)
        return message

    async def submit(self, user_text: str) -> Optional[ChatMessage]:
        """Run one user turn and return the assistant reply, if any.

        Blank input is ignored. A failed remote reply signals the error sink
        once and returns None; the user's turn stays persisted.
        """

        if not user_text or not user_text.strip():
            return None

        # Submissions for one transcript never interleave.
        async with self._lock:
            self._append(Role.USER, user_text)
            self._state = TranscriptState.AWAITING_RESPONSE
            try:
                reply_text = await self._responder.reply(self.messages)
                return self._append(Role.ASSISTANT, reply_text)
            except RemoteCompletionUnavailable as exc:
                LOGGER.warning("Assistant reply failed: %s", exc)
                self._errors.error(REMOTE_FAILURE_MESSAGE)
                return None
            finally:
                self._state = TranscriptState.IDLE
