"""Ports (interfaces) used by the core services.

Ports define the minimal contracts for storage, completion, issue backend and
error reporting adapters so that the core can be reused with different
backends and front ends.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from core.models import ChatMessage, Issue, IssueStatus, NewIssue


class KeyValuePort(Protocol):
    """Durable key-value medium holding whole JSON documents."""

    def get_value(self, key: str) -> Optional[str]:
        ...

    def set_value(self, key: str, value: str) -> None:
        ...


class CompletionPort(Protocol):
    """Chat-completion endpoint: message history in, reply text out."""

    async def complete(self, history: Sequence[dict[str, str]]) -> str:
        ...


class ResponderPort(Protocol):
    """Produces the assistant reply for a transcript ending in a user turn."""

    async def reply(self, transcript: Sequence[ChatMessage]) -> str:
        ...


class ErrorSinkPort(Protocol):
    """Transient, dismissible error signal shown to the user."""

    def error(self, message: str) -> None:
        ...


class IssueBackendPort(Protocol):
    """Issue storage owned by the backend service."""

    def insert_issue(self, issue: NewIssue) -> Issue:
        ...

    def select_issues(
        self,
        status: Optional[IssueStatus] = None,
        issue_type: Optional[str] = None,
        created_since: Optional[datetime] = None,
    ) -> list[Issue]:
        ...

    def update_issue_status(self, issue_id: str, status: IssueStatus) -> Optional[Issue]:
        ...
