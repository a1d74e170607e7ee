"""Issue reporting and admin triage (core domain).

Issues live in an external backend; this service validates input, maps the
admin dashboard filters onto backend queries and summarizes results.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional, Union

from core.errors import InvalidInput, IssueNotFound
from core.models import Issue, IssueStatus, Location, NewIssue
from core.ports import IssueBackendPort
from core.store import utc_now

LOGGER = logging.getLogger(__name__)

ALL = "all"


def parse_status(value: Union[str, IssueStatus]) -> IssueStatus:
    """Return the IssueStatus for a raw value or raise InvalidInput."""

    if isinstance(value, IssueStatus):
        return value
    try:
        return IssueStatus(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(status.value for status in IssueStatus)
        raise InvalidInput(f"Unknown status {value!r} (expected one of: {allowed})") from exc


class IssueService:
    """Report, list and re-status issues through the backend port."""

    def __init__(
        self,
        backend: IssueBackendPort,
        issue_types: Iterable[str],
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._backend = backend
        self._issue_types = tuple(issue_types)
        self._clock = clock

    @property
    def issue_types(self) -> tuple[str, ...]:
        return self._issue_types

    def report_issue(
        self,
        issue_type: str,
        description: str,
        location: Location,
        reporter_name: Optional[str] = None,
        reporter_phone: Optional[str] = None,
    ) -> Issue:
        """Validate and submit a new issue; it always starts as pending."""

        if issue_type not in self._issue_types:
            raise InvalidInput(f"Unknown issue type {issue_type!r}")
        description = (description or "").strip()
        if not description:
            raise InvalidInput("Description is required")
        issue = self._backend.insert_issue(
            NewIssue(
                type=issue_type,
                description=description,
                location=location,
                reporter_name=(reporter_name or "").strip() or None,
                reporter_phone=(reporter_phone or "").strip() or None,
            )
        )
        LOGGER.info("Issue reported %s (%s)", issue.id, issue.type)
        return issue

    def list_issues(
        self,
        status: Union[str, IssueStatus] = ALL,
        issue_type: str = ALL,
        days: Optional[int] = None,
    ) -> list[Issue]:
        """Return issues newest first, filtered like the admin dashboard."""

        status_filter = None if status == ALL else parse_status(status)
        type_filter = None if issue_type == ALL else issue_type
        created_since = None
        if days is not None:
            if days <= 0:
                raise InvalidInput("days must be a positive number")
            created_since = self._clock() - timedelta(days=days)
        issues = self._backend.select_issues(
            status=status_filter,
            issue_type=type_filter,
            created_since=created_since,
        )
        return sorted(issues, key=lambda issue: issue.created_at, reverse=True)

    def update_status(self, issue_id: str, status: Union[str, IssueStatus]) -> Issue:
        """Move an issue to any status."""

        new_status = parse_status(status)
        updated = self._backend.update_issue_status(issue_id, new_status)
        if updated is None:
            raise IssueNotFound(issue_id)
        LOGGER.info("Issue %s moved to %s", issue_id, new_status.value)
        return updated


def daily_counts(issues: Iterable[Issue], days: int, today: Optional[date] = None) -> list[tuple[date, int]]:
    """Count issues per calendar day for the last ``days`` days, oldest first."""

    today = today or utc_now().date()
    counts = Counter(issue.created_at.date() for issue in issues)
    start = today - timedelta(days=days - 1)
    return [(start + timedelta(days=offset), counts.get(start + timedelta(days=offset), 0)) for offset in range(days)]
