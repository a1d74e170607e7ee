"""Report tab: file a new issue."""

from __future__ import annotations

import logging
from typing import Any

from textual import on
from textual.containers import Horizontal, ScrollableContainer
from textual.widgets import Button, Input, Select, Static, TextArea

from core.errors import GuardianError

from ..constants import DEFAULT_LOCATION
from ..validators import normalize_phone, parse_location

LOGGER = logging.getLogger(__name__)


class ReportTab(ScrollableContainer):
    """Issue form; location is typed as "lat, lng" since there is no map."""

    def __init__(self, services, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._services = services

    def compose(self):
        yield Static("Report an Issue", id="report-title")
        yield Static("issue type", classes="form-label")
        yield Select(
            [(issue_type, issue_type) for issue_type in self._services.issues.issue_types],
            prompt="Select an issue type",
            id="report-type",
        )
        yield Static("description", classes="form-label")
        yield TextArea(id="report-description")
        yield Static("location (lat, lng)", classes="form-label")
        yield Input(value=DEFAULT_LOCATION, id="report-location")
        yield Static("your name (optional)", classes="form-label")
        yield Input(id="report-name")
        yield Static("phone number (optional)", classes="form-label")
        yield Input(id="report-phone")
        yield Static("", id="report-error", classes="form-error")
        with Horizontal(id="report-actions"):
            yield Button("Submit Report", id="report-submit", variant="success")

    @on(Button.Pressed, "#report-submit")
    def _on_submit(self) -> None:
        issue_type = self.query_one("#report-type", Select).value
        if issue_type is Select.BLANK or not isinstance(issue_type, str):
            self._set_error("issue type is required")
            return
        location = parse_location(self.query_one("#report-location", Input).value)
        if location.error or location.location is None:
            self._set_error(location.error or "invalid location")
            return
        phone, phone_error = normalize_phone(self.query_one("#report-phone", Input).value)
        if phone_error:
            self._set_error(phone_error)
            return
        try:
            self._services.issues.report_issue(
                issue_type,
                self.query_one("#report-description", TextArea).text,
                location.location,
                reporter_name=self.query_one("#report-name", Input).value,
                reporter_phone=phone,
            )
        except GuardianError as exc:
            LOGGER.warning("Issue report failed: %s", exc)
            self._set_error(str(exc))
            self.app.notify("Failed to report issue. Please try again.", severity="error")
            return
        self._reset_form()
        self.app.notify("Issue reported successfully!")
        self.app.refresh_admin()

    def _reset_form(self) -> None:
        self.query_one("#report-type", Select).clear()
        self.query_one("#report-description", TextArea).text = ""
        self.query_one("#report-location", Input).value = DEFAULT_LOCATION
        self.query_one("#report-name", Input).value = ""
        self.query_one("#report-phone", Input).value = ""
        self._set_error("")

    def _set_error(self, message: str) -> None:
        self.query_one("#report-error", Static).update(message)
