"""Admin tab: filter issues, review the trend and change status."""

from __future__ import annotations

from typing import Any, Optional

from textual import on
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Select, Sparkline, Static

from adapters.formatting import reporter_label
from core.errors import GuardianError
from core.issues import daily_counts
from core.models import IssueStatus

from ..constants import DATE_FILTERS, TREND_DAYS
from ..state import AdminFilters

STATUS_LABELS = {
    IssueStatus.PENDING: "Pending",
    IssueStatus.VERIFIED: "Verified",
    IssueStatus.IN_PROGRESS: "In Progress",
    IssueStatus.RESOLVED: "Resolved",
}


class AdminTab(Container):
    """Issue table driven by the status/type/date filters."""

    def __init__(self, services, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._services = services
        self._filters = AdminFilters()
        self._current_issue_id: Optional[str] = None
        self._table_ready = False

    def compose(self):
        status_options = [("All Status", "all")] + [(label, status.value) for status, label in STATUS_LABELS.items()]
        type_options = [("All Types", "all")] + [(t, t) for t in self._services.issues.issue_types]
        with Vertical(id="admin-panel"):
            with Horizontal(id="admin-filters"):
                yield Select(status_options, value="all", allow_blank=False, id="filter-status")
                yield Select(type_options, value="all", allow_blank=False, id="filter-type")
                yield Select(DATE_FILTERS, value="all", allow_blank=False, id="filter-days")
            yield DataTable(id="issues-table", cursor_type="row")
            yield Static("", id="admin-trend-label", classes="subtle")
            yield Sparkline([], id="admin-trend")
            with Horizontal(id="admin-actions"):
                yield Select(
                    [(label, status.value) for status, label in STATUS_LABELS.items()],
                    prompt="New status",
                    id="admin-new-status",
                )
                yield Button("Apply", id="admin-apply", variant="warning", disabled=True)
                yield Button("Refresh", id="admin-refresh")
            yield Static("", id="admin-output")

    def on_mount(self) -> None:
        table = self.query_one("#issues-table", DataTable)
        table.add_column("type", key="type", width=20)
        table.add_column("description", key="description", width=40)
        table.add_column("reporter", key="reporter", width=16)
        table.add_column("date", key="date", width=18)
        table.add_column("status", key="status", width=12)
        table.zebra_stripes = True
        self._table_ready = True
        self.reload_issues()

    def reload_issues(self) -> None:
        if not self._table_ready:
            return
        table = self.query_one("#issues-table", DataTable)
        table.clear()
        try:
            issues = self._services.issues.list_issues(
                status=self._filters.status,
                issue_type=self._filters.issue_type,
                days=self._filters.days_value(),
            )
        except GuardianError as exc:
            self._set_output(f"error: {exc}")
            return
        for issue in issues:
            table.add_row(
                issue.type,
                issue.description,
                reporter_label(issue),
                issue.created_at.astimezone().strftime("%b %d, %Y %H:%M"),
                issue.status.value,
                key=issue.id,
            )
        counts = daily_counts(issues, TREND_DAYS)
        self.query_one("#admin-trend", Sparkline).data = [count for _, count in counts]
        self.query_one("#admin-trend-label", Static).update(
            f"Reports per day, last {TREND_DAYS} days (total {sum(c for _, c in counts)})"
        )
        self._set_output(f"loaded {len(issues)} issues")
        self._update_action_state()

    @on(Select.Changed, "#filter-status")
    def _on_status_filter(self, event: Select.Changed) -> None:
        self._filters.status = str(event.value)
        self.reload_issues()

    @on(Select.Changed, "#filter-type")
    def _on_type_filter(self, event: Select.Changed) -> None:
        self._filters.issue_type = str(event.value)
        self.reload_issues()

    @on(Select.Changed, "#filter-days")
    def _on_days_filter(self, event: Select.Changed) -> None:
        self._filters.days = str(event.value)
        self.reload_issues()

    @on(Select.Changed, "#admin-new-status")
    def _on_new_status(self) -> None:
        self._update_action_state()

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        row_key = event.row_key
        self._current_issue_id = str(row_key.value if hasattr(row_key, "value") else row_key)
        self._update_action_state()

    @on(Button.Pressed, "#admin-refresh")
    def _on_refresh(self) -> None:
        self.reload_issues()

    @on(Button.Pressed, "#admin-apply")
    def _on_apply(self) -> None:
        new_status = self.query_one("#admin-new-status", Select).value
        if self._current_issue_id is None or not isinstance(new_status, str):
            return
        try:
            issue = self._services.issues.update_status(self._current_issue_id, new_status)
        except GuardianError as exc:
            self.app.notify(str(exc), severity="error")
            return
        self.app.notify(f"{issue.type} moved to {issue.status.value}")
        self.reload_issues()

    def _update_action_state(self) -> None:
        new_status = self.query_one("#admin-new-status", Select).value
        self.query_one("#admin-apply", Button).disabled = self._current_issue_id is None or not isinstance(
            new_status, str
        )

    def _set_output(self, message: str) -> None:
        self.query_one("#admin-output", Static).update(message)
