"""Main Textual app for GuardianBot."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Center, Container, Horizontal, Vertical
from textual.widgets import ContentSwitcher, Footer, Static, Tab, Tabs

from .constants import GUARDIAN_RED
from .modals import QuitWhileBusyScreen
from .tabs.admin import AdminTab
from .tabs.chat import ChatTab
from .tabs.community import CommunityTab
from .tabs.report import ReportTab


class GuardianApp(App):
    """Chat, community feed, issue reporting and the admin dashboard."""

    def __init__(self, services, db_label: str = "", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.services = services
        self._db_label = db_label

    BINDINGS = [
        ("q", "request_quit", "Quit"),
        ("ctrl+c", "request_quit", "Quit"),
    ]

    CSS_PATH = "app.tcss"

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            with Horizontal(id="header-row"):
                with Vertical(id="header-left"):
                    yield Static(self._title_text(), id="title")
                    yield Static("Community safety and emergency response", classes="subtle")
                with Vertical(id="header-right"):
                    yield Static(f"assistant: {self.services.assistant_name}", classes="subtle")
                    if self._db_label:
                        yield Static(f"db: {self._db_label}", classes="subtle")

        with Container(id="tabs-bar"):
            with Center(id="tabs-center"):
                yield Tabs(
                    Tab("Chat", id="chat"),
                    Tab("Community", id="community"),
                    Tab("Report", id="report"),
                    Tab("Admin", id="admin"),
                    id="tabs",
                )

        with ContentSwitcher(id="content"):
            yield ChatTab(self.services, id="chat")
            yield CommunityTab(self.services, id="community")
            yield ReportTab(self.services, id="report")
            yield AdminTab(self.services, id="admin")
        yield Footer()

    def on_mount(self) -> None:
        self._set_active_tab("chat")

    def on_tabs_tab_activated(self, event: Tabs.TabActivated) -> None:
        tab_id = event.tab.id or ""
        if not tab_id:
            label = event.tab.label
            if hasattr(label, "plain"):
                label = label.plain
            tab_id = str(label).strip().lower()
        self._set_active_tab(tab_id)

    def _set_active_tab(self, tab_id: str) -> None:
        switcher = self.query_one("#content", ContentSwitcher)
        switcher.current = tab_id

    def action_request_quit(self) -> None:
        if self.query_one(ChatTab).busy:
            self.push_screen(QuitWhileBusyScreen(), self._handle_exit_choice)
        else:
            self.exit()

    def _handle_exit_choice(self, choice: bool | None) -> None:
        if choice:
            self.exit()

    def refresh_admin(self) -> None:
        """Reload the admin issue table after a new report."""
        self.query_one(AdminTab).reload_issues()

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("GUARDIAN", GUARDIAN_RED),
            ("BOT > Community Safety", "bold"),
        )
