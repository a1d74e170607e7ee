"""Modal dialogs for the Textual UI."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static

from .validators import parse_amount


class QuitWhileBusyScreen(ModalScreen[bool]):
    """Prompt when quitting while the assistant is still replying."""

    def compose(self) -> ComposeResult:
        yield Container(
            Static("Reply in progress", classes="modal-title"),
            Static("The assistant is still answering. Quit anyway?", classes="modal-body"),
            Horizontal(
                Button("Quit", id="busy-quit", variant="error"),
                Button("Cancel", id="busy-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--confirm",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "busy-quit")


class DonateScreen(ModalScreen[float | None]):
    """Modal form asking for a donation amount."""

    def __init__(self, caption: str) -> None:
        super().__init__()
        self._caption = caption

    def compose(self) -> ComposeResult:
        yield Container(
            Static("Donate", classes="modal-title"),
            Static(self._caption, classes="modal-body"),
            Static("", id="donate-error", classes="modal-error"),
            Static("amount", classes="form-label"),
            Input(placeholder="25", id="donate-amount"),
            Horizontal(
                Button("Donate", id="donate-confirm", variant="success"),
                Button("Cancel", id="donate-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--form",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "donate-cancel":
            self.dismiss(None)
            return
        if event.button.id != "donate-confirm":
            return
        info = parse_amount(self.query_one("#donate-amount", Input).value)
        if info.error or info.value is None:
            self.query_one("#donate-error", Static).update(info.error or "invalid amount")
            return
        self.dismiss(info.value)
