"""Chat tab: transcript view and message input."""

from __future__ import annotations

import logging
from typing import Any, Optional

from textual import on
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.widgets import Button, Input, Markdown, Static

from core.models import Role
from core.transcript import ChatTranscript

LOGGER = logging.getLogger(__name__)


class ToastErrorSink:
    """Error sink that shows a dismissible toast in the running app."""

    def __init__(self, app) -> None:
        self._app = app

    def error(self, message: str) -> None:
        self._app.notify(message, title="Chat", severity="error", timeout=6)


class ChatTab(Container):
    """Chat with the assistant; input is disabled while a reply is pending."""

    def __init__(self, services, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._services = services
        self._transcript: Optional[ChatTranscript] = None

    def compose(self):
        with Vertical(id="chat-panel"):
            yield Static("Emergency Response Chat Support", id="chat-title")
            yield Static("Get immediate assistance and safety guidance", classes="subtle")
            yield VerticalScroll(id="chat-log")
            yield Static("", id="chat-typing", classes="subtle")
            with Horizontal(id="chat-actions"):
                yield Input(placeholder="Type your message...", id="chat-input")
                yield Button("Send", id="chat-send", variant="primary", disabled=True)

    def on_mount(self) -> None:
        self._transcript = self._services.transcript(ToastErrorSink(self.app))
        for message in self._transcript.open():
            self._mount_bubble(message.role, message.content)

    @property
    def busy(self) -> bool:
        return self._transcript is not None and self._transcript.busy

    def _mount_bubble(self, role: Role, content: str) -> None:
        log = self.query_one("#chat-log", VerticalScroll)
        if role is Role.USER:
            bubble = Static(content, classes="bubble bubble--user", markup=False)
        else:
            # Assistant replies may carry lists and emphasis.
            bubble = Markdown(content, classes="bubble bubble--assistant")
        log.mount(bubble)
        log.scroll_end(animate=False)

    def _set_busy(self, busy: bool) -> None:
        chat_input = self.query_one("#chat-input", Input)
        typing = self.query_one("#chat-typing", Static)
        chat_input.disabled = busy
        self.query_one("#chat-send", Button).disabled = busy or not chat_input.value.strip()
        typing.update(f"{self._services.assistant_name} is typing..." if busy else "")
        if not busy:
            chat_input.focus()

    @on(Input.Changed, "#chat-input")
    def _on_input_changed(self, event: Input.Changed) -> None:
        self.query_one("#chat-send", Button).disabled = self.busy or not event.value.strip()

    @on(Input.Submitted, "#chat-input")
    @on(Button.Pressed, "#chat-send")
    def _on_send(self) -> None:
        chat_input = self.query_one("#chat-input", Input)
        text = chat_input.value
        if self._transcript is None or self.busy or not text.strip():
            return
        chat_input.value = ""
        self._mount_bubble(Role.USER, text)
        self._set_busy(True)
        self.run_worker(self._send(text), group="chat")

    async def _send(self, text: str) -> None:
        try:
            reply = await self._transcript.submit(text)
        except Exception:
            LOGGER.exception("Error while sending chat message")
            self.app.notify("Message could not be saved.", title="Chat", severity="error")
            return
        finally:
            self._set_busy(False)
        if reply is not None:
            self._mount_bubble(reply.role, reply.content)
