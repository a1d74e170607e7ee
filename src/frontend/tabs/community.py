"""Community tab: feed browsing, post creation and donations."""

from __future__ import annotations

from typing import Any, Optional

from textual import on
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Input, Static

from adapters.formatting import format_donation_progress, format_post, format_post_date
from core.errors import GuardianError
from core.feed import parse_hashtags
from core.models import CommunityPost

from ..modals import DonateScreen
from ..validators import parse_amount


class CommunityTab(Container):
    """Feed list on the left, post details and the create form on the right."""

    def __init__(self, services, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._services = services
        self._posts: dict[str, CommunityPost] = {}
        self._current_post_id: Optional[str] = None
        self._table_ready = False

    def compose(self):
        with Vertical(id="community-panel"):
            with Horizontal(id="community-body"):
                with Container(id="community-left"):
                    yield DataTable(id="posts-table", cursor_type="row")
                    yield Static("", id="post-details")
                with Container(id="community-right"):
                    yield Static("Create a Post", id="community-title")
                    yield Static("caption", classes="form-label")
                    yield Input(placeholder="What is happening in your area?", id="post-caption")
                    yield Static("hashtags", classes="form-label")
                    yield Input(placeholder="#community #safety", id="post-hashtags")
                    yield Static("media url (optional)", classes="form-label")
                    yield Input(placeholder="https://...", id="post-media")
                    yield Static("donation goal (optional)", classes="form-label")
                    yield Input(placeholder="10000", id="post-goal")
                    yield Static("", id="post-error", classes="form-error")
            with Horizontal(id="community-actions"):
                yield Button("Create Post", id="create-post", variant="success")
                yield Button("Donate", id="donate-post", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one("#posts-table", DataTable)
        table.add_column("date", key="date", width=14)
        table.add_column("caption", key="caption", width=40)
        table.add_column("hashtags", key="hashtags", width=24)
        table.add_column("donations", key="donations", width=34)
        table.zebra_stripes = True
        self._table_ready = True
        self.reload_posts()

    def reload_posts(self) -> None:
        if not self._table_ready:
            return
        table = self.query_one("#posts-table", DataTable)
        table.clear()
        posts = self._services.feed.list_posts()
        self._posts = {post.id: post for post in posts}
        for post in posts:
            table.add_row(
                format_post_date(post.created_at),
                self._clip_text(post.caption),
                " ".join(post.hashtags),
                format_donation_progress(post),
                key=post.id,
            )
        if self._current_post_id not in self._posts:
            self._current_post_id = None
        self._show_details()

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        row_key = event.row_key
        self._current_post_id = str(row_key.value if hasattr(row_key, "value") else row_key)
        self._show_details()

    def _show_details(self) -> None:
        details = self.query_one("#post-details", Static)
        post = self._posts.get(self._current_post_id or "")
        details.update(format_post(post, mode="markup") if post else "")
        self.query_one("#donate-post", Button).disabled = post is None

    @on(Button.Pressed, "#create-post")
    def _on_create_post(self) -> None:
        caption = self.query_one("#post-caption", Input).value
        hashtags = self.query_one("#post-hashtags", Input).value
        media_url = self.query_one("#post-media", Input).value.strip()
        goal = parse_amount(self.query_one("#post-goal", Input).value, required=False)
        if goal.error:
            self._set_error(f"donation goal: {goal.error}")
            return
        try:
            post = self._services.feed.create_post(
                caption,
                parse_hashtags(hashtags),
                media_url=media_url or None,
                donation_goal=goal.value,
            )
        except GuardianError as exc:
            self._set_error(str(exc))
            self.app.notify("Failed to create post. Please try again.", severity="error")
            return
        for field_id in ("#post-caption", "#post-hashtags", "#post-media", "#post-goal"):
            self.query_one(field_id, Input).value = ""
        self._set_error("")
        self._current_post_id = post.id
        self.reload_posts()
        self.app.notify("Post created successfully!")

    @on(Button.Pressed, "#donate-post")
    def _on_donate(self) -> None:
        post = self._posts.get(self._current_post_id or "")
        if post is None:
            return
        self.app.push_screen(DonateScreen(post.caption), self._handle_donation)

    def _handle_donation(self, amount: float | None) -> None:
        if amount is None or self._current_post_id is None:
            return
        try:
            self._services.feed.donate(self._current_post_id, amount)
        except GuardianError as exc:
            self.app.notify(str(exc), severity="error")
            self.reload_posts()
            return
        self.reload_posts()
        self.app.notify("Thank you for your donation!")

    def _set_error(self, message: str) -> None:
        self.query_one("#post-error", Static).update(message)

    @staticmethod
    def _clip_text(value: str, limit: int = 40) -> str:
        if len(value) <= limit:
            return value
        return value[: limit - 3] + "..."
