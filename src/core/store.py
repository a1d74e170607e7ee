"""Local persistence store for chat transcripts and the community feed.

Both collections live under one key each in a key-value port and are written
back whole on every change. Single writer, single process: there is no
locking and no merge of concurrent writes.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from core.errors import StoreCorrupted
from core.models import ChatMessage, CommunityPost, Location
from core.ports import KeyValuePort

LOGGER = logging.getLogger(__name__)

CHAT_MESSAGES_KEY = "chat_messages"
POSTS_KEY = "community_posts"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LocalStore:
    """Repository over the key-value port with a fixed read/write contract."""

    def __init__(
        self,
        kv: KeyValuePort,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ) -> None:
        self._kv = kv
        self._clock = clock
        self._id_factory = id_factory

    def _read_list(self, key: str) -> list[dict]:
        raw = self._kv.get_value(key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreCorrupted(key, exc.msg) from exc
        if not isinstance(data, list):
            raise StoreCorrupted(key, "not a list")
        return data

    def _write_list(self, key: str, items: list[dict]) -> None:
        self._kv.set_value(key, json.dumps(items, ensure_ascii=False))

    def get_chat_messages(self) -> list[ChatMessage]:
        """Return the saved transcript in insertion order."""

        return [ChatMessage.from_dict(item) for item in self._read_list(CHAT_MESSAGES_KEY)]

    def save_chat_message(self, message: ChatMessage) -> None:
        """Append one message; storage errors propagate to the caller."""

        items = self._read_list(CHAT_MESSAGES_KEY)
        items.append(message.to_dict())
        self._write_list(CHAT_MESSAGES_KEY, items)

    def get_posts(self) -> list[CommunityPost]:
        """Return the feed, newest first."""

        return [CommunityPost.from_dict(item) for item in self._read_list(POSTS_KEY)]

    def save_post(
        self,
        caption: str,
        hashtags: Iterable[str],
        created_at: Optional[datetime] = None,
        media_url: Optional[str] = None,
        location: Optional[Location] = None,
        donation_goal: Optional[float] = None,
        donation_current: Optional[float] = None,
    ) -> CommunityPost:
        """Assign id and timestamp, insert at the head, return the stored post."""

        post = CommunityPost(
            id=self._id_factory(),
            caption=caption,
            hashtags=tuple(hashtags),
            created_at=created_at or self._clock(),
            media_url=media_url,
            location=location,
            donation_goal=donation_goal,
            donation_current=donation_current,
        )
        items = self._read_list(POSTS_KEY)
        items.insert(0, post.to_dict())
        self._write_list(POSTS_KEY, items)
        LOGGER.debug("Stored post %s (%s posts total)", post.id, len(items))
        return post

    def update_posts(self, posts: Iterable[CommunityPost]) -> None:
        """Replace the whole feed with the given collection."""

        self._write_list(POSTS_KEY, [post.to_dict() for post in posts])
