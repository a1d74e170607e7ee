"""Community feed repository (core domain)."""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Iterable, Optional, Union

from core.errors import InvalidDonation, InvalidInput, PostNotFound
from core.models import CommunityPost, Location
from core.store import LocalStore

LOGGER = logging.getLogger(__name__)


def parse_hashtags(raw: Union[str, Iterable[str], None]) -> list[str]:
    """Split "#a #b" style input, keeping only words that start with "#"."""

    if raw is None:
        return []
    words = raw.split() if isinstance(raw, str) else [str(tag).strip() for tag in raw]
    return [word for word in words if word.startswith("#")]


def _validate_amount(amount: float) -> float:
    if isinstance(amount, bool):
        raise InvalidDonation(f"Donation amount must be a number, got {amount!r}")
    try:
        value = float(amount)
    except (TypeError, ValueError) as exc:
        raise InvalidDonation(f"Donation amount must be a number, got {amount!r}") from exc
    if not math.isfinite(value) or value <= 0:
        raise InvalidDonation(f"Donation amount must be positive, got {amount!r}")
    return value


class FeedRepository:
    """Creates posts and records donations through the local store."""

    def __init__(self, store: LocalStore) -> None:
        self._store = store

    def list_posts(self) -> list[CommunityPost]:
        return self._store.get_posts()

    def create_post(
        self,
        caption: str,
        hashtags: Union[str, Iterable[str], None] = None,
        media_url: Optional[str] = None,
        location: Optional[Location] = None,
        donation_goal: Optional[float] = None,
    ) -> CommunityPost:
        """Store a new post at the head of the feed."""

        caption = (caption or "").strip()
        if not caption:
            raise InvalidInput("Caption is required")
        if donation_goal is not None:
            donation_goal = _validate_amount(donation_goal)
        post = self._store.save_post(
            caption=caption,
            hashtags=parse_hashtags(hashtags),
            media_url=media_url or None,
            location=location,
            donation_goal=donation_goal,
            donation_current=0 if donation_goal is not None else None,
        )
        LOGGER.info("Post created %s (%s hashtags)", post.id, len(post.hashtags))
        return post

    def donate(self, post_id: str, amount: float) -> CommunityPost:
        """Add amount to a post's donation total and write the feed back.

        The goal is display-only: totals may exceed it.
        """

        value = _validate_amount(amount)
        posts = self._store.get_posts()
        for index, post in enumerate(posts):
            if post.id != post_id:
                continue
            current = post.donation_current or 0
            updated = replace(post, donation_current=current + value)
            posts[index] = updated
            self._store.update_posts(posts)
            LOGGER.info("Donation of %s recorded for post %s", value, post_id)
            return updated
        raise PostNotFound(post_id)
