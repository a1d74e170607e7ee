"""Shared display formatting helpers.

Keeping formatting here prevents drift between the terminal UI and the
console commands, and keeps posts, turns and issues rendered the same way
regardless of surface.
"""

from __future__ import annotations

from datetime import datetime

from rich.markup import escape

from core.models import ChatMessage, CommunityPost, Issue, Role


def format_post_date(value: datetime) -> str:
    """Render a date like "Mar 5, 2025"."""

    return f"{value:%b} {value.day}, {value.year}"


def format_amount(value: float) -> str:
    if float(value).is_integer():
        return f"${int(value):,}"
    return f"${value:,.2f}"


def format_donation_progress(post: CommunityPost) -> str:
    """Return "raised of goal" text, or "" for posts without donations."""

    if post.donation_goal is None and post.donation_current is None:
        return ""
    current = post.donation_current or 0
    if not post.donation_goal:
        return f"{format_amount(current)} raised"
    percent = int(current * 100 // post.donation_goal)
    return f"{format_amount(current)} raised of {format_amount(post.donation_goal)} goal ({percent}%)"


def reporter_label(issue: Issue) -> str:
    return issue.reporter_name or "Anonymous"


def speaker_label(message: ChatMessage, assistant_name: str) -> str:
    if message.role is Role.USER:
        return "You"
    if message.role is Role.SYSTEM:
        return "System"
    return assistant_name


def _format_plain(post: CommunityPost) -> str:
    lines = [post.caption]
    if post.hashtags:
        lines.append(" ".join(post.hashtags))
    if post.media_url:
        lines.append(f"Media: {post.media_url}")
    progress = format_donation_progress(post)
    if progress:
        lines.append(progress)
    lines.append(f"{format_post_date(post.created_at)} | id {post.id}")
    return "\n".join(lines)


def _format_markup(post: CommunityPost) -> str:
    """Rich console markup used by the terminal UI."""

    lines = [escape(post.caption)]
    if post.hashtags:
        lines.append(" ".join(f"[b cyan]{escape(tag)}[/]" for tag in post.hashtags))
    if post.media_url:
        lines.append(f"[dim]Media:[/] {escape(post.media_url)}")
    progress = format_donation_progress(post)
    if progress:
        lines.append(f"[green]{escape(progress)}[/]")
    lines.append(f"[dim]{format_post_date(post.created_at)}[/]")
    return "\n".join(lines)


def format_post(post: CommunityPost, mode: str = "plain") -> str:
    """Return the post card formatted for the requested mode."""

    if mode == "plain":
        return _format_plain(post)
    if mode == "markup":
        return _format_markup(post)
    raise ValueError(f"Unsupported post format: {mode}")


def format_message(message: ChatMessage, assistant_name: str) -> str:
    return f"{speaker_label(message, assistant_name)}: {message.content}"


def format_issue_line(issue: Issue) -> str:
    """One-line summary used by the issues command."""

    timestamp = issue.created_at.astimezone().strftime("%Y-%m-%d %H:%M")
    return " | ".join(
        [
            issue.id,
            timestamp,
            issue.status.value,
            issue.type,
            reporter_label(issue),
            f"{issue.location.lat:.4f},{issue.location.lng:.4f}",
            issue.description,
        ]
    )
