"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any storage- or UI-specific types. Each model knows how to turn
itself into a plain dict (and back) so every adapter serializes the same way.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from core.errors import IssueBackendError


class Role(str, Enum):
    """Author of a chat turn."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class IssueStatus(str, Enum):
    """Triage status of a reported issue."""

    PENDING = "pending"
    VERIFIED = "verified"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"


def parse_timestamp(value: Any) -> datetime:
    """Accept a datetime or an ISO-8601 string (with optional trailing Z)."""

    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class Location:
    lat: float
    lng: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["Location"]:
        if not data:
            return None
        return cls(lat=float(data["lat"]), lng=float(data["lng"]))


@dataclass(frozen=True)
class ChatMessage:
    """A single turn of a transcript. Never mutated once stored."""

    role: Role
    content: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatMessage":
        return cls(
            role=Role(data["role"]),
            content=str(data.get("content", "")),
            created_at=parse_timestamp(data["created_at"]),
        )


@dataclass(frozen=True)
class CommunityPost:
    """A feed entry. Only donation_current changes after creation."""

    id: str
    caption: str
    hashtags: tuple[str, ...]
    created_at: datetime
    media_url: Optional[str] = None
    location: Optional[Location] = None
    donation_goal: Optional[float] = None
    donation_current: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "caption": self.caption,
            "hashtags": list(self.hashtags),
            "created_at": self.created_at.isoformat(),
            "media_url": self.media_url,
            "location": self.location.to_dict() if self.location else None,
            "donation_goal": self.donation_goal,
            "donation_current": self.donation_current,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CommunityPost":
        return cls(
            id=str(data["id"]),
            caption=str(data.get("caption", "")),
            hashtags=tuple(data.get("hashtags") or ()),
            created_at=parse_timestamp(data["created_at"]),
            media_url=data.get("media_url"),
            location=Location.from_dict(data.get("location")),
            donation_goal=data.get("donation_goal"),
            donation_current=data.get("donation_current"),
        )


@dataclass(frozen=True)
class Issue:
    """An incident report held by the issue backend."""

    id: str
    type: str
    description: str
    location: Location
    status: IssueStatus
    created_at: datetime
    reporter_name: Optional[str] = None
    reporter_phone: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["created_at"] = self.created_at.isoformat()
        data["location"] = self.location.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Issue":
        location = Location.from_dict(data.get("location"))
        if location is None:
            raise IssueBackendError(f"Issue {data.get('id')!r} has no location")
        return cls(
            id=str(data["id"]),
            type=str(data.get("type", "")),
            description=str(data.get("description", "")),
            location=location,
            status=IssueStatus(data.get("status", IssueStatus.PENDING.value)),
            created_at=parse_timestamp(data["created_at"]),
            reporter_name=data.get("reporter_name") or None,
            reporter_phone=data.get("reporter_phone") or None,
        )


@dataclass(frozen=True)
class NewIssue:
    """Issue fields supplied by a reporter before the backend assigns an id."""

    type: str
    description: str
    location: Location
    reporter_name: Optional[str] = None
    reporter_phone: Optional[str] = None
    status: IssueStatus = field(default=IssueStatus.PENDING)
