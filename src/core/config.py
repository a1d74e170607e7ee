"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_GREETING = (
    "Hello! I'm GuardianBot, your emergency response assistant. "
    "How can I help you today?"
)

DEFAULT_SYSTEM_PROMPT = (
    "You are GuardianBot, an emergency response assistant for a neighborhood "
    "incident reporting platform. Give short, calm, practical safety guidance. "
    "Always tell the user to contact emergency services first when a life may "
    "be at risk, and point them to the Report Issue feature for incidents."
)

DEFAULT_ISSUE_TYPES = (
    "Fire Accident",
    "Flood",
    "Road Damage",
    "Street Light Issue",
    "Hazardous Gas Leak",
    "Others",
)


@dataclass(frozen=True)
class CompletionConfig:
    """Request shape for the chat-completion endpoint."""

    endpoint: str
    model: str
    temperature: float
    max_tokens: int
    timeout_seconds: float
    api_key_env: str = "OPENROUTER_API_KEY"
    referer: Optional[str] = None


@dataclass(frozen=True)
class AssistantConfig:
    """How the chat assistant greets and answers."""

    mode: str
    greeting: str = DEFAULT_GREETING
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    seed: Optional[int] = None


@dataclass(frozen=True)
class IssueConfig:
    """Issue backend selection and the allowed issue types."""

    backend: str
    types: tuple[str, ...] = DEFAULT_ISSUE_TYPES
    table: str = "issues"
