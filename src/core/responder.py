"""Reply generation for the chat assistant (core domain).

Two strategies share one interface: a keyword rule table with canned replies
and a remote chat-completion call. Both receive the whole transcript, which
always ends with the user's latest turn.
"""

from __future__ import annotations

from dataclasses import dataclass
import random
from typing import Iterable, List, Optional, Sequence

from core.models import ChatMessage, Role
from core.ports import CompletionPort

FALLBACK_REPLY = (
    "I understand your concern. For specific assistance, please use our Report "
    "Issue feature or contact emergency services if it's urgent."
)

# Order matters: the first rule with a keyword hit answers. Emergency comes
# before greetings so "hi, I need help" is treated as an emergency.
DEFAULT_RESPONSE_RULES: list[dict] = [
    {
        "name": "emergency",
        "keywords": ["emergency", "help"],
        "replies": [
            "If this is a life-threatening emergency, please call emergency services immediately at 911.",
            "Your safety is our priority. Please contact emergency services first, then report the incident through our platform.",
            "For immediate assistance, please contact emergency services. Once safe, you can report the incident using our reporting system.",
        ],
    },
    {
        "name": "greetings",
        "keywords": ["hello", "hi "],
        "replies": [
            "Hello! How can I help you today?",
            "Hi there! I'm here to assist you with any emergency-related questions.",
            "Welcome to GuardianBot! How may I help you?",
        ],
    },
    {
        "name": "safety",
        "keywords": ["safety", "tips"],
        "replies": [
            "Here are some general safety tips:\n\n1. Stay calm and assess the situation\n"
            "2. Contact emergency services if needed\n3. Follow official evacuation procedures\n"
            "4. Keep emergency contacts handy\n5. Stay informed through official channels",
            "Remember these safety guidelines:\n\n- Keep emergency supplies ready\n"
            "- Know your evacuation routes\n- Have a family emergency plan\n"
            "- Stay updated with local news\n- Keep important documents accessible",
        ],
    },
]


@dataclass(frozen=True)
class ResponseRule:
    """Compiled keyword rule with its pool of canned replies."""

    name: str
    keywords: List[str]
    replies: List[str]


def build_response_rules(rules_config: Iterable[dict]) -> List[ResponseRule]:
    """Normalize rule configs, lowercasing keywords and dropping empty rules.

    Keyword whitespace is kept as written: "hi " must not match "this".
    """

    compiled: List[ResponseRule] = []
    for rule in rules_config:
        if not rule.get("enabled", True):
            continue
        keywords = [k.lower() for k in rule.get("keywords", []) if k]
        replies = [r for r in rule.get("replies", []) if r]
        if not keywords or not replies:
            continue
        compiled.append(ResponseRule(name=rule["name"], keywords=keywords, replies=replies))
    return compiled


def match_response_rule(text: str, rules: Iterable[ResponseRule]) -> Optional[ResponseRule]:
    """Return the first rule with a case-insensitive substring hit."""

    lowered = text.lower()
    for rule in rules:
        if any(keyword in lowered for keyword in rule.keywords):
            return rule
    return None


def _last_user_text(transcript: Sequence[ChatMessage]) -> str:
    for message in reversed(transcript):
        if message.role is Role.USER:
            return message.content
    return ""


class RuleResponder:
    """Answers from the keyword table; the random source is injectable."""

    def __init__(
        self,
        rules: Iterable[ResponseRule],
        rng: Optional[random.Random] = None,
        fallback: str = FALLBACK_REPLY,
    ) -> None:
        self._rules = list(rules)
        self._rng = rng or random.Random()
        self._fallback = fallback

    def respond(self, text: str) -> str:
        rule = match_response_rule(text, self._rules)
        if rule is None:
            return self._fallback
        return self._rng.choice(rule.replies)

    async def reply(self, transcript: Sequence[ChatMessage]) -> str:
        return self.respond(_last_user_text(transcript))


def build_completion_history(
    transcript: Sequence[ChatMessage], system_prompt: str
) -> list[dict[str, str]]:
    """Prepend the system instruction to the transcript in wire shape."""

    history = [{"role": Role.SYSTEM.value, "content": system_prompt}]
    history.extend({"role": m.role.value, "content": m.content} for m in transcript)
    return history


class RemoteResponder:
    """Delegates to the completion client with a fixed system instruction."""

    def __init__(self, client: CompletionPort, system_prompt: str) -> None:
        self._client = client
        self._system_prompt = system_prompt

    async def reply(self, transcript: Sequence[ChatMessage]) -> str:
        return await self._client.complete(build_completion_history(transcript, self._system_prompt))
