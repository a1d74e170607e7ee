"""Static configuration for guardianbot.

All user-editable settings (assistant, completion endpoint, reply rules,
issue backend, logging) live in a single JSON file for quick edits without
touching Python. Secrets stay in the environment / .env.
"""

import json
import os

from dotenv import load_dotenv

from core.config import (
    DEFAULT_GREETING,
    DEFAULT_ISSUE_TYPES,
    DEFAULT_SYSTEM_PROMPT,
    AssistantConfig,
    CompletionConfig,
    IssueConfig,
)
from core.responder import DEFAULT_RESPONSE_RULES

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# config.json sits at the project root unless GUARDIANBOT_CONFIG points elsewhere.
CONFIG_PATH = os.getenv("GUARDIANBOT_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Where to store the SQLite database (transcript, feed, local issues).
_storage = _CONFIG.get("storage", {})
DB_PATH = _resolve_path(_storage.get("db_path", "guardianbot.db"))

# Assistant behaviour:
# - mode: "rules" answers from the keyword table, "remote" calls the endpoint
# - seed: fixes the canned-reply choice (null = random per run)
_assistant = _CONFIG.get("assistant", {})
ASSISTANT_NAME = _assistant.get("name", "GuardianBot")
ASSISTANT = AssistantConfig(
    mode=_assistant.get("mode", "rules"),
    greeting=_assistant.get("greeting", DEFAULT_GREETING),
    system_prompt=_assistant.get("system_prompt", DEFAULT_SYSTEM_PROMPT),
    seed=_assistant.get("seed"),
)

# Chat-completion request shape. The API key itself is read from the env var
# named here at call time.
_completion = _CONFIG.get("completion", {})
COMPLETION = CompletionConfig(
    endpoint=_completion.get("endpoint", "https://openrouter.ai/api/v1/chat/completions"),
    model=_completion.get("model", "mistralai/mistral-7b-instruct"),
    temperature=float(_completion.get("temperature", 0.7)),
    max_tokens=int(_completion.get("max_tokens", 1000)),
    timeout_seconds=float(_completion.get("timeout_seconds", 30)),
    api_key_env=_completion.get("api_key_env", "OPENROUTER_API_KEY"),
    referer=_completion.get("referer"),
)

# Reply rules are pulled directly from config.json; fall back to the built-in table.
RESPONSES_CONFIG = _CONFIG.get("responses") or DEFAULT_RESPONSE_RULES

# Issue backend: "local" (SQLite) or "supabase" (needs SUPABASE_URL/SUPABASE_ANON_KEY).
_issues = _CONFIG.get("issues", {})
ISSUES = IssueConfig(
    backend=_issues.get("backend", "local"),
    types=tuple(_issues.get("types") or DEFAULT_ISSUE_TYPES),
    table=_issues.get("table", "issues"),
)

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
