"""Client and service factory for guardianbot.

Every surface (terminal UI, console commands) gets its collaborators from
here, so storage, reply strategy and issue backend are chosen in one place
from settings and the environment.
"""

from __future__ import annotations

import logging
import os
import random
from dataclasses import dataclass

from dotenv import load_dotenv

import settings
from adapters.openrouter_client import OpenRouterCompletionClient
from adapters.sqlite_storage import SQLiteStorage
from adapters.supabase_issues import SupabaseIssueBackend
from core.feed import FeedRepository
from core.issues import IssueService
from core.ports import ErrorSinkPort, IssueBackendPort, ResponderPort
from core.responder import RemoteResponder, RuleResponder, build_response_rules
from core.store import LocalStore
from core.transcript import ChatTranscript

LOGGER = logging.getLogger(__name__)


def build_completion_client() -> OpenRouterCompletionClient:
    """Create the completion client; the API key is looked up per request."""

    load_dotenv()
    env_name = settings.COMPLETION.api_key_env
    return OpenRouterCompletionClient(settings.COMPLETION, lambda: os.getenv(env_name))


def build_responder() -> ResponderPort:
    mode = settings.ASSISTANT.mode
    if mode == "rules":
        rules = build_response_rules(settings.RESPONSES_CONFIG)
        LOGGER.info("%s reply rules are loaded", len(rules))
        return RuleResponder(rules, rng=random.Random(settings.ASSISTANT.seed))
    if mode == "remote":
        LOGGER.info("Assistant replies via %s", settings.COMPLETION.model)
        return RemoteResponder(build_completion_client(), settings.ASSISTANT.system_prompt)
    raise RuntimeError("assistant.mode must be 'rules' or 'remote'")


def build_issue_backend(storage: SQLiteStorage) -> IssueBackendPort:
    backend = settings.ISSUES.backend
    if backend == "local":
        return storage
    if backend == "supabase":
        load_dotenv()
        url = os.getenv("SUPABASE_URL")
        key = os.getenv("SUPABASE_ANON_KEY")
        # Fail fast on missing credentials rather than on the first query.
        if not url or not key:
            raise RuntimeError("Missing SUPABASE_URL or SUPABASE_ANON_KEY in environment")
        return SupabaseIssueBackend.connect(url, key, table=settings.ISSUES.table)
    raise RuntimeError("issues.backend must be 'local' or 'supabase'")


@dataclass
class Services:
    """Wired core services shared by one process."""

    store: LocalStore
    feed: FeedRepository
    issues: IssueService
    responder: ResponderPort
    assistant_name: str
    greeting: str

    def transcript(self, errors: ErrorSinkPort) -> ChatTranscript:
        return ChatTranscript(self.store, self.responder, errors, greeting=self.greeting)


def build_services() -> Services:
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    store = LocalStore(storage)
    return Services(
        store=store,
        feed=FeedRepository(store),
        issues=IssueService(build_issue_backend(storage), settings.ISSUES.types),
        responder=build_responder(),
        assistant_name=settings.ASSISTANT_NAME,
        greeting=settings.ASSISTANT.greeting,
    )
