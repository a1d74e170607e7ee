"""Error taxonomy shared by the core and adapters.

Validation failures are rejected before any side effect. Remote failures
come from the completion endpoint or issue backend. Not-found failures name
an id missing from the current snapshot. StoreCorrupted marks a local
document that can no longer be read.
"""

from __future__ import annotations


class GuardianError(Exception):
    """Base class for every failure raised on purpose by guardianbot."""


class InvalidInput(GuardianError, ValueError):
    """User-supplied data failed validation."""


class InvalidDonation(InvalidInput):
    """Donation amount is not a positive, finite number."""


class PostNotFound(GuardianError, LookupError):
    def __init__(self, post_id: str) -> None:
        super().__init__(f"Post not found: {post_id}")
        self.post_id = post_id


class IssueNotFound(GuardianError, LookupError):
    def __init__(self, issue_id: str) -> None:
        super().__init__(f"Issue not found: {issue_id}")
        self.issue_id = issue_id


class RemoteCompletionUnavailable(GuardianError):
    """The completion endpoint did not produce a usable reply.

    ``kind`` narrows the cause (network, timeout, auth, rate_limited, http,
    malformed, config) for logging; callers treat every kind the same way.
    """

    def __init__(self, kind: str, detail: str = "") -> None:
        message = "Remote completion unavailable"
        if detail:
            message = f"{message} ({kind}): {detail}"
        else:
            message = f"{message} ({kind})"
        super().__init__(message)
        self.kind = kind
        self.detail = detail


class IssueBackendError(GuardianError):
    """The issue backend rejected a request or could not be reached."""


class StoreCorrupted(GuardianError, ValueError):
    """A stored collection is not a JSON list."""

    def __init__(self, key: str, detail: str) -> None:
        super().__init__(f"Stored value for {key!r} is unreadable: {detail}")
        self.key = key
