"""State container for the admin dashboard filters."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class AdminFilters:
    status: str = "all"
    issue_type: str = "all"
    days: str = "all"

    def days_value(self) -> int | None:
        return None if self.days == "all" else int(self.days)
