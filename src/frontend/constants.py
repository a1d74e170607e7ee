"""Shared constants for the Textual UI."""

from __future__ import annotations

GUARDIAN_RED = "#E5484D"
DEFAULT_LOCATION = "12.9716, 77.5946"
DATE_FILTERS = [("All Time", "all"), ("Last 7 Days", "7"), ("Last 30 Days", "30"), ("Last 90 Days", "90")]
TREND_DAYS = 14
