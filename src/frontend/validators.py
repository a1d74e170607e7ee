"""Validation helpers for form input."""

from __future__ import annotations

import math
from dataclasses import dataclass

from core.models import Location


@dataclass
class AmountInfo:
    value: float | None
    error: str | None = None


@dataclass
class LocationInfo:
    location: Location | None
    error: str | None = None


def parse_amount(raw_value: str, required: bool = True) -> AmountInfo:
    raw_value = raw_value.strip().lstrip("$").replace(",", "")
    if not raw_value:
        if required:
            return AmountInfo(None, "amount is required")
        return AmountInfo(None)
    try:
        value = float(raw_value)
    except ValueError:
        return AmountInfo(None, "amount must be a number")
    if not math.isfinite(value) or value <= 0:
        return AmountInfo(None, "amount must be positive")
    return AmountInfo(value)


def parse_location(raw_value: str) -> LocationInfo:
    """Parse "lat, lng" into a Location."""

    lat_part, sep, lng_part = raw_value.strip().partition(",")
    if not sep:
        return LocationInfo(None, "location must be 'lat, lng'")
    try:
        lat = float(lat_part)
        lng = float(lng_part)
    except ValueError:
        return LocationInfo(None, "lat and lng must be numbers")
    if not -90 <= lat <= 90:
        return LocationInfo(None, "lat must be between -90 and 90")
    if not -180 <= lng <= 180:
        return LocationInfo(None, "lng must be between -180 and 180")
    return LocationInfo(Location(lat=lat, lng=lng))


def normalize_phone(raw_value: str) -> tuple[str | None, str | None]:
    """Return (phone, error); blank input is allowed since the field is optional."""

    raw_value = raw_value.strip()
    if not raw_value:
        return None, None
    digits = raw_value[1:] if raw_value.startswith("+") else raw_value
    digits = digits.replace(" ", "").replace("-", "")
    if not digits.isdigit() or not 6 <= len(digits) <= 15:
        return None, "phone must contain 6-15 digits"
    prefix = "+" if raw_value.startswith("+") else ""
    return f"{prefix}{digits}", None
