"""Supabase issue backend adapter.

Reads and writes the hosted `issues` table through the supabase client so
the admin dashboard can run against the same data as the web reporting form.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
from postgrest.exceptions import APIError
from shapely import wkb, wkt
from shapely.errors import ShapelyError
from shapely.geometry import Point, shape
from supabase import Client, create_client

from core.errors import IssueBackendError
from core.models import Issue, IssueStatus, Location, NewIssue

LOGGER = logging.getLogger(__name__)


def format_point(location: Location) -> str:
    """Encode a location as WKT; PostGIS expects longitude first."""

    return Point(location.lng, location.lat).wkt


def _load_geometry(value: Any):
    if isinstance(value, dict):
        if "lat" in value and "lng" in value:
            return Point(float(value["lng"]), float(value["lat"]))
        return shape(value)
    if isinstance(value, str):
        text = value.strip()
        if text.upper().startswith(("SRID=", "POINT")):
            # EWKT: drop the SRID prefix, coordinates are lng/lat either way.
            return wkt.loads(text.split(";")[-1])
        return wkb.loads(text, hex=True)
    raise IssueBackendError(f"Unsupported location value: {value!r}")


def parse_point(value: Any) -> Location:
    """Decode a geography point returned as GeoJSON, (E)WKT or hex EWKB."""

    try:
        geometry = _load_geometry(value)
    except (ShapelyError, ValueError, TypeError, AttributeError, KeyError) as exc:
        raise IssueBackendError(f"Unsupported location value: {value!r}") from exc
    if geometry.geom_type != "Point" or geometry.is_empty:
        raise IssueBackendError(f"Location is not a point: {value!r}")
    return Location(lat=geometry.y, lng=geometry.x)


def row_to_issue(row: dict[str, Any]) -> Issue:
    data = dict(row)
    data["location"] = parse_point(row.get("location")).to_dict()
    return Issue.from_dict(data)


class SupabaseIssueBackend:
    """IssueBackendPort adapter over a supabase client."""

    def __init__(self, client: Client, table: str = "issues") -> None:
        self._client = client
        self._table = table

    @classmethod
    def connect(cls, url: str, key: str, table: str = "issues") -> "SupabaseIssueBackend":
        return cls(create_client(url, key), table=table)

    def _execute(self, query) -> list[dict[str, Any]]:
        try:
            response = query.execute()
        except APIError as e:
            raise IssueBackendError(f"Supabase error: {e}") from e
        except httpx.HTTPError as e:
            raise IssueBackendError(f"Supabase unreachable: {e}") from e
        return list(response.data or [])

    def insert_issue(self, issue: NewIssue) -> Issue:
        payload = {
            "type": issue.type,
            "description": issue.description,
            "reporter_name": issue.reporter_name,
            "reporter_phone": issue.reporter_phone,
            "location": format_point(issue.location),
            "status": issue.status.value,
        }
        rows = self._execute(self._client.table(self._table).insert(payload))
        if not rows:
            raise IssueBackendError("Supabase insert returned no rows")
        LOGGER.debug("Inserted issue %s into %s", rows[0].get("id"), self._table)
        return row_to_issue(rows[0])

    def select_issues(
        self,
        status: Optional[IssueStatus] = None,
        issue_type: Optional[str] = None,
        created_since: Optional[datetime] = None,
    ) -> list[Issue]:
        query = self._client.table(self._table).select("*")
        if status is not None:
            query = query.eq("status", status.value)
        if issue_type is not None:
            query = query.eq("type", issue_type)
        if created_since is not None:
            query = query.gte("created_at", created_since.astimezone(timezone.utc).isoformat())
        rows = self._execute(query.order("created_at", desc=True))
        return [row_to_issue(row) for row in rows]

    def update_issue_status(self, issue_id: str, status: IssueStatus) -> Optional[Issue]:
        query = self._client.table(self._table).update({"status": status.value}).eq("id", issue_id)
        rows = self._execute(query)
        if not rows:
            return None
        return row_to_issue(rows[0])
