"""SQLite storage adapter.

Implements the core KeyValuePort (chat transcript and feed documents) and the
IssueBackendPort (local issue table) using a simple SQLite database.
"""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Optional

from core.models import Issue, IssueStatus, Location, NewIssue


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the key-value and issue ports."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - kv: one JSON document per logical key (transcript, feed)
        - issues: locally held incident reports for the admin dashboard
        """

        with self._connect() as conn:
            # kv holds whole documents; every write replaces the value.
            # Fields:
            # - key: logical collection name (PRIMARY KEY)
            # - value: JSON text of the full collection
            # - updated_at: timestamp of the last overwrite
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )
            # issues mirrors the hosted backend table so both backends return
            # the same rows. Location is split into lat/lng columns.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS issues (
                    id TEXT PRIMARY KEY,
                    type TEXT NOT NULL,
                    description TEXT NOT NULL,
                    reporter_name TEXT,
                    reporter_phone TEXT,
                    lat REAL NOT NULL,
                    lng REAL NOT NULL,
                    status TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )

    def get_value(self, key: str) -> Optional[str]:
        """Return the stored document for a key, if any."""

        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set_value(self, key: str, value: str) -> None:
        """Upsert the full document for a key."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO kv (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, now.isoformat()),
            )

    @staticmethod
    def _row_to_issue(row: sqlite3.Row) -> Issue:
        return Issue(
            id=row["id"],
            type=row["type"],
            description=row["description"],
            location=Location(lat=row["lat"], lng=row["lng"]),
            status=IssueStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            reporter_name=row["reporter_name"],
            reporter_phone=row["reporter_phone"],
        )

    def _get_issue(self, conn: sqlite3.Connection, issue_id: str) -> Optional[Issue]:
        row = conn.execute("SELECT * FROM issues WHERE id = ?", (issue_id,)).fetchone()
        return self._row_to_issue(row) if row else None

    def insert_issue(self, issue: NewIssue) -> Issue:
        """Insert a new issue and return it with its generated id."""

        issue_id = uuid.uuid4().hex
        created_at = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO issues (
                    id,
                    type,
                    description,
                    reporter_name,
                    reporter_phone,
                    lat,
                    lng,
                    status,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    issue_id,
                    issue.type,
                    issue.description,
                    issue.reporter_name,
                    issue.reporter_phone,
                    issue.location.lat,
                    issue.location.lng,
                    issue.status.value,
                    created_at.isoformat(),
                ),
            )
            return self._get_issue(conn, issue_id)

    def select_issues(
        self,
        status: Optional[IssueStatus] = None,
        issue_type: Optional[str] = None,
        created_since: Optional[datetime] = None,
    ) -> list[Issue]:
        """Return issues matching all given filters, newest first."""

        clauses: list[str] = []
        params: list[str] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if issue_type is not None:
            clauses.append("type = ?")
            params.append(issue_type)
        if created_since is not None:
            clauses.append("created_at >= ?")
            params.append(created_since.astimezone(timezone.utc).isoformat())
        query = "SELECT * FROM issues"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY created_at DESC"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_issue(row) for row in rows]

    def update_issue_status(self, issue_id: str, status: IssueStatus) -> Optional[Issue]:
        """Set one issue's status; returns None when the id is unknown."""

        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE issues SET status = ? WHERE id = ?",
                (status.value, issue_id),
            )
            if cur.rowcount == 0:
                return None
            return self._get_issue(conn, issue_id)
