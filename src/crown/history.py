"""Edit history recording and querying for crown."""

from __future__ import annotations

import json
import sqlite3

from crown.models import EditRecord


def record_create(
    conn: sqlite3.Connection,
    entity_type: str,
    entity_id: str,
    new_value: dict | None = None,
) -> None:
    """Record a CREATE operation in edit history."""
    conn.execute(
        "INSERT INTO edit_history (entity_type, entity_id, operation, new_value) "
        "VALUES (?, ?, 'CREATE', ?)",
        (entity_type, entity_id, json.dumps(new_value) if new_value else None),
    )


def query_history(
    conn: sqlite3.Connection,
    *,
    entity_type: str | None = None,
    entity_id: str | None = None,
    since: str | None = None,
) -> list[EditRecord]:
    """Query edit history with optional filters."""
    clauses: list[str] = []
    params: list[str] = []

    if entity_type is not None:
        clauses.append("entity_type = ?")
        params.append(entity_type)
    if entity_id is not None:
        clauses.append("entity_id = ?")
        params.append(entity_id)
    if since is not None:
        clauses.append("timestamp > ?")
        params.append(since)

    where = " AND ".join(clauses) if clauses else "1=1"
    sql = f"SELECT rowid, * FROM edit_history WHERE {where} ORDER BY rowid ASC"

    rows = conn.execute(sql, params).fetchall()
    return [
        EditRecord(
            id=row["rowid"],
            entity_type=row["entity_type"],
            entity_id=row["entity_id"],
            operation=row["operation"],
            new_value=row["new_value"],
            timestamp=row["timestamp"],
        )
        for row in rows
    ]
