from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Any

from utils.state import AppState


SCHEMA = """
CREATE TABLE IF NOT EXISTS audit_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    facility_id TEXT,
    user_id INTEGER,
    ts_iso TEXT,
    entity TEXT,
    entity_id TEXT,
    action TEXT,
    field TEXT,
    old_value TEXT,
    new_value TEXT
)
"""


def now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def ensure_audit_schema(conn: sqlite3.Connection) -> None:
    conn.execute(SCHEMA)
    cur = conn.execute("PRAGMA table_info(audit_logs)")
    existing = {row[1] for row in cur.fetchall()}
    # Older facility databases predate some of these columns
    required = {
        "facility_id": "TEXT",
        "user_id": "INTEGER",
        "ts_iso": "TEXT",
        "entity": "TEXT",
        "entity_id": "TEXT",
        "action": "TEXT",
        "field": "TEXT",
        "old_value": "TEXT",
        "new_value": "TEXT",
    }
    for column, col_type in required.items():
        if column not in existing:
            conn.execute(f"ALTER TABLE audit_logs ADD COLUMN {column} {col_type}")


def log_audit(
    conn: sqlite3.Connection,
    *,
    facility_id: str | None,
    entity: str,
    entity_id: Any,
    action: str,
    field: str | None = None,
    old_value: Any = None,
    new_value: Any = None,
) -> None:
    user_id = AppState.get_active_user_id()
    payload_old = None if old_value is None else str(old_value)
    payload_new = None if new_value is None else str(new_value)
    conn.execute(
        """
        INSERT INTO audit_logs (facility_id, user_id, ts_iso, entity, entity_id, action, field, old_value, new_value)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            facility_id,
            user_id,
            now_utc_iso(),
            entity,
            None if entity_id is None else str(entity_id),
            action,
            field,
            payload_old,
            payload_new,
        ),
    )


def fetch_audit_rows(
    conn: sqlite3.Connection,
    *,
    entity: str | None = None,
    entity_id: Any = None,
    limit: int = 50,
) -> list[sqlite3.Row]:
    clauses = []
    params: list[Any] = []
    if entity is not None:
        clauses.append("entity = ?")
        params.append(entity)
    if entity_id is not None:
        clauses.append("entity_id = ?")
        params.append(str(entity_id))
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    cur = conn.execute(
        f"SELECT * FROM audit_logs {where} ORDER BY id DESC LIMIT ?",
        [*params, limit],
    )
    return cur.fetchall()


__all__ = ["ensure_audit_schema", "log_audit", "fetch_audit_rows", "now_utc_iso"]
