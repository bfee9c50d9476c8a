"""SQLite persistence helpers for submitted inspection records."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from utils.audit import log_audit
from utils.facility_db import facility_connection as _facility_connection

from .models import InspectionRecord, record_from_dict, record_to_dict


def _ensure_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS inspection_records (
            id TEXT PRIMARY KEY,
            facility_id TEXT NOT NULL,
            inspection_type TEXT NOT NULL,
            subject_id TEXT NOT NULL,
            subject_type TEXT NOT NULL,
            location TEXT NOT NULL,
            operator TEXT NOT NULL,
            inspection_date TEXT NOT NULL,
            status TEXT NOT NULL CHECK (status IN ('pass','fail')),
            result_label TEXT NOT NULL CHECK (result_label IN ('pass','conditional','fail')),
            score INTEGER NOT NULL CHECK (score BETWEEN 0 AND 100),
            fail_count INTEGER NOT NULL DEFAULT 0,
            critical_failed_count INTEGER NOT NULL DEFAULT 0,
            deficiency_count INTEGER NOT NULL DEFAULT 0,
            out_of_service INTEGER NOT NULL DEFAULT 0,
            follow_up_date TEXT NULL,
            checklist_json TEXT NOT NULL,
            findings_json TEXT NOT NULL,
            notes TEXT NULL,
            submitted_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_inspection_records_subject "
        "ON inspection_records(inspection_type, subject_id)"
    )


@contextmanager
def facility_connection(facility_id: int | str) -> Iterator[sqlite3.Connection]:
    with _facility_connection(facility_id, _ensure_schema) as conn:
        yield conn


def _row_to_record(row: sqlite3.Row) -> InspectionRecord:
    return record_from_dict(
        {
            "id": row["id"],
            "inspection_type": row["inspection_type"],
            "subject_id": row["subject_id"],
            "subject_type": row["subject_type"],
            "location": row["location"],
            "operator": row["operator"],
            "inspection_date": row["inspection_date"],
            "status": row["status"],
            "result_label": row["result_label"],
            "score": row["score"],
            "fail_count": row["fail_count"],
            "critical_failed_count": row["critical_failed_count"],
            "deficiency_count": row["deficiency_count"],
            "out_of_service": bool(row["out_of_service"]),
            "follow_up_date": row["follow_up_date"],
            "checklist": json.loads(row["checklist_json"]),
            "findings": json.loads(row["findings_json"]),
            "notes": row["notes"],
            "submitted_at": row["submitted_at"],
        }
    )


def insert_record(
    conn: sqlite3.Connection,
    facility_id: int | str,
    record: InspectionRecord,
) -> InspectionRecord:
    data = record_to_dict(record)
    conn.execute(
        """
        INSERT INTO inspection_records (
            id, facility_id, inspection_type, subject_id, subject_type, location, operator,
            inspection_date, status, result_label, score, fail_count, critical_failed_count,
            deficiency_count, out_of_service, follow_up_date, checklist_json, findings_json,
            notes, submitted_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            data["id"],
            str(facility_id),
            data["inspection_type"],
            data["subject_id"],
            data["subject_type"],
            data["location"],
            data["operator"],
            data["inspection_date"],
            data["status"],
            data["result_label"],
            data["score"],
            data["fail_count"],
            data["critical_failed_count"],
            data["deficiency_count"],
            int(data["out_of_service"]),
            data["follow_up_date"],
            json.dumps(data["checklist"], ensure_ascii=False),
            json.dumps(data["findings"], ensure_ascii=False),
            data["notes"] or None,
            data["submitted_at"],
        ),
    )
    log_audit(
        conn,
        facility_id=str(facility_id),
        entity="inspection_record",
        entity_id=record.id,
        action="create",
        new_value={
            "inspection_type": record.inspection_type,
            "subject_id": record.subject_id,
            "status": record.status.value,
            "score": record.score,
        },
    )
    stored = fetch_record(conn, record.id)
    assert stored is not None
    return stored


def fetch_record(conn: sqlite3.Connection, record_id: str) -> InspectionRecord | None:
    cur = conn.execute("SELECT * FROM inspection_records WHERE id = ?", (record_id,))
    row = cur.fetchone()
    return _row_to_record(row) if row else None


def list_records(
    conn: sqlite3.Connection,
    *,
    inspection_type: Optional[str] = None,
    subject_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 100,
) -> list[InspectionRecord]:
    clauses = []
    params: list = []
    if inspection_type:
        clauses.append("inspection_type = ?")
        params.append(inspection_type)
    if subject_id:
        clauses.append("subject_id = ?")
        params.append(subject_id)
    if status:
        clauses.append("status = ?")
        params.append(status)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    cur = conn.execute(
        f"SELECT * FROM inspection_records {where} "
        "ORDER BY inspection_date DESC, submitted_at DESC LIMIT ?",
        [*params, limit],
    )
    return [_row_to_record(row) for row in cur.fetchall()]
