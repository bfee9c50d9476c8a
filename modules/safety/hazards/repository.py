"""SQLite persistence helpers for hazard assessments."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from utils.audit import log_audit, now_utc_iso
from utils.facility_db import facility_connection as _facility_connection

from .models import AssessmentStatus, ControlMeasure, HazardAssessment, HazardItem
from .risk_matrix import RISK_LEVELS

_LEVELS_SQL = ",".join(f"'{level.value}'" for level in RISK_LEVELS)
_STATUSES_SQL = ",".join(f"'{status.value}'" for status in AssessmentStatus)

HEADER_FIELDS = [
    "name",
    "assessment_type",
    "location",
    "task_description",
    "assessed_by",
    "required_ppe",
    "notes",
]

HAZARD_FIELDS = [
    "task_step",
    "hazard_description",
    "hazard_type",
    "potential_consequence",
    "likelihood_before",
    "severity_before",
    "likelihood_after",
    "severity_after",
    "control_measures",
    "responsible_person",
    "is_accepted",
]


def _ensure_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS hazard_assessments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            facility_id TEXT NOT NULL,
            assessment_number TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            assessment_type TEXT NOT NULL,
            location TEXT NOT NULL DEFAULT '',
            task_description TEXT NOT NULL DEFAULT '',
            assessed_by TEXT NULL,
            status TEXT NOT NULL DEFAULT 'identified' CHECK (status IN ({_STATUSES_SQL})),
            approval_blocked INTEGER NOT NULL DEFAULT 1,
            overall_risk_level TEXT NULL CHECK (overall_risk_level IS NULL OR overall_risk_level IN ({_LEVELS_SQL})),
            residual_risk_level TEXT NULL CHECK (residual_risk_level IS NULL OR residual_risk_level IN ({_LEVELS_SQL})),
            approved_by TEXT NULL,
            approved_at TEXT NULL,
            required_ppe_json TEXT NOT NULL DEFAULT '[]',
            notes TEXT NULL,
            created_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS hazard_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            assessment_id INTEGER NOT NULL REFERENCES hazard_assessments(id) ON DELETE CASCADE,
            item_order INTEGER NOT NULL,
            task_step TEXT NOT NULL,
            hazard_description TEXT NOT NULL,
            hazard_type TEXT NOT NULL DEFAULT 'other',
            potential_consequence TEXT NOT NULL DEFAULT '',
            likelihood_before INTEGER NOT NULL CHECK (likelihood_before BETWEEN 1 AND 5),
            severity_before INTEGER NOT NULL CHECK (severity_before BETWEEN 1 AND 5),
            risk_score_before INTEGER NOT NULL,
            risk_level_before TEXT NOT NULL CHECK (risk_level_before IN ({_LEVELS_SQL})),
            likelihood_after INTEGER NULL CHECK (likelihood_after IS NULL OR likelihood_after BETWEEN 1 AND 5),
            severity_after INTEGER NULL CHECK (severity_after IS NULL OR severity_after BETWEEN 1 AND 5),
            risk_score_after INTEGER NULL,
            risk_level_after TEXT NULL CHECK (risk_level_after IS NULL OR risk_level_after IN ({_LEVELS_SQL})),
            control_measures_json TEXT NOT NULL DEFAULT '[]',
            responsible_person TEXT NULL,
            is_accepted INTEGER NOT NULL DEFAULT 0
        )
        """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_hazard_items_assessment_id ON hazard_items(assessment_id)"
    )


@contextmanager
def facility_connection(facility_id: int | str) -> Iterator[sqlite3.Connection]:
    with _facility_connection(facility_id, _ensure_schema) as conn:
        yield conn


def _row_to_hazard(row: sqlite3.Row) -> HazardItem:
    return HazardItem(
        id=row["id"],
        assessment_id=row["assessment_id"],
        order=row["item_order"],
        task_step=row["task_step"],
        hazard_description=row["hazard_description"],
        hazard_type=row["hazard_type"],
        potential_consequence=row["potential_consequence"],
        likelihood_before=row["likelihood_before"],
        severity_before=row["severity_before"],
        likelihood_after=row["likelihood_after"],
        severity_after=row["severity_after"],
        control_measures=[
            ControlMeasure.from_dict(item) for item in json.loads(row["control_measures_json"] or "[]")
        ],
        responsible_person=row["responsible_person"],
        is_accepted=bool(row["is_accepted"]),
    )


def _row_to_assessment(conn: sqlite3.Connection, row: sqlite3.Row) -> HazardAssessment:
    return HazardAssessment(
        id=row["id"],
        facility_id=row["facility_id"],
        assessment_number=row["assessment_number"],
        name=row["name"],
        assessment_type=row["assessment_type"],
        location=row["location"],
        task_description=row["task_description"],
        assessed_by=row["assessed_by"],
        status=AssessmentStatus(row["status"]),
        approval_blocked=bool(row["approval_blocked"]),
        approved_by=row["approved_by"],
        approved_at=row["approved_at"],
        required_ppe=json.loads(row["required_ppe_json"] or "[]"),
        notes=row["notes"],
        created_at=row["created_at"],
        hazards=list_hazards(conn, row["id"]),
    )


def _next_assessment_number(conn: sqlite3.Connection) -> str:
    year = now_utc_iso()[:4]
    cur = conn.execute(
        "SELECT COUNT(*) FROM hazard_assessments WHERE assessment_number LIKE ?",
        (f"HA-{year}-%",),
    )
    return f"HA-{year}-{cur.fetchone()[0] + 1:04d}"


def fetch_assessment(conn: sqlite3.Connection, assessment_id: int) -> HazardAssessment | None:
    cur = conn.execute("SELECT * FROM hazard_assessments WHERE id = ?", (assessment_id,))
    row = cur.fetchone()
    return _row_to_assessment(conn, row) if row else None


def list_assessments(
    conn: sqlite3.Connection,
    *,
    status: Optional[str] = None,
    risk_level: Optional[str] = None,
) -> list[HazardAssessment]:
    clauses = []
    params: list[Any] = []
    if status:
        clauses.append("status = ?")
        params.append(status)
    if risk_level:
        clauses.append("overall_risk_level = ?")
        params.append(risk_level)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    cur = conn.execute(f"SELECT * FROM hazard_assessments {where} ORDER BY id DESC", params)
    return [_row_to_assessment(conn, row) for row in cur.fetchall()]


def insert_assessment(
    conn: sqlite3.Connection,
    facility_id: int | str,
    payload: dict[str, Any],
) -> HazardAssessment:
    number = payload.get("assessment_number") or _next_assessment_number(conn)
    cur = conn.execute(
        """
        INSERT INTO hazard_assessments (
            facility_id, assessment_number, name, assessment_type, location,
            task_description, assessed_by, required_ppe_json, notes, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            str(facility_id),
            number,
            payload["name"],
            payload.get("assessment_type") or "risk_assessment",
            payload.get("location") or "",
            payload.get("task_description") or "",
            payload.get("assessed_by"),
            json.dumps(payload.get("required_ppe") or []),
            payload.get("notes"),
            now_utc_iso(),
        ),
    )
    assessment_id = cur.lastrowid
    log_audit(
        conn,
        facility_id=str(facility_id),
        entity="hazard_assessment",
        entity_id=assessment_id,
        action="create",
        new_value={"assessment_number": number, "name": payload["name"]},
    )
    assessment = fetch_assessment(conn, assessment_id)
    assert assessment is not None
    return assessment


def update_assessment_fields(
    conn: sqlite3.Connection,
    assessment_id: int,
    updates: dict[str, Any],
) -> HazardAssessment:
    assessment = fetch_assessment(conn, assessment_id)
    if assessment is None:
        raise KeyError(assessment_id)
    if not updates:
        return assessment
    columns = {
        ("required_ppe_json" if key == "required_ppe" else key): (
            json.dumps(value or []) if key == "required_ppe" else value
        )
        for key, value in updates.items()
    }
    assignments = ", ".join(f"{column} = ?" for column in columns)
    conn.execute(
        f"UPDATE hazard_assessments SET {assignments} WHERE id = ?",
        [*columns.values(), assessment_id],
    )
    for key, new_val in updates.items():
        old_val = getattr(assessment, key)
        if old_val != new_val:
            log_audit(
                conn,
                facility_id=assessment.facility_id,
                entity="hazard_assessment",
                entity_id=assessment_id,
                action="update",
                field=key,
                old_value=old_val,
                new_value=new_val,
            )
    updated = fetch_assessment(conn, assessment_id)
    assert updated is not None
    return updated


def update_assessment_state(
    conn: sqlite3.Connection,
    assessment_id: int,
    *,
    status: AssessmentStatus,
    approval_blocked: bool,
    overall_risk_level: Optional[str],
    residual_risk_level: Optional[str],
) -> HazardAssessment:
    current = conn.execute(
        "SELECT facility_id, status, approval_blocked, overall_risk_level, residual_risk_level "
        "FROM hazard_assessments WHERE id = ?",
        (assessment_id,),
    ).fetchone()
    if current is None:
        raise KeyError(assessment_id)
    new_values = {
        "status": AssessmentStatus(status).value,
        "approval_blocked": int(approval_blocked),
        "overall_risk_level": overall_risk_level,
        "residual_risk_level": residual_risk_level,
    }
    conn.execute(
        "UPDATE hazard_assessments SET status = ?, approval_blocked = ?, "
        "overall_risk_level = ?, residual_risk_level = ? WHERE id = ?",
        (*new_values.values(), assessment_id),
    )
    for key, new_val in new_values.items():
        if current[key] != new_val:
            log_audit(
                conn,
                facility_id=current["facility_id"],
                entity="hazard_assessment",
                entity_id=assessment_id,
                action="risk_recompute",
                field=key,
                old_value=current[key],
                new_value=new_val,
            )
    updated = fetch_assessment(conn, assessment_id)
    assert updated is not None
    return updated


def mark_approved(conn: sqlite3.Connection, assessment_id: int, approved_by: Optional[str]) -> None:
    conn.execute(
        "UPDATE hazard_assessments SET approved_by = ?, approved_at = ? WHERE id = ?",
        (approved_by, now_utc_iso(), assessment_id),
    )


def list_hazards(conn: sqlite3.Connection, assessment_id: int) -> list[HazardItem]:
    cur = conn.execute(
        "SELECT * FROM hazard_items WHERE assessment_id = ? ORDER BY item_order, id",
        (assessment_id,),
    )
    return [_row_to_hazard(row) for row in cur.fetchall()]


def fetch_hazard(conn: sqlite3.Connection, hazard_id: int) -> HazardItem | None:
    cur = conn.execute("SELECT * FROM hazard_items WHERE id = ?", (hazard_id,))
    row = cur.fetchone()
    return _row_to_hazard(row) if row else None


def _hazard_columns(hazard: HazardItem) -> dict[str, Any]:
    return {
        "task_step": hazard.task_step,
        "hazard_description": hazard.hazard_description,
        "hazard_type": hazard.hazard_type,
        "potential_consequence": hazard.potential_consequence,
        "likelihood_before": hazard.likelihood_before,
        "severity_before": hazard.severity_before,
        "risk_score_before": hazard.risk_score_before,
        "risk_level_before": hazard.risk_level_before.value,
        "likelihood_after": hazard.likelihood_after,
        "severity_after": hazard.severity_after,
        "risk_score_after": hazard.risk_score_after,
        "risk_level_after": hazard.risk_level_after.value if hazard.risk_level_after else None,
        "control_measures_json": json.dumps([c.to_dict() for c in hazard.control_measures]),
        "responsible_person": hazard.responsible_person,
        "is_accepted": int(hazard.is_accepted),
    }


def _facility_for_assessment(conn: sqlite3.Connection, assessment_id: int) -> str:
    row = conn.execute(
        "SELECT facility_id FROM hazard_assessments WHERE id = ?", (assessment_id,)
    ).fetchone()
    if row is None:
        raise KeyError("assessment not found")
    return row[0]


def insert_hazard(conn: sqlite3.Connection, hazard: HazardItem) -> HazardItem:
    """Insert *hazard* (its ``id`` is ignored) and return the stored row."""
    facility_id = _facility_for_assessment(conn, hazard.assessment_id)
    if not hazard.order:
        row = conn.execute(
            "SELECT COALESCE(MAX(item_order), 0) FROM hazard_items WHERE assessment_id = ?",
            (hazard.assessment_id,),
        ).fetchone()
        hazard.order = row[0] + 1
    columns = _hazard_columns(hazard)
    placeholders = ", ".join(["?"] * (len(columns) + 2))
    cur = conn.execute(
        f"INSERT INTO hazard_items (assessment_id, item_order, {', '.join(columns)}) "
        f"VALUES ({placeholders})",
        [hazard.assessment_id, hazard.order, *columns.values()],
    )
    hazard_id = cur.lastrowid
    log_audit(
        conn,
        facility_id=facility_id,
        entity="hazard_item",
        entity_id=hazard_id,
        action="create",
        new_value={k: columns[k] for k in ("task_step", "risk_level_before", "risk_level_after")},
    )
    stored = fetch_hazard(conn, hazard_id)
    assert stored is not None
    return stored


def update_hazard(conn: sqlite3.Connection, hazard: HazardItem) -> HazardItem:
    existing = fetch_hazard(conn, hazard.id)
    if existing is None:
        raise KeyError(hazard.id)
    columns = _hazard_columns(hazard)
    assignments = ", ".join(f"{column} = ?" for column in columns)
    conn.execute(
        f"UPDATE hazard_items SET item_order = ?, {assignments} WHERE id = ?",
        [hazard.order or existing.order, *columns.values(), hazard.id],
    )
    updated = fetch_hazard(conn, hazard.id)
    assert updated is not None
    facility_id = _facility_for_assessment(conn, existing.assessment_id)
    for field in HAZARD_FIELDS:
        old_val = getattr(existing, field)
        new_val = getattr(updated, field)
        if old_val != new_val:
            log_audit(
                conn,
                facility_id=facility_id,
                entity="hazard_item",
                entity_id=hazard.id,
                action="update",
                field=field,
                old_value=old_val,
                new_value=new_val,
            )
    return updated


def delete_hazard(conn: sqlite3.Connection, hazard_id: int) -> HazardItem | None:
    hazard = fetch_hazard(conn, hazard_id)
    if hazard is None:
        return None
    conn.execute("DELETE FROM hazard_items WHERE id = ?", (hazard_id,))
    log_audit(
        conn,
        facility_id=_facility_for_assessment(conn, hazard.assessment_id),
        entity="hazard_item",
        entity_id=hazard_id,
        action="delete",
        old_value={"task_step": hazard.task_step, "hazard_description": hazard.hazard_description},
    )
    return hazard
