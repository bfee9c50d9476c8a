from __future__ import annotations

import sqlite3
import sys
from datetime import date
from importlib import reload
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3]))

import pytest

from modules.inspections.checklists import LADDER
from modules.inspections.models import InspectionMetadata, Verdict
from modules.inspections.session import InspectionSession
from utils.audit import fetch_audit_rows
from utils.state import AppState


@pytest.fixture()
def repo(tmp_path, monkeypatch):
    monkeypatch.setenv("FACILITY_DATA_DIR", str(tmp_path))
    from modules.inspections import repository

    reload(repository)
    AppState.set_active_user_id(12)
    yield repository
    AppState.clear()


def _record(subject_id="LAD-1", day=date(2024, 1, 5), **statuses):
    session = InspectionSession(
        LADDER,
        InspectionMetadata(subject_id=subject_id, location="Bay 2", operator="Kim", inspection_date=day),
    )
    for item_id in LADDER.item_ids():
        session.set_status(item_id, statuses.get(item_id, "pass"))
    for draft in session.pending_drafts():
        session.save_finding(draft.item_id, description="Damaged")
    return session.submit()


def test_insert_and_fetch_round_trip(repo, tmp_path):
    record = _record(side_rails="fail")
    with repo.facility_connection("plant-a") as conn:
        stored = repo.insert_record(conn, "plant-a", record)
    assert (tmp_path / "facilities" / "plant-a.db").exists()
    with repo.facility_connection("plant-a") as conn:
        loaded = repo.fetch_record(conn, record.id)
        audit = fetch_audit_rows(conn, entity="inspection_record", entity_id=record.id)
    assert loaded == stored
    assert loaded.status is Verdict.FAIL
    assert loaded.findings[0].description == "Damaged"
    assert audit[0]["action"] == "create"
    assert audit[0]["user_id"] == 12


def test_duplicate_record_rejected(repo):
    record = _record()
    with pytest.raises(sqlite3.IntegrityError):
        with repo.facility_connection("plant-a") as conn:
            repo.insert_record(conn, "plant-a", record)
            repo.insert_record(conn, "plant-a", record)


def test_list_records_filters_and_orders(repo):
    older = _record(day=date(2024, 1, 1))
    newer = _record(day=date(2024, 2, 1), clean="fail", labels="fail", rope_pulley="fail")
    other = _record(subject_id="LAD-2", day=date(2024, 3, 1))
    with repo.facility_connection("plant-a") as conn:
        for record in (older, newer, other):
            repo.insert_record(conn, "plant-a", record)
        lad1 = repo.list_records(conn, subject_id="LAD-1")
        failed = repo.list_records(conn, status="fail")
        everything = repo.list_records(conn, limit=2)
    assert [r.id for r in lad1] == [newer.id, older.id]
    assert [r.id for r in failed] == [newer.id]
    assert len(everything) == 2


def test_facilities_are_isolated(repo):
    record = _record()
    with repo.facility_connection("plant-a") as conn:
        repo.insert_record(conn, "plant-a", record)
    with repo.facility_connection("plant-b") as conn:
        assert repo.fetch_record(conn, record.id) is None
