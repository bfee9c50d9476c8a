from __future__ import annotations

import sys
from importlib import reload
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3]))

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from utils.state import AppState

BASE = "/api/inspections"


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("FACILITY_DATA_DIR", str(tmp_path))
    from modules.inspections import api, repository, service

    reload(repository)
    reload(service)
    reload(api)
    AppState.set_active_user_id(7)
    app = FastAPI()
    app.include_router(api.router)
    yield TestClient(app)
    AppState.clear()


def _open(client, **overrides):
    payload = {
        "facility_id": "plant-a",
        "inspection_type": "ladder",
        "subject_id": "LAD-9",
        "location": "Warehouse",
        "operator": "Reyes",
        "inspection_date": "2024-04-02",
    }
    payload.update(overrides)
    resp = client.post(f"{BASE}/sessions", json=payload)
    assert resp.status_code == 201
    return resp.json()


def _answer_all(client, session, status="pass"):
    for item in session["responses"]:
        resp = client.put(
            f"{BASE}/sessions/{session['id']}/items/{item['item_id']}", json={"status": status}
        )
        assert resp.status_code == 200


def test_checklist_catalog(client):
    types = client.get(f"{BASE}/checklists").json()
    assert "forklift_preshift" in types
    ladder = client.get(f"{BASE}/checklists/ladder").json()
    assert ladder["subject_type"] == "ladder"
    assert sum(len(c["items"]) for c in ladder["categories"]) == 12
    assert client.get(f"{BASE}/checklists/crane").status_code == 404


def test_new_session_is_incomplete(client):
    session = _open(client)
    assert session["evaluation"]["verdict"] == "incomplete"
    assert session["evaluation"]["progress_percent"] == 0
    assert len(session["responses"]) == 12
    assert session["submission_problems"]


def test_fail_flow_and_submit(client):
    session = _open(client)
    _answer_all(client, session)
    resp = client.put(
        f"{BASE}/sessions/{session['id']}/items/spreaders", json={"status": "fail", "notes": "Bent"}
    )
    body = resp.json()
    assert body["draft"]["item_id"] == "spreaders"
    assert body["draft"]["severity"] == "high"

    finding = client.post(
        f"{BASE}/sessions/{session['id']}/findings",
        json={"item_id": "spreaders", "description": "Arm bent", "corrective_action": "Replace"},
    )
    assert finding.status_code == 201
    finding_id = finding.json()["id"]

    patched = client.patch(
        f"{BASE}/sessions/{session['id']}/findings/{finding_id}", json={"severity": "critical"}
    )
    assert patched.json()["severity"] == "critical"

    submitted = client.post(f"{BASE}/sessions/{session['id']}/submit")
    assert submitted.status_code == 201
    record = submitted.json()
    assert record["status"] == "fail"
    assert record["out_of_service"] is True
    assert record["follow_up_date"] == "2024-04-03"
    assert record["deficiency_count"] == 1

    assert client.get(f"{BASE}/sessions/{session['id']}").status_code == 404
    listed = client.get(f"{BASE}/records", params={"facility_id": "plant-a", "result": "fail"}).json()
    assert [r["id"] for r in listed] == [record["id"]]

    export = client.get(f"{BASE}/records/{record['id']}/export", params={"facility_id": "plant-a"})
    assert export.status_code == 200
    assert export.headers["content-type"] == "application/pdf"
    assert export.content.startswith(b"%PDF")


def test_submit_blocked_returns_problems(client):
    session = _open(client)
    resp = client.post(f"{BASE}/sessions/{session['id']}/submit")
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "submission_blocked"
    assert any("unchecked" in p for p in body["problems"])


def test_unknown_item_conflicts(client):
    session = _open(client)
    resp = client.put(f"{BASE}/sessions/{session['id']}/items/ghost", json={"status": "pass"})
    assert resp.status_code == 409


def test_discard_draft_and_abandon(client):
    session = _open(client)
    client.put(f"{BASE}/sessions/{session['id']}/items/labels", json={"status": "fail"})
    assert client.delete(f"{BASE}/sessions/{session['id']}/drafts/labels").status_code == 204
    assert client.delete(f"{BASE}/sessions/{session['id']}/drafts/labels").status_code == 404
    current = client.get(f"{BASE}/sessions/{session['id']}").json()
    assert current["pending_drafts"] == []
    assert current["findings"] == []
    assert client.delete(f"{BASE}/sessions/{session['id']}").status_code == 204
    assert client.get(f"{BASE}/sessions/{session['id']}").status_code == 404


def test_update_session_metadata(client):
    session = _open(client, operator="")
    resp = client.put(f"{BASE}/sessions/{session['id']}", json={"operator": "Reyes", "notes": "Annual"})
    body = resp.json()
    assert body["operator"] == "Reyes"
    assert body["notes"] == "Annual"


def test_record_not_found(client):
    resp = client.get(f"{BASE}/records/missing", params={"facility_id": "plant-a"})
    assert resp.status_code == 404


def test_export_record_with_markup_in_notes(client):
    session = _open(client, subject_id="LAD <9> & spare")
    _answer_all(client, session)
    client.put(f"{BASE}/sessions/{session['id']}", json={"notes": "valve <b>stuck & leaking"})
    record = client.post(f"{BASE}/sessions/{session['id']}/submit").json()
    export = client.get(f"{BASE}/records/{record['id']}/export", params={"facility_id": "plant-a"})
    assert export.status_code == 200
    assert export.content.startswith(b"%PDF")
