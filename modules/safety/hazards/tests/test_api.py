from __future__ import annotations

import sys
from importlib import reload
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[4]))

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from utils.state import AppState

BASE = "/api/safety/hazards"
FACILITY = {"facility_id": "plant-a"}


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("FACILITY_DATA_DIR", str(tmp_path))
    from modules.safety.hazards import api, repository, service

    reload(repository)
    reload(service)
    reload(api)
    AppState.set_active_user_id(77)
    app = FastAPI()
    app.include_router(api.router)
    yield TestClient(app)
    AppState.clear()


def _hazard(**overrides):
    payload = {
        "task_step": "Climb",
        "hazard_description": "Fall from height",
        "hazard_type": "physical",
        "likelihood_before": 4,
        "severity_before": 5,
        "likelihood_after": 2,
        "severity_after": 5,
        "control_measures": [{"type": "engineering", "description": "Guardrail"}],
    }
    payload.update(overrides)
    return payload


def _create(client, hazards=None):
    resp = client.post(
        f"{BASE}/assessments",
        json={"facility_id": "plant-a", "name": "Roof access", "hazards": hazards or []},
    )
    assert resp.status_code == 201
    return resp.json()


def test_matrix_endpoint(client):
    body = client.get(f"{BASE}/matrix").json()
    assert body["bands"][0] == {"max_score": 4, "level": "low"}
    assert body["bands"][-1] == {"max_score": None, "level": "critical"}
    assert body["grid"][0][0] == "low"
    assert body["grid"][4][4] == "critical"
    assert body["likelihood_labels"]["5"] == "Almost Certain"


def test_create_and_read(client):
    created = _create(client, [_hazard()])
    hazard = created["hazards"][0]
    assert hazard["risk_score_before"] == 20
    assert hazard["risk_level_before"] == "critical"
    assert hazard["risk_level_after"] == "high"
    assert hazard["risk_reduction"] == 10
    assert created["overall_risk_level"] == "critical"
    assert created["residual_risk_level"] == "high"
    assert created["status"] == "mitigated"

    fetched = client.get(f"{BASE}/assessments/{created['id']}", params=FACILITY).json()
    assert fetched["assessment_number"] == created["assessment_number"]
    listed = client.get(f"{BASE}/assessments", params={**FACILITY, "risk_level": "critical"}).json()
    assert [a["id"] for a in listed] == [created["id"]]


def test_invalid_ratings_rejected(client):
    resp = client.post(
        f"{BASE}/assessments",
        json={"facility_id": "plant-a", "name": "Bad", "hazards": [_hazard(likelihood_before=7)]},
    )
    assert resp.status_code == 422
    resp = client.post(
        f"{BASE}/assessments",
        json={"facility_id": "plant-a", "name": "Bad", "hazards": [_hazard(severity_after=None)]},
    )
    assert resp.status_code == 422


def test_approval_gate(client):
    created = _create(client, [_hazard()])
    blocked = client.post(f"{BASE}/assessments/{created['id']}/approve", params=FACILITY, json={"approved_by": "Safety Lead"})
    assert blocked.status_code == 422
    body = blocked.json()
    assert body["error"] == "approval_blocked"
    assert body["highest_residual_risk"] == "high"

    hazard_id = created["hazards"][0]["id"]
    edited = client.put(
        f"{BASE}/assessments/{created['id']}/hazards/{hazard_id}",
        params=FACILITY,
        json=_hazard(likelihood_after=1, severity_after=5),
    )
    assert edited.status_code == 200
    assert edited.json()["risk_level_after"] == "medium"

    approved = client.post(f"{BASE}/assessments/{created['id']}/approve", params=FACILITY, json={"approved_by": "Safety Lead"})
    assert approved.status_code == 200
    assert approved.json()["status"] == "accepted"
    closed = client.post(f"{BASE}/assessments/{created['id']}/close", params=FACILITY)
    assert closed.json()["status"] == "closed"
    again = client.post(f"{BASE}/assessments/{created['id']}/close", params=FACILITY)
    assert again.status_code == 409


def test_hazard_crud_and_header_update(client):
    created = _create(client)
    added = client.post(f"{BASE}/assessments/{created['id']}/hazards", params=FACILITY, json=_hazard())
    assert added.status_code == 201
    header = client.put(
        f"{BASE}/assessments/{created['id']}",
        params=FACILITY,
        json={"required_ppe": ["harness"], "assessed_by": "Okafor"},
    ).json()
    assert header["required_ppe"] == ["harness"]
    assert header["assessed_by"] == "Okafor"
    removed = client.delete(f"{BASE}/assessments/{created['id']}/hazards/{added.json()['id']}", params=FACILITY)
    assert removed.status_code == 204
    assert client.get(f"{BASE}/assessments/{created['id']}", params=FACILITY).json()["status"] == "identified"
    assert client.get(f"{BASE}/assessments/999", params=FACILITY).status_code == 404


def test_export_pdf(client):
    created = _create(client, [_hazard()])
    resp = client.get(f"{BASE}/assessments/{created['id']}/export", params=FACILITY)
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")


def test_header_update_ignores_nulls_and_rejects_blank_name(client):
    created = _create(client)
    url = f"{BASE}/assessments/{created['id']}"
    nulls = client.put(url, params=FACILITY, json={"name": None, "location": None, "task_description": None})
    assert nulls.status_code == 200
    assert nulls.json()["name"] == "Roof access"
    assert nulls.json()["location"] == ""

    blank = client.put(url, params=FACILITY, json={"name": "   "})
    assert blank.status_code == 422
    assert client.get(url, params=FACILITY).json()["name"] == "Roof access"
