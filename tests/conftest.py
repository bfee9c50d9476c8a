from __future__ import annotations

import pytest

from utils.state import AppState


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    # Keep app.ini lookups and SQLite files out of the working tree.
    monkeypatch.setenv("FACILITY_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("COMPLIANCE_DEV", raising=False)
    AppState.clear()
    yield tmp_path
    AppState.clear()
