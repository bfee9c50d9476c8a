import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))
from utils import app_settings
from utils.facility_db import db_path_for_facility, facility_connection

import pytest


def test_data_dir_follows_env(isolated_settings):
    assert app_settings.data_dir() == isolated_settings


def test_read_section_missing_file():
    assert app_settings.read_section("inspection") == {}


def test_read_section_and_dev_flag(isolated_settings):
    (isolated_settings / "app.ini").write_text(
        "[app]\ndev = yes\n\n[inspection]\npass_score_threshold = 92\n", encoding="utf-8"
    )
    assert app_settings.read_section("inspection") == {"pass_score_threshold": "92"}
    assert app_settings.is_dev_mode()


def test_env_dev_flag(monkeypatch):
    assert not app_settings.is_dev_mode()
    monkeypatch.setenv("COMPLIANCE_DEV", "1")
    assert app_settings.is_dev_mode()


def test_env_overrides_are_lower_cased(monkeypatch):
    monkeypatch.setenv("INSPECTION_PASS_SCORE_THRESHOLD", " 80 ")
    assert app_settings.env_overrides("inspection")["pass_score_threshold"] == "80"


def test_facility_db_path(isolated_settings):
    assert db_path_for_facility("north/yard") == isolated_settings / "facilities" / "north-yard.db"
    with pytest.raises(ValueError):
        db_path_for_facility("  ")


def test_facility_connection_rolls_back(isolated_settings):
    def schema(conn):
        conn.execute("CREATE TABLE IF NOT EXISTS t (v INTEGER)")

    with pytest.raises(RuntimeError):
        with facility_connection("plant-a", schema) as conn:
            conn.execute("INSERT INTO t (v) VALUES (1)")
            raise RuntimeError("abort")
    with facility_connection("plant-a", schema) as conn:
        assert conn.execute("SELECT COUNT(*) FROM t").fetchone()[0] == 0
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert "audit_logs" in tables
