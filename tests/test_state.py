import sys
from pathlib import Path
import logging

sys.path.append(str(Path(__file__).resolve().parents[1]))
from utils.state import AppState


def test_active_user_id():
    assert AppState.get_active_user_id() is None
    AppState.set_active_user_id("user1")
    assert AppState.get_active_user_id() == "user1"


def test_clear_resets_user():
    AppState.set_active_user_id(3)
    AppState.clear()
    assert AppState.get_active_user_id() is None


def test_user_switch_is_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="utils.state"):
        AppState.set_active_user_id(4)
        AppState.set_active_user_id(9)
    assert "set_active_user_id(9) (from 4)" in caplog.text
