"""Per-facility SQLite files shared by the inspection and hazard repositories."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from utils.app_settings import data_dir
from utils.audit import ensure_audit_schema


def db_path_for_facility(facility_id: int | str) -> Path:
    """Return ``<data>/facilities/<facility_id>.db``.

    The identifier is lightly sanitised so it can be used as a file name.
    """
    safe_id = str(facility_id).strip().replace("/", "-").replace("\\", "-")
    if not safe_id:
        raise ValueError("facility_id is required")
    return data_dir() / "facilities" / f"{safe_id}.db"


def connect(path: Path) -> sqlite3.Connection:
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def facility_connection(
    facility_id: int | str,
    ensure_schema: Callable[[sqlite3.Connection], None],
) -> Iterator[sqlite3.Connection]:
    """Open the facility database, apply *ensure_schema*, commit or roll back."""
    conn = connect(db_path_for_facility(facility_id))
    try:
        ensure_schema(conn)
        ensure_audit_schema(conn)
        conn.commit()
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


__all__ = ["db_path_for_facility", "connect", "facility_connection"]
