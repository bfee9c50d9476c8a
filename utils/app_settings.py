"""Application settings shared by the inspection and hazard modules.

Settings come from two places, in order of precedence:

1. Environment variables (``FACILITY_DATA_DIR``, ``COMPLIANCE_DEV`` and
   ``INSPECTION_<FIELD>`` overrides).
2. An optional INI file at ``<FACILITY_DATA_DIR>/app.ini``.

The INI may contain an ``[app]`` section with ``dev = true/false/1/0`` and an
``[inspection]`` section whose keys mirror the fields of
:class:`modules.inspections.policy.InspectionPolicy`.
"""

from __future__ import annotations

import configparser
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def data_dir() -> Path:
    """Return the root directory for SQLite files and ``app.ini``."""
    return Path(os.environ.get("FACILITY_DATA_DIR", "data"))


def _read_ini() -> configparser.ConfigParser | None:
    ini_path = data_dir() / "app.ini"
    if not ini_path.exists():
        return None
    cp = configparser.ConfigParser()
    try:
        cp.read(ini_path)
    except configparser.Error as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", ini_path, exc)
        return None
    return cp


def read_section(name: str) -> dict[str, str]:
    """Return the raw key/value pairs of one INI section (empty if absent)."""
    cp = _read_ini()
    if cp is None or not cp.has_section(name):
        return {}
    return {key: value.strip() for key, value in cp.items(name)}


def env_overrides(prefix: str) -> dict[str, str]:
    """Collect ``<PREFIX>_<KEY>`` environment variables as lower-case keys."""
    marker = f"{prefix.upper()}_"
    return {
        key[len(marker):].lower(): value.strip()
        for key, value in os.environ.items()
        if key.startswith(marker)
    }


def is_dev_mode() -> bool:
    if str(os.environ.get("COMPLIANCE_DEV", "0")).strip().lower() in _TRUTHY:
        return True
    return read_section("app").get("dev", "0").lower() in _TRUTHY


__all__ = ["data_dir", "read_section", "env_overrides", "is_dev_mode"]
