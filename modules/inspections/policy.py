"""Named thresholds consumed by the verdict engine and finding generator."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any

from utils.app_settings import env_overrides, read_section

from .models import FindingSeverity

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InspectionPolicy:
    max_non_critical_failures_allowed: int = 2
    pass_score_threshold: int = 90
    conditional_score_threshold: int = 70
    default_finding_severity: FindingSeverity = FindingSeverity.HIGH
    urgent_follow_up_days: int = 1
    standard_follow_up_days: int = 7
    urgent_finding_severities: frozenset[FindingSeverity] = frozenset(
        {FindingSeverity.HIGH, FindingSeverity.CRITICAL}
    )

    def __post_init__(self) -> None:
        if self.max_non_critical_failures_allowed < 0:
            raise ValueError("max_non_critical_failures_allowed must be >= 0")
        if not 0 <= self.conditional_score_threshold <= self.pass_score_threshold <= 100:
            raise ValueError(
                "score thresholds must satisfy 0 <= conditional <= pass <= 100"
            )
        if self.urgent_follow_up_days < 0 or self.standard_follow_up_days < 0:
            raise ValueError("follow-up offsets must be >= 0")


DEFAULT_POLICY = InspectionPolicy()


def _coerce(name: str, raw: str) -> Any:
    if name == "default_finding_severity":
        return FindingSeverity(raw.lower())
    if name == "urgent_finding_severities":
        return frozenset(
            FindingSeverity(part.strip().lower()) for part in raw.split(",") if part.strip()
        )
    return int(raw)


def load_policy(base: InspectionPolicy = DEFAULT_POLICY) -> InspectionPolicy:
    """Apply ``[inspection]`` INI values, then ``INSPECTION_*`` env vars, to *base*."""
    known = {f.name for f in fields(InspectionPolicy)}
    raw_values: dict[str, str] = {}
    raw_values.update(read_section("inspection"))
    raw_values.update(env_overrides("inspection"))

    changes: dict[str, Any] = {}
    for name, raw in raw_values.items():
        if name not in known:
            logger.warning("Ignoring unknown inspection setting %r", name)
            continue
        try:
            changes[name] = _coerce(name, raw)
        except ValueError:
            logger.warning("Ignoring invalid value %r for inspection setting %r", raw, name)
    if not changes:
        return base
    try:
        return replace(base, **changes)
    except ValueError as exc:
        logger.warning("Inspection settings rejected (%s); using defaults", exc)
        return base


__all__ = ["InspectionPolicy", "DEFAULT_POLICY", "load_policy"]
