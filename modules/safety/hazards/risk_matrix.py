"""Likelihood x severity scoring shared by every hazard view.

Ratings are ordinal integers from 1 (rare / negligible) to 5 (almost
certain / catastrophic). ``RISK_BANDS`` is the single score -> level table;
anything displaying Low/Medium/High/Critical must go through it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return RISK_ORDER[self]

    @property
    def label(self) -> str:
        return self.value.title()


RISK_LEVELS: Sequence[RiskLevel] = (
    RiskLevel.LOW,
    RiskLevel.MEDIUM,
    RiskLevel.HIGH,
    RiskLevel.CRITICAL,
)
RISK_ORDER = {level: index for index, level in enumerate(RISK_LEVELS)}

RATING_MIN = 1
RATING_MAX = 5

LIKELIHOOD_LABELS = {
    1: "Rare",
    2: "Unlikely",
    3: "Possible",
    4: "Likely",
    5: "Almost Certain",
}

SEVERITY_LABELS = {
    1: "Negligible",
    2: "Minor",
    3: "Moderate",
    4: "Major",
    5: "Catastrophic",
}

# (max score inclusive, level); scores above the last bound are critical
RISK_BANDS: Sequence[tuple[int, RiskLevel]] = (
    (4, RiskLevel.LOW),
    (9, RiskLevel.MEDIUM),
    (16, RiskLevel.HIGH),
)
TOP_LEVEL = RiskLevel.CRITICAL


@dataclass(frozen=True, slots=True)
class RiskRating:
    likelihood: int
    severity: int
    score: int
    level: RiskLevel


def _check_rating(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer rating, got {value!r}")
    if not RATING_MIN <= value <= RATING_MAX:
        raise ValueError(f"{name} must be between {RATING_MIN} and {RATING_MAX}, got {value}")
    return value


def risk_score(likelihood: int, severity: int) -> int:
    return _check_rating("likelihood", likelihood) * _check_rating("severity", severity)


def risk_level(score: int) -> RiskLevel:
    if score < RATING_MIN * RATING_MIN or score > RATING_MAX * RATING_MAX:
        raise ValueError(f"Risk score out of range: {score}")
    for max_score, level in RISK_BANDS:
        if score <= max_score:
            return level
    return TOP_LEVEL


def rate(likelihood: int, severity: int) -> RiskRating:
    score = risk_score(likelihood, severity)
    return RiskRating(likelihood=likelihood, severity=severity, score=score, level=risk_level(score))


def highest_level(levels: Iterable[RiskLevel | str]) -> Optional[RiskLevel]:
    """Ordinal max of *levels*; ``None`` for an empty iterable."""
    highest: Optional[RiskLevel] = None
    for raw in levels:
        level = RiskLevel(raw)
        if highest is None or RISK_ORDER[level] > RISK_ORDER[highest]:
            highest = level
    return highest


def matrix() -> list[list[RiskLevel]]:
    """Rows by likelihood 1..5, columns by severity 1..5."""
    return [
        [risk_level(likelihood * severity) for severity in range(RATING_MIN, RATING_MAX + 1)]
        for likelihood in range(RATING_MIN, RATING_MAX + 1)
    ]


__all__ = [
    "RiskLevel",
    "RiskRating",
    "RISK_LEVELS",
    "RISK_ORDER",
    "RISK_BANDS",
    "RATING_MIN",
    "RATING_MAX",
    "LIKELIHOOD_LABELS",
    "SEVERITY_LABELS",
    "risk_score",
    "risk_level",
    "rate",
    "highest_level",
    "matrix",
]
