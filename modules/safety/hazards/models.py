"""Datamodel definitions for hazard assessments."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .risk_matrix import RiskLevel, highest_level, rate


class AssessmentStatus(str, Enum):
    IDENTIFIED = "identified"
    ASSESSED = "assessed"
    MITIGATED = "mitigated"
    ACCEPTED = "accepted"
    CLOSED = "closed"


ASSESSMENT_TYPES = {
    "jha": "Job Hazard Analysis",
    "risk_assessment": "Risk Assessment",
    "pre_task": "Pre-Task Analysis",
    "routine": "Routine Task",
    "change_management": "Management of Change",
}

HAZARD_TYPES = (
    "physical",
    "chemical",
    "biological",
    "ergonomic",
    "environmental",
    "psychological",
    "other",
)

# Hierarchy of controls, most to least effective
CONTROL_TYPES = {
    "elimination": "Elimination",
    "substitution": "Substitution",
    "engineering": "Engineering Controls",
    "administrative": "Administrative Controls",
    "ppe": "PPE",
}


@dataclass(slots=True)
class ControlMeasure:
    type: str
    description: str
    is_implemented: bool = False
    implemented_by: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "description": self.description,
            "is_implemented": self.is_implemented,
            "implemented_by": self.implemented_by,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ControlMeasure":
        return cls(
            type=data["type"],
            description=data.get("description", ""),
            is_implemented=bool(data.get("is_implemented", False)),
            implemented_by=data.get("implemented_by"),
        )


@dataclass(slots=True)
class HazardItem:
    id: int
    assessment_id: int
    order: int
    task_step: str
    hazard_description: str
    hazard_type: str
    potential_consequence: str
    likelihood_before: int
    severity_before: int
    likelihood_after: Optional[int] = None
    severity_after: Optional[int] = None
    control_measures: list[ControlMeasure] = field(default_factory=list)
    responsible_person: Optional[str] = None
    is_accepted: bool = False

    @property
    def risk_score_before(self) -> int:
        return rate(self.likelihood_before, self.severity_before).score

    @property
    def risk_level_before(self) -> RiskLevel:
        return rate(self.likelihood_before, self.severity_before).level

    @property
    def has_after_rating(self) -> bool:
        return self.likelihood_after is not None and self.severity_after is not None

    @property
    def risk_score_after(self) -> Optional[int]:
        if not self.has_after_rating:
            return None
        return rate(self.likelihood_after, self.severity_after).score

    @property
    def risk_level_after(self) -> Optional[RiskLevel]:
        if not self.has_after_rating:
            return None
        return rate(self.likelihood_after, self.severity_after).level

    @property
    def risk_reduction(self) -> Optional[int]:
        after = self.risk_score_after
        return None if after is None else self.risk_score_before - after


@dataclass(slots=True)
class HazardAssessment:
    id: int
    facility_id: str
    assessment_number: str
    name: str
    assessment_type: str
    location: str
    task_description: str
    assessed_by: Optional[str]
    status: AssessmentStatus
    approval_blocked: bool
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None
    required_ppe: list[str] = field(default_factory=list)
    notes: Optional[str] = None
    created_at: Optional[str] = None
    hazards: list[HazardItem] = field(default_factory=list)

    @property
    def overall_risk_level(self) -> Optional[RiskLevel]:
        return overall_risk_level(self.hazards)

    @property
    def residual_risk_level(self) -> Optional[RiskLevel]:
        return residual_risk_level(self.hazards)


def overall_risk_level(hazards: list[HazardItem]) -> Optional[RiskLevel]:
    """Worst pre-mitigation level across *hazards*."""
    return highest_level(h.risk_level_before for h in hazards)


def residual_risk_level(hazards: list[HazardItem]) -> Optional[RiskLevel]:
    """Worst post-mitigation level, only once every hazard has been re-rated."""
    if not hazards or not all(h.has_after_rating for h in hazards):
        return None
    return highest_level(h.risk_level_after for h in hazards)
