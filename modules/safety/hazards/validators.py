"""Pydantic schemas for hazard assessment REST payloads."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

RiskLevelValue = Literal["low", "medium", "high", "critical"]
StatusValue = Literal["identified", "assessed", "mitigated", "accepted", "closed"]
AssessmentTypeValue = Literal["jha", "risk_assessment", "pre_task", "routine", "change_management"]
HazardTypeValue = Literal[
    "physical", "chemical", "biological", "ergonomic", "environmental", "psychological", "other"
]
ControlTypeValue = Literal["elimination", "substitution", "engineering", "administrative", "ppe"]


class ControlMeasureIn(BaseModel):
    type: ControlTypeValue
    description: str
    is_implemented: bool = False
    implemented_by: Optional[str] = None


class HazardWrite(BaseModel):
    task_step: str
    hazard_description: str
    hazard_type: HazardTypeValue = "other"
    potential_consequence: str = ""
    likelihood_before: int = Field(ge=1, le=5)
    severity_before: int = Field(ge=1, le=5)
    likelihood_after: Optional[int] = Field(default=None, ge=1, le=5)
    severity_after: Optional[int] = Field(default=None, ge=1, le=5)
    control_measures: list[ControlMeasureIn] = Field(default_factory=list)
    responsible_person: Optional[str] = None
    is_accepted: bool = False
    order: Optional[int] = Field(default=None, ge=1)

    @field_validator("task_step", "hazard_description")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Field is required")
        return value.strip()

    @model_validator(mode="after")
    def after_pair(self) -> "HazardWrite":
        if (self.likelihood_after is None) != (self.severity_after is None):
            raise ValueError("likelihood_after and severity_after must be set together")
        return self


class AssessmentCreate(BaseModel):
    facility_id: str = Field(min_length=1)
    name: str
    assessment_type: AssessmentTypeValue = "risk_assessment"
    location: str = ""
    task_description: str = ""
    assessed_by: Optional[str] = None
    required_ppe: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    hazards: list[HazardWrite] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Field is required")
        return value.strip()


class AssessmentUpdate(BaseModel):
    name: Optional[str] = None
    assessment_type: Optional[AssessmentTypeValue] = None
    location: Optional[str] = None
    task_description: Optional[str] = None
    assessed_by: Optional[str] = None
    required_ppe: Optional[list[str]] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if not value.strip():
            raise ValueError("Field is required")
        return value.strip()


class ApproveRequest(BaseModel):
    approved_by: Optional[str] = None


class ControlMeasureRead(BaseModel):
    type: ControlTypeValue
    description: str
    is_implemented: bool
    implemented_by: Optional[str]


class HazardRead(BaseModel):
    id: int
    assessment_id: int
    order: int
    task_step: str
    hazard_description: str
    hazard_type: str
    potential_consequence: str
    likelihood_before: int
    severity_before: int
    risk_score_before: int
    risk_level_before: RiskLevelValue
    likelihood_after: Optional[int]
    severity_after: Optional[int]
    risk_score_after: Optional[int]
    risk_level_after: Optional[RiskLevelValue]
    risk_reduction: Optional[int]
    control_measures: list[ControlMeasureRead]
    responsible_person: Optional[str]
    is_accepted: bool


class AssessmentRead(BaseModel):
    id: int
    facility_id: str
    assessment_number: str
    name: str
    assessment_type: str
    location: str
    task_description: str
    assessed_by: Optional[str]
    status: StatusValue
    approval_blocked: bool
    approved_by: Optional[str]
    approved_at: Optional[str]
    overall_risk_level: Optional[RiskLevelValue]
    residual_risk_level: Optional[RiskLevelValue]
    required_ppe: list[str]
    notes: Optional[str]
    created_at: Optional[str]
    hazards: list[HazardRead]


class RiskBandRead(BaseModel):
    max_score: Optional[int]
    level: RiskLevelValue


class MatrixRead(BaseModel):
    bands: list[RiskBandRead]
    likelihood_labels: dict[int, str]
    severity_labels: dict[int, str]
    grid: list[list[RiskLevelValue]]
