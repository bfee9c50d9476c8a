"""Pydantic schemas for inspection REST payloads."""

from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

StatusValue = Literal["unchecked", "pass", "fail", "na"]
SeverityValue = Literal["low", "medium", "high", "critical"]
VerdictValue = Literal["pass", "fail", "incomplete"]
BandValue = Literal["pass", "conditional", "fail"]


class ChecklistItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    text: str
    category: str
    critical: bool
    description: str = ""


class ChecklistCategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    items: list[ChecklistItemRead]


class ChecklistRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    inspection_type: str
    title: str
    subject_type: str
    categories: list[ChecklistCategoryRead]


class SessionCreate(BaseModel):
    facility_id: str = Field(min_length=1)
    inspection_type: str
    subject_id: str = ""
    location: str = ""
    operator: str = ""
    inspection_date: Optional[date] = None


class SessionUpdate(BaseModel):
    subject_id: Optional[str] = None
    location: Optional[str] = None
    operator: Optional[str] = None
    inspection_date: Optional[date] = None
    notes: Optional[str] = None


class ItemUpdate(BaseModel):
    status: StatusValue
    notes: Optional[str] = None


class FindingCreate(BaseModel):
    item_id: str
    severity: Optional[SeverityValue] = None
    description: str = ""
    corrective_action: str = ""


class FindingUpdate(BaseModel):
    severity: Optional[SeverityValue] = None
    description: Optional[str] = None
    corrective_action: Optional[str] = None

    @field_validator("description", "corrective_action")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else value


class FindingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    item_id: str
    category_id: str
    category_name: str
    item_text: str
    severity: SeverityValue
    description: str
    corrective_action: str
    created_at: str


class FindingDraftRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: str
    category_id: str
    category_name: str
    item_text: str
    severity: SeverityValue
    description: str
    corrective_action: str


class ItemResponseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: str
    status: StatusValue
    notes: str


class EvaluationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    progress_percent: int = Field(ge=0, le=100)
    pass_count: int
    fail_count: int
    na_count: int
    unchecked_count: int
    critical_failed_count: int
    verdict: VerdictValue
    score: int = Field(ge=0, le=100)
    quality_band: BandValue


class SessionRead(BaseModel):
    id: str
    facility_id: str
    inspection_type: str
    subject_id: str
    subject_type: str
    location: str
    operator: str
    inspection_date: date
    notes: str
    responses: list[ItemResponseRead]
    findings: list[FindingRead]
    pending_drafts: list[FindingDraftRead]
    evaluation: EvaluationRead
    submission_problems: list[str]


class ItemUpdateResult(BaseModel):
    session: SessionRead
    draft: Optional[FindingDraftRead] = None


class RecordRead(BaseModel):
    id: str
    inspection_type: str
    subject_id: str
    subject_type: str
    location: str
    operator: str
    inspection_date: date
    status: Literal["pass", "fail"]
    result_label: BandValue
    score: int = Field(ge=0, le=100)
    fail_count: int
    critical_failed_count: int
    deficiency_count: int
    out_of_service: bool
    follow_up_date: Optional[date]
    checklist: dict
    findings: list[FindingRead]
    notes: str
    submitted_at: str
