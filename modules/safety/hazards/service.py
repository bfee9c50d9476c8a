"""Business rules for hazard assessment processing."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Optional, Sequence

from utils.audit import log_audit

from . import repository
from .models import (
    ASSESSMENT_TYPES,
    CONTROL_TYPES,
    HAZARD_TYPES,
    AssessmentStatus,
    ControlMeasure,
    HazardAssessment,
    HazardItem,
    overall_risk_level,
    residual_risk_level,
)
from .risk_matrix import RISK_LEVELS, RiskLevel, rate

logger = logging.getLogger(__name__)

# Residual levels that must be mitigated further before sign-off
BLOCKING_RESIDUAL_LEVELS = frozenset({RiskLevel.HIGH, RiskLevel.CRITICAL})


class ApprovalBlockedError(RuntimeError):
    """Raised when approval is attempted while residual risk is too high or unknown."""

    def __init__(self, highest: Optional[str]):
        if highest is None:
            message = "Approval is blocked until every hazard has a post-mitigation rating."
        else:
            message = "Approval is blocked until residual risk is Medium or Low."
        super().__init__(message)
        self.highest = highest


class InvalidTransitionError(RuntimeError):
    """Raised when a status change is not allowed from the current status."""


def approval_blocked_for(residual: Optional[RiskLevel]) -> bool:
    return residual is None or residual in BLOCKING_RESIDUAL_LEVELS


def derive_status(
    hazards: Sequence[HazardItem],
    current: AssessmentStatus,
) -> AssessmentStatus:
    residual = residual_risk_level(list(hazards))
    if not hazards:
        return AssessmentStatus.IDENTIFIED
    if residual is None:
        return AssessmentStatus.ASSESSED
    if current in (AssessmentStatus.ACCEPTED, AssessmentStatus.CLOSED) and not approval_blocked_for(residual):
        return current
    return AssessmentStatus.MITIGATED


def _validate_hazard_payload(payload: dict[str, Any]) -> None:
    for key in ("task_step", "hazard_description"):
        value = payload.get(key)
        if not value or not str(value).strip():
            raise ValueError(f"{key} is required")
    hazard_type = payload.get("hazard_type") or "other"
    if hazard_type not in HAZARD_TYPES:
        raise ValueError(f"Unknown hazard type: {hazard_type}")
    # Raises ValueError for out-of-range ratings
    rate(payload["likelihood_before"], payload["severity_before"])
    after = (payload.get("likelihood_after"), payload.get("severity_after"))
    if (after[0] is None) != (after[1] is None):
        raise ValueError("likelihood_after and severity_after must be set together")
    if after[0] is not None:
        rate(after[0], after[1])
    for control in payload.get("control_measures") or []:
        control_type = control["type"] if isinstance(control, dict) else control.type
        if control_type not in CONTROL_TYPES:
            raise ValueError(f"Unknown control type: {control_type}")


def _hazard_from_payload(assessment_id: int, payload: dict[str, Any], hazard_id: int = 0) -> HazardItem:
    _validate_hazard_payload(payload)
    controls = [
        c if isinstance(c, ControlMeasure) else ControlMeasure.from_dict(c)
        for c in payload.get("control_measures") or []
    ]
    return HazardItem(
        id=hazard_id,
        assessment_id=assessment_id,
        order=payload.get("order") or 0,
        task_step=payload["task_step"].strip(),
        hazard_description=payload["hazard_description"].strip(),
        hazard_type=payload.get("hazard_type") or "other",
        potential_consequence=(payload.get("potential_consequence") or "").strip(),
        likelihood_before=payload["likelihood_before"],
        severity_before=payload["severity_before"],
        likelihood_after=payload.get("likelihood_after"),
        severity_after=payload.get("severity_after"),
        control_measures=controls,
        responsible_person=payload.get("responsible_person"),
        is_accepted=bool(payload.get("is_accepted", False)),
    )


def _recompute_state(conn: sqlite3.Connection, assessment: HazardAssessment) -> HazardAssessment:
    hazards = repository.list_hazards(conn, assessment.id)
    overall = overall_risk_level(hazards)
    residual = residual_risk_level(hazards)
    status = derive_status(hazards, assessment.status)
    return repository.update_assessment_state(
        conn,
        assessment.id,
        status=status,
        approval_blocked=approval_blocked_for(residual),
        overall_risk_level=overall.value if overall else None,
        residual_risk_level=residual.value if residual else None,
    )


def _require_assessment(conn: sqlite3.Connection, assessment_id: int) -> HazardAssessment:
    assessment = repository.fetch_assessment(conn, assessment_id)
    if assessment is None:
        raise KeyError(f"Hazard assessment not found: {assessment_id}")
    return assessment


def create_assessment(facility_id: int | str, payload: dict[str, Any]) -> HazardAssessment:
    if not payload.get("name") or not str(payload["name"]).strip():
        raise ValueError("name is required")
    assessment_type = payload.get("assessment_type") or "risk_assessment"
    if assessment_type not in ASSESSMENT_TYPES:
        raise ValueError(f"Unknown assessment type: {assessment_type}")
    with repository.facility_connection(facility_id) as conn:
        assessment = repository.insert_assessment(
            conn, facility_id, dict(payload, assessment_type=assessment_type)
        )
        for hazard_payload in payload.get("hazards") or []:
            repository.insert_hazard(conn, _hazard_from_payload(assessment.id, hazard_payload))
        assessment = _recompute_state(conn, assessment)
    logger.info(
        "Created hazard assessment %s (%s) overall=%s",
        assessment.assessment_number,
        assessment.name,
        assessment.overall_risk_level.value if assessment.overall_risk_level else "none",
    )
    return assessment


def get_assessment(facility_id: int | str, assessment_id: int) -> HazardAssessment:
    with repository.facility_connection(facility_id) as conn:
        return _require_assessment(conn, assessment_id)


def list_assessments(
    facility_id: int | str,
    *,
    status: Optional[str] = None,
    risk_level: Optional[str] = None,
) -> list[HazardAssessment]:
    with repository.facility_connection(facility_id) as conn:
        return repository.list_assessments(conn, status=status, risk_level=risk_level)


def update_assessment_header(
    facility_id: int | str,
    assessment_id: int,
    payload: dict[str, Any],
) -> HazardAssessment:
    if payload.get("assessment_type") is not None and payload["assessment_type"] not in ASSESSMENT_TYPES:
        raise ValueError(f"Unknown assessment type: {payload['assessment_type']}")
    with repository.facility_connection(facility_id) as conn:
        _require_assessment(conn, assessment_id)
        updates = {
            key: payload[key]
            for key in repository.HEADER_FIELDS
            if payload.get(key) is not None
        }
        if "name" in updates:
            if not str(updates["name"]).strip():
                raise ValueError("name is required")
            updates["name"] = str(updates["name"]).strip()
        return repository.update_assessment_fields(conn, assessment_id, updates)


def add_hazard(facility_id: int | str, assessment_id: int, payload: dict[str, Any]) -> HazardItem:
    with repository.facility_connection(facility_id) as conn:
        assessment = _require_assessment(conn, assessment_id)
        hazard = repository.insert_hazard(conn, _hazard_from_payload(assessment_id, payload))
        _recompute_state(conn, assessment)
        return hazard


def edit_hazard(
    facility_id: int | str,
    assessment_id: int,
    hazard_id: int,
    payload: dict[str, Any],
) -> HazardItem:
    with repository.facility_connection(facility_id) as conn:
        assessment = _require_assessment(conn, assessment_id)
        existing = repository.fetch_hazard(conn, hazard_id)
        if existing is None or existing.assessment_id != assessment_id:
            raise KeyError(f"Hazard not found: {hazard_id}")
        hazard = _hazard_from_payload(assessment_id, payload, hazard_id=hazard_id)
        hazard.order = payload.get("order") or existing.order
        updated = repository.update_hazard(conn, hazard)
        _recompute_state(conn, assessment)
        return updated


def remove_hazard(facility_id: int | str, assessment_id: int, hazard_id: int) -> None:
    with repository.facility_connection(facility_id) as conn:
        assessment = _require_assessment(conn, assessment_id)
        existing = repository.fetch_hazard(conn, hazard_id)
        if existing is None or existing.assessment_id != assessment_id:
            raise KeyError(f"Hazard not found: {hazard_id}")
        repository.delete_hazard(conn, hazard_id)
        _recompute_state(conn, assessment)


def attempt_approval(
    facility_id: int | str,
    assessment_id: int,
    approved_by: Optional[str] = None,
) -> HazardAssessment:
    with repository.facility_connection(facility_id) as conn:
        current = _require_assessment(conn, assessment_id)
        if current.status is AssessmentStatus.CLOSED:
            raise InvalidTransitionError("Closed assessments cannot be re-approved")
        assessment = _recompute_state(conn, current)
        residual = assessment.residual_risk_level
        if assessment.approval_blocked:
            log_audit(
                conn,
                facility_id=assessment.facility_id,
                entity="hazard_assessment",
                entity_id=assessment.id,
                action="approval_attempt_blocked",
                field="residual_risk_level",
                old_value=residual.value if residual else None,
                new_value=residual.value if residual else None,
            )
            logger.info(
                "Approval blocked for %s (residual=%s)",
                assessment.assessment_number,
                residual.value if residual else "unrated",
            )
            # Commit the audit row before signalling the caller
            conn.commit()
            raise ApprovalBlockedError(residual.value if residual else None)
        repository.mark_approved(conn, assessment.id, approved_by)
        return repository.update_assessment_state(
            conn,
            assessment.id,
            status=AssessmentStatus.ACCEPTED,
            approval_blocked=False,
            overall_risk_level=assessment.overall_risk_level.value if assessment.overall_risk_level else None,
            residual_risk_level=residual.value if residual else None,
        )


def close_assessment(facility_id: int | str, assessment_id: int) -> HazardAssessment:
    with repository.facility_connection(facility_id) as conn:
        assessment = _require_assessment(conn, assessment_id)
        if assessment.status is not AssessmentStatus.ACCEPTED:
            raise InvalidTransitionError(
                f"Only accepted assessments can be closed (status is {assessment.status.value})"
            )
        return repository.update_assessment_state(
            conn,
            assessment.id,
            status=AssessmentStatus.CLOSED,
            approval_blocked=assessment.approval_blocked,
            overall_risk_level=assessment.overall_risk_level.value if assessment.overall_risk_level else None,
            residual_risk_level=assessment.residual_risk_level.value if assessment.residual_risk_level else None,
        )


def level_counts(assessments: Sequence[HazardAssessment]) -> dict[str, int]:
    counts = {level.value: 0 for level in RISK_LEVELS}
    for assessment in assessments:
        level = assessment.overall_risk_level
        if level is not None:
            counts[level.value] += 1
    return counts
