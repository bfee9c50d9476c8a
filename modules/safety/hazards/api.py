"""FastAPI routes for hazard assessments."""

from __future__ import annotations

from io import BytesIO
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response, status
from fastapi.responses import JSONResponse, StreamingResponse

from . import pdf_export, service
from .models import HazardAssessment, HazardItem
from .risk_matrix import LIKELIHOOD_LABELS, RISK_BANDS, SEVERITY_LABELS, TOP_LEVEL, matrix
from .validators import (
    ApproveRequest,
    AssessmentCreate,
    AssessmentRead,
    AssessmentUpdate,
    HazardRead,
    HazardWrite,
    MatrixRead,
)

router = APIRouter(prefix="/api/safety/hazards", tags=["safety-hazards"])


def _not_found(exc: KeyError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc.args[0]) if exc.args else "not found")


def _invalid(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


def _level(level) -> Optional[str]:
    return level.value if level is not None else None


def _hazard_dict(hazard: HazardItem) -> dict:
    return {
        "id": hazard.id,
        "assessment_id": hazard.assessment_id,
        "order": hazard.order,
        "task_step": hazard.task_step,
        "hazard_description": hazard.hazard_description,
        "hazard_type": hazard.hazard_type,
        "potential_consequence": hazard.potential_consequence,
        "likelihood_before": hazard.likelihood_before,
        "severity_before": hazard.severity_before,
        "risk_score_before": hazard.risk_score_before,
        "risk_level_before": hazard.risk_level_before.value,
        "likelihood_after": hazard.likelihood_after,
        "severity_after": hazard.severity_after,
        "risk_score_after": hazard.risk_score_after,
        "risk_level_after": _level(hazard.risk_level_after),
        "risk_reduction": hazard.risk_reduction,
        "control_measures": [control.to_dict() for control in hazard.control_measures],
        "responsible_person": hazard.responsible_person,
        "is_accepted": hazard.is_accepted,
    }


def _assessment_read(assessment: HazardAssessment) -> AssessmentRead:
    return AssessmentRead.model_validate(
        {
            "id": assessment.id,
            "facility_id": assessment.facility_id,
            "assessment_number": assessment.assessment_number,
            "name": assessment.name,
            "assessment_type": assessment.assessment_type,
            "location": assessment.location,
            "task_description": assessment.task_description,
            "assessed_by": assessment.assessed_by,
            "status": assessment.status.value,
            "approval_blocked": assessment.approval_blocked,
            "approved_by": assessment.approved_by,
            "approved_at": assessment.approved_at,
            "overall_risk_level": _level(assessment.overall_risk_level),
            "residual_risk_level": _level(assessment.residual_risk_level),
            "required_ppe": list(assessment.required_ppe),
            "notes": assessment.notes,
            "created_at": assessment.created_at,
            "hazards": [_hazard_dict(h) for h in assessment.hazards],
        }
    )


@router.get("/matrix", response_model=MatrixRead)
def read_matrix() -> MatrixRead:
    bands = [{"max_score": max_score, "level": level.value} for max_score, level in RISK_BANDS]
    bands.append({"max_score": None, "level": TOP_LEVEL.value})
    return MatrixRead.model_validate(
        {
            "bands": bands,
            "likelihood_labels": LIKELIHOOD_LABELS,
            "severity_labels": SEVERITY_LABELS,
            "grid": [[level.value for level in row] for row in matrix()],
        }
    )


@router.get("/assessments", response_model=list[AssessmentRead])
def list_assessments(
    facility_id: str = Query(...),
    status_filter: Optional[str] = Query(
        None, alias="status", pattern="^(identified|assessed|mitigated|accepted|closed)$"
    ),
    risk_level: Optional[str] = Query(None, pattern="^(low|medium|high|critical)$"),
) -> list[AssessmentRead]:
    assessments = service.list_assessments(facility_id, status=status_filter, risk_level=risk_level)
    return [_assessment_read(a) for a in assessments]


@router.post("/assessments", response_model=AssessmentRead, status_code=status.HTTP_201_CREATED)
def create_assessment(payload: AssessmentCreate) -> AssessmentRead:
    try:
        assessment = service.create_assessment(payload.facility_id, payload.model_dump(exclude={"facility_id"}))
    except ValueError as exc:
        raise _invalid(exc)
    return _assessment_read(assessment)


@router.get("/assessments/{assessment_id}", response_model=AssessmentRead)
def read_assessment(assessment_id: int, facility_id: str = Query(...)) -> AssessmentRead:
    try:
        return _assessment_read(service.get_assessment(facility_id, assessment_id))
    except KeyError as exc:
        raise _not_found(exc)


@router.put("/assessments/{assessment_id}", response_model=AssessmentRead)
def update_assessment(
    assessment_id: int,
    payload: AssessmentUpdate,
    facility_id: str = Query(...),
) -> AssessmentRead:
    try:
        assessment = service.update_assessment_header(
            facility_id, assessment_id, payload.model_dump(exclude_unset=True)
        )
    except KeyError as exc:
        raise _not_found(exc)
    except ValueError as exc:
        raise _invalid(exc)
    return _assessment_read(assessment)


@router.post(
    "/assessments/{assessment_id}/hazards",
    response_model=HazardRead,
    status_code=status.HTTP_201_CREATED,
)
def create_hazard(assessment_id: int, payload: HazardWrite, facility_id: str = Query(...)) -> HazardRead:
    try:
        hazard = service.add_hazard(facility_id, assessment_id, payload.model_dump())
    except KeyError as exc:
        raise _not_found(exc)
    except ValueError as exc:
        raise _invalid(exc)
    return HazardRead.model_validate(_hazard_dict(hazard))


@router.put("/assessments/{assessment_id}/hazards/{hazard_id}", response_model=HazardRead)
def update_hazard(
    assessment_id: int,
    hazard_id: int,
    payload: HazardWrite,
    facility_id: str = Query(...),
) -> HazardRead:
    try:
        hazard = service.edit_hazard(facility_id, assessment_id, hazard_id, payload.model_dump())
    except KeyError as exc:
        raise _not_found(exc)
    except ValueError as exc:
        raise _invalid(exc)
    return HazardRead.model_validate(_hazard_dict(hazard))


@router.delete(
    "/assessments/{assessment_id}/hazards/{hazard_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_hazard(assessment_id: int, hazard_id: int, facility_id: str = Query(...)) -> Response:
    try:
        service.remove_hazard(facility_id, assessment_id, hazard_id)
    except KeyError as exc:
        raise _not_found(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/assessments/{assessment_id}/approve", response_model=AssessmentRead)
def approve(
    assessment_id: int,
    payload: ApproveRequest,
    facility_id: str = Query(...),
) -> Response:
    try:
        assessment = service.attempt_approval(facility_id, assessment_id, payload.approved_by)
    except KeyError as exc:
        raise _not_found(exc)
    except service.InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except service.ApprovalBlockedError as exc:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": "approval_blocked",
                "reason": "residual_risk_unrated" if exc.highest is None else "residual_risk_high_or_critical",
                "highest_residual_risk": exc.highest,
                "message": str(exc),
            },
        )
    return _assessment_read(assessment)


@router.post("/assessments/{assessment_id}/close", response_model=AssessmentRead)
def close(assessment_id: int, facility_id: str = Query(...)) -> AssessmentRead:
    try:
        assessment = service.close_assessment(facility_id, assessment_id)
    except KeyError as exc:
        raise _not_found(exc)
    except service.InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return _assessment_read(assessment)


@router.get("/assessments/{assessment_id}/export")
def export_pdf(assessment_id: int, facility_id: str = Query(...)) -> StreamingResponse:
    try:
        assessment = service.get_assessment(facility_id, assessment_id)
    except KeyError as exc:
        raise _not_found(exc)
    pdf_bytes = pdf_export.build_pdf(assessment=assessment)
    filename = f"{assessment.assessment_number}.pdf"
    return StreamingResponse(
        BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename={filename}"},
    )
