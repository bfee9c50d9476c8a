"""FastAPI routes for checklist inspections."""

from __future__ import annotations

from io import BytesIO
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response, status
from fastapi.responses import JSONResponse, StreamingResponse

from . import pdf_export, service
from .checklists import checklist_types, get_checklist
from .findings import FindingDraft
from .models import InspectionRecord, StructuralIntegrityError, record_to_dict
from .session import InspectionSession, SessionLockedError, SubmissionBlockedError
from .validators import (
    ChecklistRead,
    FindingCreate,
    FindingRead,
    FindingUpdate,
    ItemUpdate,
    ItemUpdateResult,
    RecordRead,
    SessionCreate,
    SessionRead,
    SessionUpdate,
)

router = APIRouter(prefix="/api/inspections", tags=["inspections"])


def _not_found(exc: KeyError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc.args[0]) if exc.args else "not found")


def _conflict(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


def _draft_dict(draft: FindingDraft) -> dict:
    return {
        "item_id": draft.item_id,
        "category_id": draft.category_id,
        "category_name": draft.category_name,
        "item_text": draft.item_text,
        "severity": draft.severity.value,
        "description": draft.description,
        "corrective_action": draft.corrective_action,
    }


def _session_read(session: InspectionSession) -> SessionRead:
    evaluation = session.evaluation()
    return SessionRead.model_validate(
        {
            "id": session.id,
            "facility_id": service.facility_for_session(session.id),
            "inspection_type": session.definition.inspection_type,
            "subject_id": session.metadata.subject_id,
            "subject_type": session.metadata.subject_type,
            "location": session.metadata.location,
            "operator": session.metadata.operator,
            "inspection_date": session.metadata.inspection_date,
            "notes": session.general_notes,
            "responses": [
                {"item_id": r.item_id, "status": r.status.value, "notes": r.notes}
                for r in session.responses
            ],
            "findings": [finding.to_dict() for finding in session.findings],
            "pending_drafts": [_draft_dict(d) for d in session.pending_drafts()],
            "evaluation": {
                "total": evaluation.total,
                "progress_percent": evaluation.progress_percent,
                "pass_count": evaluation.pass_count,
                "fail_count": evaluation.fail_count,
                "na_count": evaluation.na_count,
                "unchecked_count": evaluation.unchecked_count,
                "critical_failed_count": evaluation.critical_failed_count,
                "verdict": evaluation.verdict.value,
                "score": evaluation.score,
                "quality_band": evaluation.quality_band.value,
            },
            "submission_problems": session.submission_problems(),
        }
    )


def _record_read(record: InspectionRecord) -> RecordRead:
    return RecordRead.model_validate(record_to_dict(record))


@router.get("/checklists", response_model=list[str])
def list_checklists() -> list[str]:
    return list(checklist_types())


@router.get("/checklists/{inspection_type}", response_model=ChecklistRead)
def read_checklist(inspection_type: str) -> ChecklistRead:
    try:
        definition = get_checklist(inspection_type)
    except KeyError as exc:
        raise _not_found(exc)
    return ChecklistRead.model_validate(definition)


@router.post("/sessions", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
def create_session(payload: SessionCreate) -> SessionRead:
    try:
        session = service.open_session(
            payload.facility_id,
            payload.inspection_type,
            subject_id=payload.subject_id,
            location=payload.location,
            operator=payload.operator,
            inspection_date=payload.inspection_date,
        )
    except KeyError as exc:
        raise _not_found(exc)
    return _session_read(session)


@router.get("/sessions/{session_id}", response_model=SessionRead)
def read_session(session_id: str) -> SessionRead:
    try:
        return _session_read(service.get_session(session_id))
    except KeyError as exc:
        raise _not_found(exc)


@router.put("/sessions/{session_id}", response_model=SessionRead)
def update_session(session_id: str, payload: SessionUpdate) -> SessionRead:
    try:
        session = service.update_session(session_id, payload.model_dump(exclude_unset=True))
    except KeyError as exc:
        raise _not_found(exc)
    except SessionLockedError as exc:
        raise _conflict(exc)
    return _session_read(session)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def abandon_session(session_id: str) -> Response:
    try:
        service.abandon_session(session_id)
    except KeyError as exc:
        raise _not_found(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/sessions/{session_id}/items/{item_id}", response_model=ItemUpdateResult)
def update_item(session_id: str, item_id: str, payload: ItemUpdate) -> ItemUpdateResult:
    try:
        draft = service.set_item(session_id, item_id, payload.status, payload.notes)
        session = service.get_session(session_id)
    except (StructuralIntegrityError, SessionLockedError) as exc:
        raise _conflict(exc)
    except KeyError as exc:
        raise _not_found(exc)
    return ItemUpdateResult.model_validate(
        {
            "session": _session_read(session),
            "draft": _draft_dict(draft) if draft is not None else None,
        }
    )


@router.post(
    "/sessions/{session_id}/findings",
    response_model=FindingRead,
    status_code=status.HTTP_201_CREATED,
)
def create_finding(session_id: str, payload: FindingCreate) -> FindingRead:
    try:
        finding = service.save_finding(session_id, payload.item_id, payload.model_dump())
    except SessionLockedError as exc:
        raise _conflict(exc)
    except KeyError as exc:
        raise _not_found(exc)
    return FindingRead.model_validate(finding.to_dict())


@router.patch("/sessions/{session_id}/findings/{finding_id}", response_model=FindingRead)
def edit_finding(session_id: str, finding_id: str, payload: FindingUpdate) -> FindingRead:
    try:
        finding = service.update_finding(
            session_id, finding_id, payload.model_dump(exclude_unset=True)
        )
    except SessionLockedError as exc:
        raise _conflict(exc)
    except KeyError as exc:
        raise _not_found(exc)
    return FindingRead.model_validate(finding.to_dict())


@router.delete(
    "/sessions/{session_id}/findings/{finding_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_finding(session_id: str, finding_id: str) -> Response:
    try:
        service.remove_finding(session_id, finding_id)
    except SessionLockedError as exc:
        raise _conflict(exc)
    except KeyError as exc:
        raise _not_found(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/sessions/{session_id}/drafts/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def discard_draft(session_id: str, item_id: str) -> Response:
    try:
        service.discard_draft(session_id, item_id)
    except SessionLockedError as exc:
        raise _conflict(exc)
    except KeyError as exc:
        raise _not_found(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/sessions/{session_id}/submit",
    response_model=RecordRead,
    status_code=status.HTTP_201_CREATED,
)
def submit_session(session_id: str) -> Response:
    try:
        record = service.submit_session(session_id)
    except SubmissionBlockedError as exc:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": "submission_blocked",
                "problems": exc.problems,
                "message": "Complete all checklist items and required fields before submitting.",
            },
        )
    except KeyError as exc:
        raise _not_found(exc)
    return _record_read(record)


@router.get("/records", response_model=list[RecordRead])
def list_records(
    facility_id: str = Query(...),
    inspection_type: Optional[str] = Query(None),
    subject_id: Optional[str] = Query(None),
    result: Optional[str] = Query(None, pattern="^(pass|fail)$"),
    limit: int = Query(100, ge=1, le=500),
) -> list[RecordRead]:
    records = service.list_records(
        facility_id,
        inspection_type=inspection_type,
        subject_id=subject_id,
        status=result,
        limit=limit,
    )
    return [_record_read(r) for r in records]


@router.get("/records/{record_id}", response_model=RecordRead)
def read_record(record_id: str, facility_id: str = Query(...)) -> RecordRead:
    try:
        return _record_read(service.get_record(facility_id, record_id))
    except KeyError as exc:
        raise _not_found(exc)


@router.get("/records/{record_id}/export")
def export_record(record_id: str, facility_id: str = Query(...)) -> StreamingResponse:
    try:
        record = service.get_record(facility_id, record_id)
    except KeyError as exc:
        raise _not_found(exc)
    pdf_bytes = pdf_export.build_pdf(record=record)
    filename = f"{record.inspection_type}_{record.subject_id}_{record.inspection_date.isoformat()}.pdf"
    return StreamingResponse(
        BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename={filename}"},
    )
