"""Business orchestration for inspection sessions and their history."""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, List, Optional

from utils.audit import log_audit

from . import repository
from .checklists import get_checklist
from .findings import FindingDraft
from .models import Finding, InspectionMetadata, InspectionRecord, ItemStatus
from .policy import InspectionPolicy, load_policy
from .session import InspectionSession

logger = logging.getLogger(__name__)

# Open sessions keyed by session id; each belongs to one editing context.
_sessions: Dict[str, InspectionSession] = {}
_session_facility: Dict[str, str] = {}
_out_of_service_callbacks: List[Callable[[str, InspectionRecord], None]] = []


def register_out_of_service_callback(cb: Callable[[str, InspectionRecord], None]) -> None:
    """Register a callback fired with ``(facility_id, record)`` for failed inspections."""
    _out_of_service_callbacks.append(cb)


def clear_out_of_service_callbacks() -> None:
    _out_of_service_callbacks.clear()


def _notify_out_of_service(facility_id: str, record: InspectionRecord) -> None:
    for cb in list(_out_of_service_callbacks):
        try:
            cb(facility_id, record)
        except Exception as exc:
            logger.warning("Out-of-service callback %r failed: %s", cb, exc)


def open_session(
    facility_id: int | str,
    inspection_type: str,
    *,
    subject_id: str = "",
    location: str = "",
    operator: str = "",
    inspection_date: Optional[date] = None,
    policy: Optional[InspectionPolicy] = None,
) -> InspectionSession:
    definition = get_checklist(inspection_type)
    metadata = InspectionMetadata(
        subject_id=subject_id or "",
        location=location or "",
        operator=operator or "",
        inspection_date=inspection_date or date.today(),
        subject_type=definition.subject_type,
    )
    session = InspectionSession(definition, metadata, policy or load_policy())
    _sessions[session.id] = session
    _session_facility[session.id] = str(facility_id)
    logger.info(
        "Opened %s session %s for facility %s", inspection_type, session.id, facility_id
    )
    return session


def get_session(session_id: str) -> InspectionSession:
    try:
        return _sessions[session_id]
    except KeyError:
        raise KeyError(f"Session not found: {session_id}") from None


def facility_for_session(session_id: str) -> str:
    get_session(session_id)
    return _session_facility[session_id]


def list_sessions() -> list[InspectionSession]:
    return list(_sessions.values())


def abandon_session(session_id: str) -> None:
    """Drop an unsubmitted session; nothing is persisted."""
    get_session(session_id)
    _sessions.pop(session_id, None)
    _session_facility.pop(session_id, None)
    logger.info("Abandoned session %s", session_id)


def update_session(session_id: str, payload: dict) -> InspectionSession:
    session = get_session(session_id)
    metadata_keys = ("subject_id", "location", "operator", "inspection_date")
    changes = {key: payload[key] for key in metadata_keys if key in payload}
    if changes:
        session.update_metadata(**changes)
    if payload.get("notes") is not None:
        session.set_general_notes(payload["notes"])
    return session


def set_item(
    session_id: str,
    item_id: str,
    status: ItemStatus | str,
    notes: Optional[str] = None,
) -> FindingDraft | None:
    session = get_session(session_id)
    draft = session.set_status(item_id, status)
    if notes is not None:
        session.set_notes(item_id, notes)
    return draft


def save_finding(session_id: str, item_id: str, payload: dict) -> Finding:
    session = get_session(session_id)
    return session.save_finding(
        item_id,
        severity=payload.get("severity"),
        description=payload.get("description") or "",
        corrective_action=payload.get("corrective_action") or "",
    )


def update_finding(session_id: str, finding_id: str, payload: dict) -> Finding:
    return get_session(session_id).update_finding(finding_id, **payload)


def remove_finding(session_id: str, finding_id: str) -> Finding:
    return get_session(session_id).remove_finding(finding_id)


def discard_draft(session_id: str, item_id: str) -> None:
    get_session(session_id).discard_draft(item_id)


def submit_session(session_id: str) -> InspectionRecord:
    """Freeze and persist a session, then drop it from the registry.

    If persistence fails the session (and its frozen record) stays open so
    the same record can be resubmitted.
    """
    session = get_session(session_id)
    facility_id = _session_facility[session_id]
    record = session.submit()
    with repository.facility_connection(facility_id) as conn:
        existing = repository.fetch_record(conn, record.id)
        stored = existing or repository.insert_record(conn, facility_id, record)
        if stored.out_of_service and existing is None:
            log_audit(
                conn,
                facility_id=facility_id,
                entity="inspection_record",
                entity_id=stored.id,
                action="out_of_service",
                field="subject_id",
                new_value=stored.subject_id,
            )
    _sessions.pop(session_id, None)
    _session_facility.pop(session_id, None)
    if stored.out_of_service:
        logger.info(
            "%s %s failed inspection and is out of service",
            stored.subject_type,
            stored.subject_id,
        )
        _notify_out_of_service(facility_id, stored)
    return stored


def get_record(facility_id: int | str, record_id: str) -> InspectionRecord:
    with repository.facility_connection(facility_id) as conn:
        record = repository.fetch_record(conn, record_id)
    if record is None:
        raise KeyError(f"Inspection record not found: {record_id}")
    return record


def list_records(
    facility_id: int | str,
    *,
    inspection_type: Optional[str] = None,
    subject_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 100,
) -> list[InspectionRecord]:
    with repository.facility_connection(facility_id) as conn:
        return repository.list_records(
            conn,
            inspection_type=inspection_type,
            subject_id=subject_id,
            status=status,
            limit=limit,
        )
