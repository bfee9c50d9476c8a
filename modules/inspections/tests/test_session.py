from __future__ import annotations

import json
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3]))

import pytest

from modules.inspections.checklists import FORKLIFT_PRESHIFT, LADDER
from modules.inspections.models import (
    FindingSeverity,
    InspectionMetadata,
    ItemStatus,
    Verdict,
    record_from_dict,
    record_to_dict,
)
from modules.inspections.session import (
    InspectionSession,
    SessionLockedError,
    SubmissionBlockedError,
    rescore_snapshot,
)


@pytest.fixture()
def session():
    metadata = InspectionMetadata(
        subject_id="FL-07",
        location="Dock 3",
        operator="J. Ortiz",
        inspection_date=date(2024, 5, 10),
        subject_type="forklift",
    )
    return InspectionSession(FORKLIFT_PRESHIFT, metadata)


def _answer_all(session, status="pass"):
    for item_id in session.definition.item_ids():
        session.set_status(item_id, status)


def test_fail_returns_draft_once(session):
    draft = session.set_status("horn", "fail")
    assert draft is not None and draft.item_id == "horn"
    # Re-failing reuses the pending draft
    assert session.set_status("horn", "fail") is draft
    finding = session.save_finding("horn", description="No sound")
    assert session.pending_draft("horn") is None
    assert session.set_status("horn", "fail") is None
    assert session.save_finding("horn") is finding


def test_discarded_draft_leaves_no_finding(session):
    session.set_status("lights", "fail")
    session.discard_draft("lights")
    assert session.pending_drafts() == []
    assert len(session.findings) == 0
    with pytest.raises(KeyError):
        session.save_finding("lights")


def test_finding_kept_when_item_passes_again(session):
    session.set_status("lights", "fail")
    session.save_finding("lights", severity="low")
    session.set_status("lights", "pass")
    assert [f.item_id for f in session.findings] == ["lights"]


def test_submission_blocked_until_complete(session):
    with pytest.raises(SubmissionBlockedError) as excinfo:
        session.submit()
    assert any("unchecked" in problem for problem in excinfo.value.problems)


def test_submission_requires_metadata():
    bare = InspectionSession(LADDER)
    _answer_all(bare)
    problems = bare.submission_problems()
    assert "Subject id is required" in problems
    assert "Location is required" in problems
    assert "Operator name is required" in problems


def test_submit_builds_record_and_locks(session):
    _answer_all(session)
    session.set_status("brakes", "fail")
    session.save_finding("brakes", severity="critical", corrective_action="Tag out")
    session.set_general_notes("Pre-shift A")
    record = session.submit()

    assert record.status is Verdict.FAIL
    assert record.out_of_service
    assert record.critical_failed_count == 1
    assert record.deficiency_count == 1
    assert record.score == 94
    assert record.follow_up_date == date(2024, 5, 11)
    assert record.checklist.statuses()["brakes"] is ItemStatus.FAIL
    assert record.notes == "Pre-shift A"
    assert session.submitted
    assert session.submit() is record
    with pytest.raises(SessionLockedError):
        session.set_status("horn", "pass")


def test_passing_record_has_no_follow_up(session):
    _answer_all(session)
    record = session.submit()
    assert record.status is Verdict.PASS
    assert record.follow_up_date is None
    assert not record.out_of_service


def test_snapshot_rescore_matches_record(session):
    _answer_all(session)
    session.set_status("lights", "fail")
    session.set_status("gauges", "na")
    record = session.submit()
    evaluation = rescore_snapshot(record.checklist)
    assert evaluation.score == record.score
    assert evaluation.verdict is record.status
    assert evaluation.fail_count == record.fail_count


def test_reset_clears_everything(session):
    old_id = session.id
    session.set_status("lights", "fail")
    session.save_finding("lights", severity=FindingSeverity.MEDIUM)
    session.reset()
    assert session.id != old_id
    assert len(session.findings) == 0
    assert session.evaluation().unchecked_count == FORKLIFT_PRESHIFT.total_items()
    assert session.metadata.subject_id == ""


def test_serialized_record_rescores_identically(session):
    _answer_all(session)
    session.set_status("lights", "fail")
    session.save_finding("lights", severity="low", description="Left lamp out")
    session.set_status("gauges", "na")
    session.set_status("brakes", "fail")
    record = session.submit()

    reloaded = record_from_dict(json.loads(json.dumps(record_to_dict(record))))
    assert reloaded == record
    evaluation = rescore_snapshot(reloaded.checklist)
    assert evaluation.score == record.score
    assert evaluation.verdict is record.status
    assert evaluation.critical_failed_count == record.critical_failed_count
