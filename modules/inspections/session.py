"""Single-writer editing session for one checklist inspection."""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Optional

from utils.audit import now_utc_iso

from .findings import FindingDraft, FindingGenerator
from .models import (
    CategorySnapshot,
    ChecklistDefinition,
    ChecklistSnapshot,
    Finding,
    FindingSeverity,
    InspectionMetadata,
    InspectionRecord,
    ItemResponse,
    ItemSnapshot,
    ItemStatus,
    Verdict,
)
from .policy import DEFAULT_POLICY, InspectionPolicy
from .responses import ResponseStore
from .verdict import Evaluation, evaluate, follow_up_date

logger = logging.getLogger(__name__)


class SubmissionBlockedError(RuntimeError):
    """Raised when a session is submitted before it is ready."""

    def __init__(self, problems: list[str]):
        super().__init__("Inspection cannot be submitted: " + "; ".join(problems))
        self.problems = list(problems)


class SessionLockedError(RuntimeError):
    """Raised when a submitted session is edited."""


class InspectionSession:
    def __init__(
        self,
        definition: ChecklistDefinition,
        metadata: InspectionMetadata | None = None,
        policy: InspectionPolicy = DEFAULT_POLICY,
        *,
        responses: Optional[list[ItemResponse]] = None,
        session_id: str | None = None,
    ):
        self.id = session_id or uuid.uuid4().hex
        self.definition = definition
        self.policy = policy
        self.metadata = metadata or InspectionMetadata(subject_type=definition.subject_type)
        if responses is None:
            self.responses = ResponseStore(definition)
        else:
            self.responses = ResponseStore.from_responses(definition, responses)
        self.findings = FindingGenerator(policy)
        self.general_notes = ""
        self._drafts: dict[str, FindingDraft] = {}
        self._record: InspectionRecord | None = None

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    @property
    def submitted(self) -> bool:
        return self._record is not None

    def _ensure_editable(self) -> None:
        if self._record is not None:
            raise SessionLockedError(f"Session {self.id} was already submitted")

    def set_status(self, item_id: str, status: ItemStatus | str) -> FindingDraft | None:
        """Record an answer; return a finding draft when a failure needs detail."""
        self._ensure_editable()
        status = ItemStatus(status)
        self.responses.set_status(item_id, status)
        if status is not ItemStatus.FAIL:
            return None
        pending = self._drafts.get(item_id)
        if pending is not None:
            return pending
        draft = self.findings.on_item_failed(
            self.definition.item(item_id),
            self.definition.category_for(item_id),
        )
        if draft is not None:
            self._drafts[item_id] = draft
        return draft

    def set_notes(self, item_id: str, notes: str) -> None:
        self._ensure_editable()
        self.responses.set_notes(item_id, notes)

    def set_general_notes(self, notes: str) -> None:
        self._ensure_editable()
        self.general_notes = notes or ""

    def update_metadata(self, **changes) -> InspectionMetadata:
        self._ensure_editable()
        cleaned = {key: value for key, value in changes.items() if value is not None}
        self.metadata = replace(self.metadata, **cleaned)
        return self.metadata

    def pending_drafts(self) -> list[FindingDraft]:
        return list(self._drafts.values())

    def pending_draft(self, item_id: str) -> FindingDraft | None:
        return self._drafts.get(item_id)

    def save_finding(
        self,
        item_id: str,
        *,
        severity: FindingSeverity | str | None = None,
        description: str = "",
        corrective_action: str = "",
    ) -> Finding:
        self._ensure_editable()
        draft = self._drafts.get(item_id)
        if draft is None:
            existing = self.findings.open_finding_for(item_id)
            if existing is not None:
                return existing
            raise KeyError(f"No pending finding for item {item_id}")
        if severity is not None:
            draft.severity = FindingSeverity(severity)
        draft.description = description
        draft.corrective_action = corrective_action
        finding = self.findings.save(draft)
        del self._drafts[item_id]
        return finding

    def discard_draft(self, item_id: str) -> None:
        self._ensure_editable()
        if self._drafts.pop(item_id, None) is None:
            raise KeyError(f"No pending finding for item {item_id}")

    def update_finding(self, finding_id: str, **changes) -> Finding:
        self._ensure_editable()
        return self.findings.update(finding_id, **changes)

    def remove_finding(self, finding_id: str) -> Finding:
        self._ensure_editable()
        return self.findings.remove(finding_id)

    def reset(self) -> None:
        """Discard all answers, findings and notes; keep definition and policy."""
        self.responses = ResponseStore(self.definition)
        self.findings = FindingGenerator(self.policy)
        self.general_notes = ""
        self._drafts.clear()
        self._record = None
        self.metadata = InspectionMetadata(subject_type=self.definition.subject_type)
        self.id = uuid.uuid4().hex

    # ------------------------------------------------------------------
    # Derived output
    # ------------------------------------------------------------------

    def evaluation(self) -> Evaluation:
        return evaluate(self.definition, self.responses, self.policy)

    def submission_problems(self) -> list[str]:
        problems: list[str] = []
        evaluation = self.evaluation()
        if evaluation.verdict is Verdict.INCOMPLETE:
            problems.append(
                f"{evaluation.unchecked_count} of {evaluation.total} checklist items are unchecked"
            )
        if not self.metadata.subject_id.strip():
            problems.append("Subject id is required")
        if not self.metadata.location.strip():
            problems.append("Location is required")
        if not self.metadata.operator.strip():
            problems.append("Operator name is required")
        return problems

    def snapshot(self) -> ChecklistSnapshot:
        return ChecklistSnapshot(
            inspection_type=self.definition.inspection_type,
            title=self.definition.title,
            categories=tuple(
                CategorySnapshot(
                    category_id=category.id,
                    category_name=category.name,
                    items=tuple(
                        ItemSnapshot(
                            id=item.id,
                            text=item.text,
                            critical=item.critical,
                            status=self.responses.status(item.id),
                            notes=self.responses.get(item.id).notes,
                        )
                        for item in category.items
                    ),
                )
                for category in self.definition.categories
            ),
        )

    def submit(self) -> InspectionRecord:
        """Freeze the session into an :class:`InspectionRecord`.

        Calling this again returns the same record so persistence can be
        retried without recomputing anything.
        """
        if self._record is not None:
            return self._record
        problems = self.submission_problems()
        if problems:
            raise SubmissionBlockedError(problems)

        evaluation = self.evaluation()
        findings = self.findings.findings()
        self._record = InspectionRecord(
            id=uuid.uuid4().hex,
            inspection_type=self.definition.inspection_type,
            subject_id=self.metadata.subject_id.strip(),
            subject_type=self.metadata.subject_type,
            location=self.metadata.location.strip(),
            operator=self.metadata.operator.strip(),
            inspection_date=self.metadata.inspection_date,
            status=evaluation.verdict,
            result_label=evaluation.quality_band,
            score=evaluation.score,
            fail_count=evaluation.fail_count,
            critical_failed_count=evaluation.critical_failed_count,
            deficiency_count=len(findings),
            out_of_service=evaluation.out_of_service,
            follow_up_date=follow_up_date(findings, self.metadata.inspection_date, self.policy),
            checklist=self.snapshot(),
            findings=findings,
            notes=self.general_notes.strip(),
            submitted_at=now_utc_iso(),
        )
        logger.info(
            "Inspection %s (%s %s) submitted: %s, score %s",
            self._record.id,
            self._record.inspection_type,
            self._record.subject_id,
            self._record.status.value,
            self._record.score,
        )
        return self._record


def rescore_snapshot(
    snapshot: ChecklistSnapshot,
    policy: InspectionPolicy = DEFAULT_POLICY,
) -> Evaluation:
    """Recompute score and verdict from a stored checklist snapshot alone."""
    definition = snapshot.to_definition()
    store = ResponseStore.from_responses(
        definition,
        [
            ItemResponse(item_id=item.id, status=item.status, notes=item.notes)
            for category in snapshot.categories
            for item in category.items
        ],
    )
    return evaluate(definition, store, policy)
