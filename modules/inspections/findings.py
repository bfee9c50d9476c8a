"""Structured findings raised when checklist items fail."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from typing import Iterator

from utils.audit import now_utc_iso

from .models import ChecklistCategory, ChecklistItemDefinition, Finding, FindingSeverity
from .policy import DEFAULT_POLICY, InspectionPolicy

logger = logging.getLogger(__name__)

_EDITABLE = ("severity", "description", "corrective_action")


@dataclass(slots=True)
class FindingDraft:
    """Operator-editable finding that has not been saved yet."""

    item_id: str
    category_id: str
    category_name: str
    item_text: str
    severity: FindingSeverity
    description: str = ""
    corrective_action: str = ""


class FindingGenerator:
    """Owns the finding list of one inspection session.

    Findings are only created through :meth:`save` and only removed through
    :meth:`remove`; an item moving away from ``fail`` leaves its finding in
    place.
    """

    def __init__(self, policy: InspectionPolicy = DEFAULT_POLICY):
        self.policy = policy
        self._findings: list[Finding] = []

    def __iter__(self) -> Iterator[Finding]:
        return iter(list(self._findings))

    def __len__(self) -> int:
        return len(self._findings)

    def findings(self) -> tuple[Finding, ...]:
        return tuple(self._findings)

    def open_finding_for(self, item_id: str) -> Finding | None:
        for finding in self._findings:
            if finding.item_id == item_id:
                return finding
        return None

    def on_item_failed(
        self,
        item: ChecklistItemDefinition,
        category: ChecklistCategory,
    ) -> FindingDraft | None:
        if self.open_finding_for(item.id) is not None:
            return None
        return FindingDraft(
            item_id=item.id,
            category_id=category.id,
            category_name=category.name,
            item_text=item.text,
            severity=self.policy.default_finding_severity,
        )

    def save(self, draft: FindingDraft) -> Finding:
        existing = self.open_finding_for(draft.item_id)
        if existing is not None:
            logger.debug("Finding already open for item %s; keeping %s", draft.item_id, existing.id)
            return existing
        finding = Finding(
            id=uuid.uuid4().hex,
            item_id=draft.item_id,
            category_id=draft.category_id,
            category_name=draft.category_name,
            item_text=draft.item_text,
            severity=FindingSeverity(draft.severity),
            description=(draft.description or "").strip(),
            corrective_action=(draft.corrective_action or "").strip(),
            created_at=now_utc_iso(),
        )
        self._findings.append(finding)
        logger.debug("Finding %s saved for item %s (%s)", finding.id, finding.item_id, finding.severity.value)
        return finding

    def _index(self, finding_id: str) -> int:
        for index, finding in enumerate(self._findings):
            if finding.id == finding_id:
                return index
        raise KeyError(finding_id)

    def get(self, finding_id: str) -> Finding:
        return self._findings[self._index(finding_id)]

    def update(self, finding_id: str, **changes) -> Finding:
        unknown = set(changes) - set(_EDITABLE)
        if unknown:
            raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")
        index = self._index(finding_id)
        cleaned = {key: value for key, value in changes.items() if value is not None}
        if "severity" in cleaned:
            cleaned["severity"] = FindingSeverity(cleaned["severity"])
        for key in ("description", "corrective_action"):
            if key in cleaned:
                cleaned[key] = cleaned[key].strip()
        updated = replace(self._findings[index], **cleaned)
        self._findings[index] = updated
        logger.debug("Finding %s updated: %s", finding_id, sorted(cleaned))
        return updated

    def remove(self, finding_id: str) -> Finding:
        removed = self._findings.pop(self._index(finding_id))
        logger.debug("Finding %s removed (item %s)", removed.id, removed.item_id)
        return removed

    def clear(self) -> None:
        self._findings.clear()
