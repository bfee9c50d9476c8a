from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3]))

import pytest

from modules.inspections.checklists import FORKLIFT_PRESHIFT
from modules.inspections.findings import FindingGenerator
from modules.inspections.models import FindingSeverity
from modules.inspections.policy import InspectionPolicy


def _draft(generator, item_id="brakes"):
    return generator.on_item_failed(
        FORKLIFT_PRESHIFT.item(item_id), FORKLIFT_PRESHIFT.category_for(item_id)
    )


def test_draft_uses_policy_default_severity():
    draft = _draft(FindingGenerator())
    assert draft.severity is FindingSeverity.HIGH
    assert draft.category_name == "Controls"
    assert draft.item_text == "Brakes"

    low = _draft(FindingGenerator(InspectionPolicy(default_finding_severity=FindingSeverity.LOW)))
    assert low.severity is FindingSeverity.LOW


def test_save_creates_one_finding_per_item():
    generator = FindingGenerator()
    draft = _draft(generator)
    draft.description = "  Pedal soft  "
    finding = generator.save(draft)
    assert finding.description == "Pedal soft"
    assert finding.id and finding.created_at
    assert _draft(generator) is None
    assert generator.save(draft) is finding
    assert len(generator) == 1


def test_update_only_editable_fields():
    generator = FindingGenerator()
    finding = generator.save(_draft(generator))
    updated = generator.update(finding.id, severity="critical", corrective_action=" Replace pads ")
    assert updated.severity is FindingSeverity.CRITICAL
    assert updated.corrective_action == "Replace pads"
    assert updated.id == finding.id
    with pytest.raises(ValueError):
        generator.update(finding.id, item_id="horn")
    with pytest.raises(KeyError):
        generator.update("missing", severity="low")


def test_remove_and_clear():
    generator = FindingGenerator()
    first = generator.save(_draft(generator, "brakes"))
    generator.save(_draft(generator, "horn"))
    assert generator.remove(first.id).item_id == "brakes"
    assert [f.item_id for f in generator] == ["horn"]
    with pytest.raises(KeyError):
        generator.remove(first.id)
    generator.clear()
    assert generator.findings() == ()
