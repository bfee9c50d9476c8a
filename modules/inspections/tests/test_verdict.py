from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3]))

import pytest

from modules.inspections.checklists import DAILY_SAFETY_WALK, FORKLIFT_PRESHIFT, LADDER
from modules.inspections.models import Finding, FindingSeverity, QualityBand, Verdict
from modules.inspections.policy import InspectionPolicy
from modules.inspections.responses import ResponseStore
from modules.inspections.verdict import evaluate, follow_up_date, quality_band


def _store(definition, default="pass", **overrides):
    store = ResponseStore(definition)
    for item_id in definition.item_ids():
        store.set_status(item_id, overrides.get(item_id, default))
    return store


def _finding(severity):
    return Finding(
        id="f1",
        item_id="x",
        category_id="c",
        category_name="C",
        item_text="X",
        severity=FindingSeverity(severity),
        description="",
        corrective_action="",
        created_at="",
    )


def test_untouched_session_is_incomplete():
    evaluation = evaluate(LADDER, ResponseStore(LADDER))
    assert evaluation.verdict is Verdict.INCOMPLETE
    assert evaluation.progress_percent == 0
    assert evaluation.score == 0
    assert not evaluation.out_of_service


def test_single_critical_failure_fails_despite_high_score():
    evaluation = evaluate(FORKLIFT_PRESHIFT, _store(FORKLIFT_PRESHIFT, brakes="fail"))
    assert evaluation.progress_percent == 100
    assert evaluation.score == 94
    assert evaluation.quality_band is QualityBand.PASS
    assert evaluation.critical_failed_count == 1
    assert evaluation.verdict is Verdict.FAIL
    assert evaluation.out_of_service


def test_non_critical_failure_threshold():
    two = evaluate(DAILY_SAFETY_WALK, _store(DAILY_SAFETY_WALK, hk1="fail", hk2="fail"))
    assert two.verdict is Verdict.PASS
    three = evaluate(DAILY_SAFETY_WALK, _store(DAILY_SAFETY_WALK, hk1="fail", hk2="fail", hk3="fail"))
    assert three.verdict is Verdict.FAIL
    assert three.critical_failed_count == 0

    lenient = InspectionPolicy(max_non_critical_failures_allowed=3)
    relaxed = evaluate(DAILY_SAFETY_WALK, _store(DAILY_SAFETY_WALK, hk1="fail", hk2="fail", hk3="fail"), lenient)
    assert relaxed.verdict is Verdict.PASS


def test_na_items_excluded_from_score():
    store = _store(LADDER, default="na", side_rails="pass", clean="fail")
    evaluation = evaluate(LADDER, store)
    assert evaluation.score == 50
    assert evaluation.na_count == 10
    assert evaluation.verdict is Verdict.PASS


def test_all_na_scores_zero():
    evaluation = evaluate(LADDER, _store(LADDER, default="na"))
    assert evaluation.score == 0
    assert evaluation.verdict is Verdict.PASS
    assert evaluation.quality_band is QualityBand.FAIL


@pytest.mark.parametrize(
    "score,band",
    [(100, QualityBand.PASS), (90, QualityBand.PASS), (89, QualityBand.CONDITIONAL), (70, QualityBand.CONDITIONAL), (69, QualityBand.FAIL)],
)
def test_quality_band_thresholds(score, band):
    assert quality_band(score) is band


def test_follow_up_dates():
    day = date(2024, 3, 1)
    assert follow_up_date([], day) is None
    assert follow_up_date([_finding("low")], day) == date(2024, 3, 8)
    assert follow_up_date([_finding("low"), _finding("high")], day) == date(2024, 3, 2)
    assert follow_up_date([_finding("critical")], day) == date(2024, 3, 2)
