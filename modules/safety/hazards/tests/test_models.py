from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[4]))

from modules.safety.hazards.models import HazardItem, overall_risk_level, residual_risk_level
from modules.safety.hazards.risk_matrix import RiskLevel


def _hazard(before, after=None):
    return HazardItem(
        id=1,
        assessment_id=1,
        order=1,
        task_step="Step",
        hazard_description="Hazard",
        hazard_type="physical",
        potential_consequence="",
        likelihood_before=before[0],
        severity_before=before[1],
        likelihood_after=after[0] if after else None,
        severity_after=after[1] if after else None,
    )


def test_derived_scores():
    hazard = _hazard((4, 4), (2, 2))
    assert hazard.risk_score_before == 16
    assert hazard.risk_level_before is RiskLevel.HIGH
    assert hazard.risk_score_after == 4
    assert hazard.risk_level_after is RiskLevel.LOW
    assert hazard.risk_reduction == 12


def test_unrated_after_is_none():
    hazard = _hazard((3, 3))
    assert hazard.risk_score_after is None
    assert hazard.risk_level_after is None
    assert hazard.risk_reduction is None


def test_rollups():
    assert overall_risk_level([]) is None
    assert residual_risk_level([]) is None
    hazards = [_hazard((1, 2), (1, 1)), _hazard((5, 5), (2, 3))]
    assert overall_risk_level(hazards) is RiskLevel.CRITICAL
    assert residual_risk_level(hazards) is RiskLevel.MEDIUM
    assert residual_risk_level(hazards + [_hazard((2, 2))]) is None
