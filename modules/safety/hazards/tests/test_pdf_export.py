from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[4]))

from modules.safety.hazards import pdf_export
from modules.safety.hazards.models import AssessmentStatus, ControlMeasure, HazardAssessment, HazardItem


def _assessment(blocked):
    hazard = HazardItem(
        id=1,
        assessment_id=1,
        order=1,
        task_step="Open <valve>",
        hazard_description="Pressure & heat",
        hazard_type="physical",
        potential_consequence="Burns",
        likelihood_before=4,
        severity_before=4,
        likelihood_after=1 if not blocked else None,
        severity_after=3 if not blocked else None,
        control_measures=[ControlMeasure(type="engineering", description="Relief <b>valve")],
    )
    return HazardAssessment(
        id=1,
        facility_id="plant-a",
        assessment_number="HA-2024-0001",
        name="Boiler <b>room",
        assessment_type="jha",
        location="B & C wing",
        task_description="",
        assessed_by="Ng",
        status=AssessmentStatus.ASSESSED if blocked else AssessmentStatus.ACCEPTED,
        approval_blocked=blocked,
        required_ppe=["gloves <heat>"],
        notes="valve <b>stuck",
        hazards=[hazard],
    )


def test_markup_in_assessment_text_exports():
    assert pdf_export.build_pdf(assessment=_assessment(blocked=False)).startswith(b"%PDF")


def test_blocked_assessment_with_markup_exports():
    pdf = pdf_export.build_pdf(assessment=_assessment(blocked=True), facility_name="Plant & Co")
    assert pdf.startswith(b"%PDF")
