from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3]))

from modules.inspections import pdf_export
from modules.inspections.checklists import LADDER
from modules.inspections.models import InspectionMetadata
from modules.inspections.session import InspectionSession


def _record(notes, subject_id="LAD <1> & co", fail=False):
    session = InspectionSession(
        LADDER,
        InspectionMetadata(subject_id=subject_id, location="Bay <2>", operator="Kim & Lee", inspection_date=date(2024, 1, 5)),
    )
    for item_id in LADDER.item_ids():
        session.set_status(item_id, "pass")
    if fail:
        session.set_status("side_rails", "fail")
        session.save_finding("side_rails", description="Crack <near> base & rust")
    session.set_general_notes(notes)
    return session.submit()


def test_markup_in_free_text_is_rendered_literally():
    pdf = pdf_export.build_pdf(record=_record("valve <b>stuck & leaking"))
    assert pdf.startswith(b"%PDF")


def test_out_of_service_record_with_markup_exports():
    record = _record("see </para> note", fail=True)
    assert record.out_of_service
    pdf = pdf_export.build_pdf(record=record, facility_name="Plant <A>")
    assert pdf.startswith(b"%PDF")
