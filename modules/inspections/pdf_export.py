"""PDF generation utilities for submitted inspection records."""

from __future__ import annotations

from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .models import InspectionRecord, ItemStatus

_STATUS_LABELS = {
    ItemStatus.PASS: "Pass",
    ItemStatus.FAIL: "Fail",
    ItemStatus.NA: "N/A",
    ItemStatus.UNCHECKED: "-",
}


def _watermark(canvas_obj: canvas.Canvas, doc, *, subject: str) -> None:
    canvas_obj.saveState()
    canvas_obj.setFillColorRGB(0.8, 0.1, 0.1, alpha=0.25)
    canvas_obj.setFont("Helvetica-Bold", 54)
    canvas_obj.translate(300, 400)
    canvas_obj.rotate(45)
    canvas_obj.drawCentredString(0, 0, "OUT OF SERVICE")
    canvas_obj.setFont("Helvetica-Bold", 28)
    canvas_obj.drawCentredString(0, -50, subject)
    canvas_obj.restoreState()


def build_pdf(*, record: InspectionRecord, facility_name: str | None = None) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=letter,
        title=f"{record.inspection_type}_{record.subject_id}",
        leftMargin=36,
        rightMargin=36,
        topMargin=54,
        bottomMargin=36,
    )
    styles = getSampleStyleSheet()
    header_style = styles["Heading2"]
    section_style = styles["Heading3"]
    body_style = styles["BodyText"]

    elements = []

    title = f"{record.checklist.title or record.inspection_type} - {record.subject_id}"
    if facility_name:
        title = f"{facility_name}: {title}"
    elements.append(Paragraph(escape(title), header_style))
    elements.append(Spacer(1, 12))

    meta_lines = [
        f"Location: {record.location}",
        f"Inspector: {record.operator}",
        f"Date: {record.inspection_date.isoformat()}",
        f"Result: {record.status.value.upper()} ({record.result_label.value}, score {record.score}%)",
        f"Failed items: {record.fail_count} (critical: {record.critical_failed_count})",
        f"Follow-up: {record.follow_up_date.isoformat() if record.follow_up_date else '-'}",
    ]
    for line in meta_lines:
        elements.append(Paragraph(escape(line), body_style))
    elements.append(Spacer(1, 18))

    table_data = [["Category", "Item", "Critical", "Status", "Notes"]]
    fail_rows = []
    for category in record.checklist.categories:
        for item in category.items:
            if item.status is ItemStatus.FAIL:
                fail_rows.append(len(table_data))
            table_data.append(
                [
                    category.category_name,
                    item.text,
                    "Yes" if item.critical else "",
                    _STATUS_LABELS[item.status],
                    item.notes,
                ]
            )

    table = Table(table_data, repeatRows=1)
    style_commands = [
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]
    for row in fail_rows:
        style_commands.append(("TEXTCOLOR", (3, row), (3, row), colors.red))
    table.setStyle(TableStyle(style_commands))
    elements.append(table)

    if record.findings:
        elements.append(Spacer(1, 18))
        elements.append(Paragraph("Findings", section_style))
        findings_data = [["Item", "Severity", "Description", "Corrective Action"]]
        for finding in record.findings:
            findings_data.append(
                [
                    finding.item_text,
                    finding.severity.value.title(),
                    finding.description,
                    finding.corrective_action,
                ]
            )
        findings_table = Table(findings_data, repeatRows=1)
        findings_table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ]
            )
        )
        elements.append(findings_table)

    if record.notes:
        elements.append(Spacer(1, 18))
        elements.append(Paragraph("Notes", section_style))
        elements.append(Paragraph(escape(record.notes), body_style))

    page_hooks = {}
    if record.out_of_service:
        watermark = lambda canv, doc: _watermark(  # noqa: E731
            canv, doc, subject=record.subject_id
        )
        page_hooks = {"onFirstPage": watermark, "onLaterPages": watermark}

    doc.build(elements, **page_hooks)
    return buffer.getvalue()
