"""PDF generation utilities for hazard assessments."""

from __future__ import annotations

from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .models import ASSESSMENT_TYPES, CONTROL_TYPES, HazardAssessment
from .risk_matrix import RiskLevel

_LEVEL_COLORS = {
    RiskLevel.LOW: colors.green,
    RiskLevel.MEDIUM: colors.orange,
    RiskLevel.HIGH: colors.red,
    RiskLevel.CRITICAL: colors.darkred,
}


def _watermark(canvas_obj: canvas.Canvas, doc, *, highest: str) -> None:
    canvas_obj.saveState()
    canvas_obj.setFillColorRGB(0.8, 0.1, 0.1, alpha=0.25)
    canvas_obj.setFont("Helvetica-Bold", 44)
    canvas_obj.translate(400, 300)
    canvas_obj.rotate(35)
    canvas_obj.drawCentredString(0, 0, "NOT APPROVED - PENDING MITIGATION")
    canvas_obj.drawCentredString(0, -60, f"Highest Residual Risk: {highest}")
    canvas_obj.restoreState()


def _rating(likelihood, severity, level) -> str:
    if likelihood is None or severity is None or level is None:
        return "-"
    return f"{likelihood} x {severity} = {likelihood * severity} ({level.label})"


def build_pdf(*, assessment: HazardAssessment, facility_name: str | None = None) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(letter),
        title=assessment.assessment_number,
        leftMargin=36,
        rightMargin=36,
        topMargin=54,
        bottomMargin=36,
    )
    styles = getSampleStyleSheet()
    header_style = styles["Heading2"]
    body_style = styles["BodyText"]

    elements = []

    title = f"{ASSESSMENT_TYPES.get(assessment.assessment_type, assessment.assessment_type)}: {assessment.name}"
    if facility_name:
        title = f"{facility_name}: {title}"
    elements.append(Paragraph(escape(title), header_style))
    elements.append(Spacer(1, 12))

    overall = assessment.overall_risk_level
    residual = assessment.residual_risk_level
    meta_lines = [
        f"Number: {assessment.assessment_number}",
        f"Location: {assessment.location or '-'}",
        f"Assessed By: {assessment.assessed_by or '-'}",
        f"Status: {assessment.status.value.title()}",
        f"Overall Risk: {overall.label if overall else '-'}",
        f"Residual Risk: {residual.label if residual else 'Not rated'}",
    ]
    if assessment.approved_by:
        meta_lines.append(f"Approved By: {assessment.approved_by} ({assessment.approved_at or '-'})")
    if assessment.required_ppe:
        meta_lines.append(f"Required PPE: {', '.join(assessment.required_ppe)}")
    for line in meta_lines:
        elements.append(Paragraph(escape(line), body_style))
    elements.append(Spacer(1, 18))

    table_data = [["#", "Task Step", "Hazard", "Before", "Controls", "After", "Responsible"]]
    level_cells = []
    for hazard in sorted(assessment.hazards, key=lambda h: h.order):
        row = len(table_data)
        level_cells.append((3, row, hazard.risk_level_before))
        if hazard.risk_level_after is not None:
            level_cells.append((5, row, hazard.risk_level_after))
        controls = "; ".join(
            f"{CONTROL_TYPES.get(c.type, c.type)}: {c.description}" for c in hazard.control_measures
        )
        table_data.append(
            [
                str(hazard.order),
                hazard.task_step,
                hazard.hazard_description,
                _rating(hazard.likelihood_before, hazard.severity_before, hazard.risk_level_before),
                controls or "-",
                _rating(hazard.likelihood_after, hazard.severity_after, hazard.risk_level_after),
                hazard.responsible_person or "-",
            ]
        )

    table = Table(table_data, repeatRows=1)
    style_commands = [
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]
    for column, row, level in level_cells:
        style_commands.append(("TEXTCOLOR", (column, row), (column, row), _LEVEL_COLORS[level]))
    table.setStyle(TableStyle(style_commands))
    elements.append(table)

    if assessment.notes:
        elements.append(Spacer(1, 18))
        elements.append(Paragraph(escape(f"Notes: {assessment.notes}"), body_style))

    page_hooks = {}
    if assessment.approval_blocked:
        highest = residual.label if residual else "Not rated"
        watermark = lambda canv, doc: _watermark(canv, doc, highest=highest)  # noqa: E731
        page_hooks = {"onFirstPage": watermark, "onLaterPages": watermark}

    doc.build(elements, **page_hooks)
    return buffer.getvalue()
