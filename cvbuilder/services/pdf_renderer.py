"""
Renders finalized CV data to PDF with ReportLab platypus.

The layout is one top-to-bottom flow: header (name, title, contact line),
then each section with a bold title, a full-width rule and its content.
Page breaks are left to SimpleDocTemplate.
"""

import io
import logging
from typing import Any, BinaryIO, List, Mapping, Optional

from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer
from reportlab.platypus.flowables import Flowable, HRFlowable

from ..core.errors import RenderError
from ..schemas.cv import CVData
from ..utils.text_cleaners import to_paragraph_markup, to_text

logger = logging.getLogger(__name__)

PAGE_MARGIN = 50
CONTACT_FIELDS = (("email", "Email"), ("phone", "Phone"), ("location", "Location"))

# Vertical gaps, in points
GAP_SMALL = 3
GAP_ITEM = 6
GAP_BLOCK = 7
GAP_SECTION = 14

STYLES = {
    "Name": ParagraphStyle(
        name="Name",
        fontName="Helvetica-Bold",
        fontSize=24,
        leading=28,
        alignment=TA_CENTER,
    ),
    "Title": ParagraphStyle(
        name="Title",
        fontName="Helvetica",
        fontSize=14,
        leading=18,
        alignment=TA_CENTER,
    ),
    "Contact": ParagraphStyle(
        name="Contact",
        fontName="Helvetica",
        fontSize=10,
        leading=12,
        alignment=TA_CENTER,
    ),
    "SectionTitle": ParagraphStyle(
        name="SectionTitle",
        fontName="Helvetica-Bold",
        fontSize=14,
        leading=17,
        alignment=TA_LEFT,
    ),
    "Body": ParagraphStyle(
        name="Body",
        fontName="Helvetica",
        fontSize=10,
        leading=13,
        alignment=TA_LEFT,
    ),
    "ItemTitle": ParagraphStyle(
        name="ItemTitle",
        fontName="Helvetica-Bold",
        fontSize=12,
        leading=15,
        alignment=TA_LEFT,
    ),
    "ItemMeta": ParagraphStyle(
        name="ItemMeta",
        fontName="Helvetica-Oblique",
        fontSize=10,
        leading=13,
        alignment=TA_LEFT,
    ),
    "Bullet": ParagraphStyle(
        name="Bullet",
        fontName="Helvetica",
        fontSize=10,
        leading=13,
        leftIndent=10,
        alignment=TA_LEFT,
    ),
}


def format_contact_line(personal_info: Mapping[str, Any]) -> Optional[str]:
    parts = []
    for key, label in CONTACT_FIELDS:
        value = to_text(personal_info.get(key)).strip()
        if value:
            parts.append(f"{label}: {value}")
    return " | ".join(parts) if parts else None


def format_item_meta(item: Mapping[str, Any]) -> Optional[str]:
    """'organization | period', either one alone, or None when both are missing."""
    organization = to_text(item.get("organization")).strip()
    period = to_text(item.get("period")).strip()
    if organization and period:
        return f"{organization} | {period}"
    return organization or period or None


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [to_text(v).strip() for v in value if to_text(v).strip()]


def _paragraph(text: Any, style: str) -> Paragraph:
    return Paragraph(to_paragraph_markup(text), STYLES[style])


def _structured_item(item: Mapping[str, Any]) -> List[Flowable]:
    flowables: List[Flowable] = []

    title = to_text(item.get("title")).strip()
    if title:
        flowables.append(_paragraph(title, "ItemTitle"))

    meta = format_item_meta(item)
    if meta:
        flowables.append(_paragraph(meta, "ItemMeta"))

    description = to_text(item.get("description")).strip()
    if description:
        flowables.append(Spacer(1, GAP_SMALL))
        flowables.append(_paragraph(description, "Body"))

    bullets = _string_list(item.get("items"))
    if bullets:
        flowables.append(Spacer(1, GAP_SMALL))
        for bullet in bullets:
            flowables.append(_paragraph(f"• {bullet}", "Bullet"))

    skills = _string_list(item.get("skills"))
    if skills:
        flowables.append(Spacer(1, GAP_SMALL))
        flowables.append(_paragraph(", ".join(skills), "Body"))

    flowables.append(Spacer(1, GAP_ITEM))
    return flowables


def _section_content(content: Any) -> List[Flowable]:
    if content is None:
        return []

    if not isinstance(content, (list, tuple)):
        if isinstance(content, Mapping):
            return _structured_item(content)
        return [_paragraph(content, "Body")]

    flowables: List[Flowable] = []
    for item in content:
        if isinstance(item, Mapping):
            flowables.extend(_structured_item(item))
        elif isinstance(item, (list, tuple)):
            flowables.extend(_section_content(item))
        elif item is not None:
            flowables.append(_paragraph(item, "Body"))
            flowables.append(Spacer(1, GAP_ITEM))
    return flowables


def build_story(cv_data: CVData) -> List[Flowable]:
    """Flowables for the whole CV, in reading order."""
    personal_info = cv_data.get("personalInfo") or {}
    sections = cv_data.get("sections") or []

    story: List[Flowable] = [_paragraph(personal_info.get("fullName", ""), "Name")]

    title = to_text(personal_info.get("title")).strip()
    if title:
        story.append(_paragraph(title, "Title"))

    contact_line = format_contact_line(personal_info)
    if contact_line:
        story.append(Spacer(1, GAP_BLOCK))
        story.append(_paragraph(contact_line, "Contact"))

    story.append(Spacer(1, GAP_SECTION))

    for section in sections:
        if not isinstance(section, Mapping):
            continue
        story.append(_paragraph(section.get("title", ""), "SectionTitle"))
        story.append(Spacer(1, GAP_SMALL))
        story.append(HRFlowable(width="100%", thickness=0.75, spaceBefore=0, spaceAfter=GAP_BLOCK))
        story.extend(_section_content(section.get("content")))
        story.append(Spacer(1, GAP_SECTION))

    return story


def render_pdf(cv_data: CVData, sink: BinaryIO) -> None:
    """
    Write the CV as a PDF into `sink`. On RenderError the sink holds a
    partial document and must be discarded.
    """
    full_name = to_text((cv_data.get("personalInfo") or {}).get("fullName"))
    try:
        doc = SimpleDocTemplate(
            sink,
            pagesize=LETTER,
            leftMargin=PAGE_MARGIN,
            rightMargin=PAGE_MARGIN,
            topMargin=PAGE_MARGIN,
            bottomMargin=PAGE_MARGIN,
            title=f"CV - {full_name}".strip(" -"),
        )
        doc.build(build_story(cv_data))
    except RenderError:
        raise
    except Exception as e:
        logger.exception("[PDF] Rendering failed")
        raise RenderError(f"PDF rendering failed: {e}") from e


def render_pdf_bytes(cv_data: CVData) -> bytes:
    buffer = io.BytesIO()
    render_pdf(cv_data, buffer)
    return buffer.getvalue()
