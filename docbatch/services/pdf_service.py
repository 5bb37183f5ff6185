"""PDF serialization for laid-out pages.

Pages are drawn with the reportlab canvas; one standard font, no styles.
"""
from __future__ import annotations

import io
from typing import List

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from ..models import RenderError
from .layout import Page, PageGeometry


def font_width_fn(font_name: str):
    """Width function bound to a registered reportlab font."""
    try:
        pdfmetrics.getFont(font_name)
    except KeyError as e:
        raise RenderError(f"Unknown font: {font_name}") from e

    def width(text: str, font_size: float) -> float:
        return pdfmetrics.stringWidth(text, font_name, font_size)

    return width


def render_pdf(
    pages: List[Page],
    font_name: str = "Helvetica",
    font_size: float = 11,
    geometry: PageGeometry = None,
    title: str = "",
) -> bytes:
    geometry = geometry or PageGeometry()
    buf = io.BytesIO()
    try:
        c = canvas.Canvas(buf, pagesize=(geometry.width, geometry.height))
        if title:
            c.setTitle(title)
        for page in pages:
            c.setFont(font_name, font_size)
            for line in page.content_lines:
                c.drawString(geometry.margin, line.y, line.text)
            c.showPage()
        c.save()
    except Exception as e:
        raise RenderError(f"PDF export failed: {type(e).__name__}: {e}") from e
    return buf.getvalue()
