"""
Render plain document text to PDF bytes with reportlab.

Layout: US letter, 50pt top/bottom and 72pt left/right margins, optional
centered bold title followed by one blank line, then the body left-aligned
in 12pt Helvetica with a 5pt line gap.  Line breaks in the source text are
kept.
"""
from __future__ import annotations

import io
import logging
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Flowable, Paragraph, SimpleDocTemplate, Spacer

from app.services.exceptions import ExportError

logger = logging.getLogger(__name__)

DEFAULT_PDF_TITLE = "Generated Document"

_BODY_FONT_SIZE = 12
_LINE_GAP = 5
_TITLE_FONT_SIZE = 18


class PdfRenderer:
    """Stateless text -> PDF renderer."""

    MARGIN_TOP = 50
    MARGIN_BOTTOM = 50
    MARGIN_LEFT = 72
    MARGIN_RIGHT = 72

    def __init__(self) -> None:
        styles = getSampleStyleSheet()
        self._title_style = ParagraphStyle(
            "DocumentTitle",
            parent=styles["Title"],
            fontName="Helvetica-Bold",
            fontSize=_TITLE_FONT_SIZE,
            leading=_TITLE_FONT_SIZE + 4,
            alignment=TA_CENTER,
            spaceAfter=0,
        )
        self._body_style = ParagraphStyle(
            "DocumentBody",
            parent=styles["Normal"],
            fontName="Helvetica",
            fontSize=_BODY_FONT_SIZE,
            leading=_BODY_FONT_SIZE + _LINE_GAP,
            alignment=TA_LEFT,
        )

    def render(self, content: str, title: Optional[str] = None) -> bytes:
        """
        Return the complete PDF for *content*.

        The output buffer is read only after ``build()`` has returned, i.e.
        after reportlab has written the trailer; reading earlier would yield
        a truncated file.
        """
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=letter,
            topMargin=self.MARGIN_TOP,
            bottomMargin=self.MARGIN_BOTTOM,
            leftMargin=self.MARGIN_LEFT,
            rightMargin=self.MARGIN_RIGHT,
            title=title or DEFAULT_PDF_TITLE,
        )
        try:
            doc.build(self._story(content, title))
        except Exception as exc:
            logger.error("PDF rendering failed: %s", exc, exc_info=True)
            raise ExportError(f"Failed to generate PDF: {exc}") from exc

        pdf_bytes = buffer.getvalue()
        logger.info("Rendered PDF (%d bytes, title=%r)", len(pdf_bytes), title)
        return pdf_bytes

    def _story(self, content: str, title: Optional[str]) -> List[Flowable]:
        story: List[Flowable] = []
        if title:
            story.append(Paragraph(escape(title), self._title_style))
            story.append(Spacer(1, self._body_style.leading))

        for line in content.splitlines():
            if not line.strip():
                story.append(Spacer(1, self._body_style.leading))
                continue
            # Leading whitespace would be collapsed by the paragraph engine
            indent = len(line) - len(line.lstrip(" "))
            text = "&nbsp;" * indent + escape(line.strip())
            story.append(Paragraph(text, self._body_style))

        # An empty body still yields a valid one-page PDF
        if not story:
            story.append(Spacer(1, self._body_style.leading))
        return story
