"""
Watermark rendering service.

Stamps a template PDF with the buyer's identity and returns the new document
as bytes. Pipeline per document:

    load template (pypdf) -> resolve font (reportlab) -> draw one overlay page
    per template page -> merge overlays -> set metadata -> serialize

Layout (PDF points, origin bottom-left of each page's own mediabox):
- Footer stamp: 7pt grey, at (18, 6), inside the 0.25" bottom margin.
- Header stamp: 7pt grey, right-aligned 18pt from the right edge, 12pt below
  the top edge.
- Optional deterrent stamp: customer email, 36pt, rotated 45 degrees,
  30% opacity, centred on the page.

Positions are computed from each page's width/height, so mixed page sizes
are stamped correctly.

Characters a font has no glyph for are written as `\\uXXXX` escapes (with a
warning) so the stamp still identifies the buyer.

The renderer performs no I/O: template and font bytes are supplied by the
caller and the stamped document is returned.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from typing import Optional

from pypdf import PdfReader, PdfWriter
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from domain.time import require_utc_timestamp, utc_now
from domain.watermark import WatermarkSpec
from services.errors import TemplateLoadError

logger = logging.getLogger(__name__)

FALLBACK_FONT: str = "Courier"
DETERRENT_FONT: str = "Helvetica-Bold"

STAMP_FONT_SIZE: float = 7
STAMP_GREY: float = 0.5
STAMP_MARGIN_X: float = 18
FOOTER_Y: float = 6
HEADER_OFFSET_Y: float = 12

DETERRENT_FONT_SIZE: float = 36
DETERRENT_ANGLE: float = 45
DETERRENT_GREY: float = 0.9
DETERRENT_OPACITY: float = 0.3

# Standard PDF fonts are drawn with WinAnsiEncoding
STANDARD_FONT_CODEC: str = "cp1252"


def _pdf_date(value: datetime) -> str:
    """Format a UTC datetime as a PDF date string."""
    return value.strftime("D:%Y%m%d%H%M%S+00'00'")


def resolve_font(font_bytes: Optional[bytes]) -> str:
    """
    Register `font_bytes` as a TrueType font and return its name.

    Any failure degrades to the standard Courier font with a warning; a bad
    font never aborts rendering.
    """

    if not font_bytes:
        logger.warning("Watermark font not available, using %s", FALLBACK_FONT)
        return FALLBACK_FONT

    # Name derived from content so identical fonts are registered once.
    name = f"Watermark-{hashlib.sha256(font_bytes).hexdigest()[:12]}"
    if name in pdfmetrics.getRegisteredFontNames():
        return name

    try:
        pdfmetrics.registerFont(TTFont(name, BytesIO(font_bytes)))
    except Exception as exc:
        logger.warning(
            "Watermark font could not be loaded, using %s",
            FALLBACK_FONT,
            extra={"error": str(exc), "fallback_font": FALLBACK_FONT},
        )
        return FALLBACK_FONT
    return name


def _can_draw(font_name: str, char: str) -> bool:
    face = getattr(pdfmetrics.getFont(font_name), "face", None)
    char_to_glyph = getattr(face, "charToGlyph", None)
    if char_to_glyph is not None:
        return ord(char) in char_to_glyph
    try:
        char.encode(STANDARD_FONT_CODEC)
    except UnicodeEncodeError:
        return False
    return True


def drawable_text(text: str, font_name: str) -> str:
    """Replace characters `font_name` cannot draw with `\\uXXXX` escapes."""

    return "".join(
        char if _can_draw(font_name, char) else f"\\u{ord(char):04x}"
        for char in text
    )


@dataclass(frozen=True, slots=True)
class PageBox:
    """Visible area of a page in its own user space."""

    left: float
    bottom: float
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class WatermarkRenderer:
    """
    Stateless PDF stamper.

    author: value written to the /Author metadata field
    diagonal: also draw the large rotated deterrent stamp
    """

    author: str = "DIY Furniture Project"
    diagonal: bool = False

    def render(
        self,
        template_bytes: bytes,
        spec: WatermarkSpec,
        font_bytes: Optional[bytes] = None,
        created_at: Optional[datetime] = None,
    ) -> bytes:
        """
        Stamp every page of `template_bytes` and return the serialized PDF.

        Raises:
            TemplateLoadError: If the template is not a readable, non-empty PDF
        """

        created = created_at or utc_now()
        require_utc_timestamp("created_at", created)

        writer = self._load(template_bytes)
        font_name = resolve_font(font_bytes)

        boxes = []
        for page in writer.pages:
            if page.rotation % 360:
                page.transfer_rotation_to_content()
            box = page.mediabox
            boxes.append(
                PageBox(
                    left=float(box.left),
                    bottom=float(box.bottom),
                    width=float(box.width),
                    height=float(box.height),
                )
            )

        stamp_text = drawable_text(spec.stamp_text, font_name)
        deterrent_text = drawable_text(spec.customer_email, DETERRENT_FONT)
        if stamp_text != spec.stamp_text or (self.diagonal and deterrent_text != spec.customer_email):
            logger.warning(
                "Watermark font cannot draw some stamp characters, writing them as escapes",
                extra={"order_id": spec.order_id, "font_name": font_name},
            )

        overlay = PdfReader(BytesIO(self._draw_overlay(boxes, stamp_text, deterrent_text, font_name)))
        for page, overlay_page in zip(writer.pages, overlay.pages):
            page.merge_page(overlay_page)

        writer.add_metadata(
            {
                "/Title": spec.title,
                "/Author": self.author,
                "/Subject": spec.subject,
                "/Keywords": spec.keywords,
                "/CreationDate": _pdf_date(created),
                "/ModDate": _pdf_date(created),
            }
        )

        output = BytesIO()
        writer.write(output)
        return output.getvalue()

    @staticmethod
    def _load(template_bytes: bytes) -> PdfWriter:
        if not template_bytes:
            raise TemplateLoadError("Template is empty")

        try:
            reader = PdfReader(BytesIO(template_bytes))
            if reader.is_encrypted:
                raise TemplateLoadError("Template is encrypted")
            page_count = len(reader.pages)
            writer = PdfWriter(clone_from=reader)
        except TemplateLoadError:
            raise
        except Exception as exc:
            raise TemplateLoadError(f"Template is not a valid PDF: {exc}") from exc

        if page_count == 0:
            raise TemplateLoadError("Template has no pages")
        return writer

    def _draw_overlay(self, boxes: list[PageBox], text: str, deterrent_text: str, font_name: str) -> bytes:
        """Draw one transparent overlay page per template page."""

        text_width = pdfmetrics.stringWidth(text, font_name, STAMP_FONT_SIZE)

        buffer = BytesIO()
        # invariant=1 keeps the overlay byte-stable for identical input
        c = canvas.Canvas(buffer, invariant=1)

        for box in boxes:
            c.setPageSize((box.left + box.width, box.bottom + box.height))

            c.setFont(font_name, STAMP_FONT_SIZE)
            c.setFillColorRGB(STAMP_GREY, STAMP_GREY, STAMP_GREY)
            c.drawString(box.left + STAMP_MARGIN_X, box.bottom + FOOTER_Y, text)
            c.drawString(
                box.left + box.width - STAMP_MARGIN_X - text_width,
                box.bottom + box.height - HEADER_OFFSET_Y,
                text,
            )

            if self.diagonal:
                c.saveState()
                c.setFillColorRGB(DETERRENT_GREY, DETERRENT_GREY, DETERRENT_GREY)
                c.setFillAlpha(DETERRENT_OPACITY)
                c.setFont(DETERRENT_FONT, DETERRENT_FONT_SIZE)
                c.translate(box.left + box.width / 2, box.bottom + box.height / 2)
                c.rotate(DETERRENT_ANGLE)
                c.drawCentredString(0, 0, deterrent_text)
                c.restoreState()

            c.showPage()

        c.save()
        return buffer.getvalue()


__all__ = ["WatermarkRenderer", "drawable_text", "resolve_font"]
