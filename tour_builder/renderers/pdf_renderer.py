"""
PDF renderer for tour packages.

Drawing happens in two passes. The section builders lay out every page on a
`DeferredPageCanvas`, which keeps finished pages in memory instead of emitting
them. Once the last page is done the total page count is known, so
`stamp_footers` replays each page, adds the "Page i of N" footer and only then
writes it out. The whole document is rendered into a buffer; callers get bytes
back and decide where (and whether) to write them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from io import BytesIO
from typing import Callable, Dict, List, Optional

from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from ..exceptions import PDFGenerationError
from ..images import load_image
from ..layout import FONT_BOLD, FONT_REGULAR, DrawnBlock, PageGeometry, RenderContext, build_palette
from ..logging_utils import get_logger
from ..models import BrandConfig, TourPackage
from .sections import build_document

logger = get_logger(__name__)

FOOTER_BAND_H = 20 * mm
FOOTER_RULE_Y = 18 * mm
FOOTER_TEXT_Y = 10 * mm


class DeferredPageCanvas(canvas.Canvas):
    """
    Canvas that holds on to every finished page until `save()`, so a footer
    that needs the final page count can be drawn on all of them.
    """

    def __init__(self, *args, footer: Optional[Callable] = None, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states: List[dict] = []
        self.footer = footer

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    @property
    def page_count(self) -> int:
        return len(self._saved_page_states)

    def save(self):
        stamp_footers(self, self.footer)
        canvas.Canvas.save(self)


def stamp_footers(c: DeferredPageCanvas, footer: Optional[Callable]) -> int:
    """
    Replay the stashed pages, calling `footer(canvas, page_number, total)` on
    each before emitting it. Returns the number of pages written.
    """
    total = c.page_count
    for state in c._saved_page_states:
        c.__dict__.update(state)
        if footer is not None:
            footer(c, c.getPageNumber(), total)
        canvas.Canvas.showPage(c)
    return total


@dataclass
class PageFooter:
    organization: str
    palette: Dict
    geometry: PageGeometry
    generated_on: date

    def __call__(self, c, page_number: int, total: int):
        g = self.geometry
        c.saveState()
        c.setFillColor(self.palette["light_gray"])
        c.rect(0, 0, g.width, FOOTER_BAND_H, stroke=0, fill=1)

        c.setStrokeColor(self.palette["primary"])
        c.setLineWidth(0.5 * mm)
        c.line(g.left, FOOTER_RULE_Y, g.right, FOOTER_RULE_Y)

        c.setFillColor(self.palette["text"])
        c.setFont(FONT_BOLD, 9)
        c.drawString(g.left, FOOTER_TEXT_Y, self.organization)
        c.drawRightString(g.right, FOOTER_TEXT_Y, f"Page {page_number} of {total}")
        c.setFont(FONT_REGULAR, 9)
        c.drawCentredString(g.width / 2, FOOTER_TEXT_Y, f"Generated: {self.generated_on.strftime('%d/%m/%Y')}")
        c.restoreState()


@dataclass
class RenderResult:
    pdf: bytes
    page_count: int
    filename: str
    sections: List[str] = field(default_factory=list)
    rows: List[str] = field(default_factory=list)
    blocks: List[DrawnBlock] = field(default_factory=list)


def pdf_filename(tour_name: str, tag: str = "sangeethaholidays") -> str:
    """
    "Goa Getaway 2024!" -> "GoaGetaway2024_sangeethaholidays.pdf"
    """
    stem = re.sub(r"[^A-Za-z0-9]", "", tour_name or "") or "TourPackage"
    return f"{stem}_{tag}.pdf"


def cached_image_loader(timeout: float) -> Callable[[str], object]:
    """Load each distinct image source at most once per document."""
    cache: Dict[str, object] = {}

    def load(source: str):
        if source not in cache:
            cache[source] = load_image(source, timeout=timeout)
        return cache[source]

    return load


def render_pdf(
    package: TourPackage,
    brand: BrandConfig | None = None,
    image_loader: Optional[Callable[[str], object]] = None,
    is_cancelled: Optional[Callable[[], bool]] = None,
    generated_on: Optional[date] = None,
    geometry: PageGeometry | None = None,
) -> RenderResult:
    """
    Render `package` to PDF bytes.

    Any failure inside the drawing engine surfaces as `PDFGenerationError`;
    `GenerationCancelled` (a subclass) when `is_cancelled` returned True.
    """
    brand = brand or BrandConfig()
    geometry = geometry or PageGeometry()
    palette = build_palette(brand.palette)
    loader = image_loader or cached_image_loader(brand.image_timeout)
    footer = PageFooter(brand.organization, palette, geometry, generated_on or date.today())

    buffer = BytesIO()
    try:
        c = DeferredPageCanvas(buffer, pagesize=(geometry.width, geometry.height), footer=footer)
        c.setTitle(package.tour_name or "Tour Package Details")
        c.setAuthor(brand.organization)
        ctx = RenderContext(c, geometry, palette)
        build_document(ctx, package, brand, loader, is_cancelled)
        c.showPage()
        c.save()
    except PDFGenerationError:
        raise
    except Exception as e:
        logger.exception("PDF generation failed for '%s'", package.tour_name)
        raise PDFGenerationError(f"Could not generate PDF: {e}") from e

    result = RenderResult(
        pdf=buffer.getvalue(),
        page_count=c.page_count,
        filename=pdf_filename(package.tour_name, brand.file_tag),
        sections=list(ctx.sections),
        rows=list(ctx.rows),
        blocks=list(ctx.blocks),
    )
    logger.info(
        "Rendered '%s': %d page(s), %d section(s)",
        package.tour_name, result.page_count, len(result.sections),
    )
    return result


__all__ = [
    "DeferredPageCanvas",
    "PageFooter",
    "RenderResult",
    "stamp_footers",
    "pdf_filename",
    "cached_image_loader",
    "render_pdf",
]
