"""
Page geometry, text measurement and the page-break decision engine.

Everything a block renderer needs to know about *where* it may draw lives on
`RenderContext`: the page size and margins, the vertical cursor, the current
text column width and the active font/colour. The cursor is measured downward
from the top edge of the page (in points); `to_canvas_y` converts it to
reportlab's bottom-left origin at the moment of drawing.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase.pdfmetrics import stringWidth

from .logging_utils import get_logger

logger = get_logger(__name__)

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

DEFAULT_PALETTE = {
    "primary": "#2980B9",
    "header": "#3498DB",
    "text": "#2C3E50",
    "light_gray": "#ECF0F1",
    "accent": "#F1C40F",
}


def build_palette(overrides: Dict[str, str] | None = None) -> Dict[str, colors.Color]:
    """
    Return the colour palette for the PDF, brand overrides applied.
    """
    merged = dict(DEFAULT_PALETTE)
    merged.update(overrides or {})
    palette = {name: colors.HexColor(value) for name, value in merged.items()}
    palette["white"] = colors.white
    return palette


# -------------------------------------------------------------------
# Text measurement
# -------------------------------------------------------------------

def font_name(bold: bool = False) -> str:
    return FONT_BOLD if bold else FONT_REGULAR


def text_width(text: str, font_size: float, bold: bool = False) -> float:
    return stringWidth(text, font_name(bold), font_size)


def wrap_text(text: str | None, max_width: float, font_size: float, bold: bool = False) -> List[str]:
    """
    Greedy word wrap against a measured width.

    Words are accumulated until the next one would overflow `max_width`.
    Words are never split, so a single word wider than the column becomes a
    line of its own. Explicit newlines start a new line. Empty or
    whitespace-only input yields an empty list.
    """
    if not text or not text.strip():
        return []
    lines: List[str] = []
    for paragraph in text.splitlines():
        words = paragraph.split()
        if not words:
            continue
        line = words[0]
        for word in words[1:]:
            trial = f"{line} {word}"
            if text_width(trial, font_size, bold) <= max_width:
                line = trial
            else:
                lines.append(line)
                line = word
        lines.append(line)
    return lines


# -------------------------------------------------------------------
# Geometry + render state
# -------------------------------------------------------------------

@dataclass(frozen=True)
class PageGeometry:
    width: float = A4[0]
    height: float = A4[1]
    margin: float = 15 * mm
    footer_reserve: float = 15 * mm

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def left(self) -> float:
        return self.margin

    @property
    def right(self) -> float:
        return self.width - self.margin

    @property
    def top(self) -> float:
        return self.margin

    @property
    def bottom_limit(self) -> float:
        """Lowest cursor position content may reach on any page."""
        return self.height - self.margin - self.footer_reserve

    @property
    def usable_height(self) -> float:
        return self.bottom_limit - self.top


@dataclass
class DrawnBlock:
    kind: str
    label: str
    page: int
    top: float
    bottom: float


class RenderContext:
    """
    Mutable render state for exactly one document generation call.

    Holds the canvas, the vertical cursor and the active styling, and keeps an
    append-only log of what was placed where (used by callers and tests to
    inspect the result without parsing the PDF).
    """

    def __init__(self, canvas, geometry: PageGeometry | None = None, palette=None):
        self.canvas = canvas
        self.geometry = geometry or PageGeometry()
        self.palette = palette or build_palette()
        self.y = self.geometry.top
        self.page_number = 1
        self.column_width = self.geometry.content_width
        self.blocks: List[DrawnBlock] = []
        self.sections: List[str] = []
        self.rows: List[str] = []
        self.page_breaks = 0
        self._page_has_content = False
        self._font: Optional[tuple] = None
        self.fill = None

    # ---- page-break engine ----

    @property
    def remaining(self) -> float:
        return self.geometry.bottom_limit - self.y

    def fits(self, required: float) -> bool:
        return self.y + required <= self.geometry.bottom_limit

    def ensure_space(self, required: float) -> bool:
        """
        Start a new page when `required` more points would cross the bottom
        limit. Returns True if a page break happened.

        A block taller than a whole page breaks at most once: on a page that
        holds nothing yet there is nothing to gain from another break, so the
        block is drawn from the top and allowed to overflow.
        """
        if self.fits(required):
            return False
        if not self._page_has_content:
            logger.debug(
                "Block of %.1fpt exceeds usable page height on page %d; drawing anyway",
                required, self.page_number,
            )
            return False
        self.new_page()
        return True

    def new_page(self):
        self.canvas.showPage()
        self.page_number += 1
        self.page_breaks += 1
        self.y = self.geometry.top
        self._page_has_content = False
        # showPage resets the graphics state
        self._font = None
        self.fill = None

    def place(self, kind: str, height: float, label: str = "", keep_with: float = 0.0) -> float:
        """
        Claim `height` points for an atomic block and return its top edge.

        Space for `height + keep_with` is ensured first, so headers and labels
        can insist that the start of the following block lands on the same
        page. The cursor ends exactly `height` below the returned top.
        """
        self.ensure_space(height + keep_with)
        top = self.y
        self.record(kind, label, top, top + height)
        self.y = top + height
        return top

    def record(self, kind: str, label: str, top: float, bottom: float):
        self.blocks.append(DrawnBlock(kind, label, self.page_number, top, bottom))
        self._page_has_content = True

    def advance(self, dy: float):
        self.y += dy

    @contextmanager
    def column(self, width: float):
        """Temporarily narrow (or widen) the text column."""
        previous = self.column_width
        self.column_width = width
        try:
            yield self
        finally:
            self.column_width = previous

    # ---- drawing state ----

    def to_canvas_y(self, y: float) -> float:
        return self.geometry.height - y

    def set_font(self, size: float, bold: bool = False):
        key = (font_name(bold), size)
        if key != self._font:
            self.canvas.setFont(*key)
            self._font = key

    def set_fill(self, name_or_color):
        color = self.palette[name_or_color] if isinstance(name_or_color, str) else name_or_color
        self.canvas.setFillColor(color)
        self.fill = color

    def set_stroke(self, name_or_color, width: float = 0.5):
        color = self.palette[name_or_color] if isinstance(name_or_color, str) else name_or_color
        self.canvas.setStrokeColor(color)
        self.canvas.setLineWidth(width)

    def draw_text(self, x: float, y: float, text: str, align: str = "left"):
        cy = self.to_canvas_y(y)
        if align == "center":
            self.canvas.drawCentredString(x, cy, text)
        elif align == "right":
            self.canvas.drawRightString(x, cy, text)
        else:
            self.canvas.drawString(x, cy, text)


__all__ = [
    "FONT_REGULAR",
    "FONT_BOLD",
    "build_palette",
    "font_name",
    "text_width",
    "wrap_text",
    "PageGeometry",
    "DrawnBlock",
    "RenderContext",
]
