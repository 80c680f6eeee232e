"""
Block renderers for the tour PDF.

Every block type has one `measure_*` function that is the single source of
truth for its height, and a `draw_*` function that asks the render context for
exactly that much space (`RenderContext.place`, which may start a new page),
draws into it and leaves the cursor at its bottom edge. Because both sides use
the same wrapped lines, the height decided before drawing is always the
cursor delta observed after drawing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from reportlab.lib import colors
from reportlab.lib.units import mm

from ..layout import RenderContext, text_width, wrap_text
from ..logging_utils import get_logger
from ..models import ItineraryDay, LegacyDay, StructuredDay, clean_items

logger = get_logger(__name__)

# Section banner
SECTION_SPACE_BEFORE = 8 * mm
SECTION_BANNER_H = 12 * mm
SECTION_SPACE_AFTER = 6 * mm
SECTION_HEADER_H = SECTION_SPACE_BEFORE + SECTION_BANNER_H + SECTION_SPACE_AFTER
KEEP_WITH_NEXT = 10 * mm

# Sub-heading bar (OUTBOUND FLIGHT / RETURN FLIGHT)
SUBHEADING_BAR_H = 8 * mm
SUBHEADING_H = 12 * mm

# Key/value rows
ROW_FONT_SIZE = 10
ROW_EMPHASIS_SIZE = 11
ROW_FIRST_LINE = 8 * mm
ROW_LINE_STEP = 6 * mm
ROW_BASELINE = 4 * mm
ROW_INSET = 5 * mm
ROW_KEY_GAP = 5 * mm
ROW_RIGHT_PAD = 15 * mm
MIN_VALUE_WIDTH = 20 * mm

# Bullets
BULLET_FIRST_LINE = 7 * mm
BULLET_LINE_STEP = 5 * mm
BULLET_BASELINE = 3.5 * mm
BULLET_INSET = 8 * mm
BULLET_TEXT_OFFSET = 8 * mm
BULLET_RIGHT_PAD = 25 * mm
BULLET_RADIUS = 1 * mm

# Labels and paragraphs
LABEL_INSET = 8 * mm
LABEL_BASELINE = 4 * mm
LIST_GAP_AFTER = 3 * mm
PARAGRAPH_LINE_STEP = 5 * mm
PARAGRAPH_BASELINE = 3.5 * mm
PARAGRAPH_GAP_AFTER = 3 * mm

# Itinerary days
DAY_HEADER_BAR = 10 * mm
DAY_HEADER_H = 14 * mm
DAY_TITLE_SIZE = 11
DAY_TITLE_STEP = 6 * mm
DAY_TITLE_GAP = 2 * mm
DAY_IMAGE_W = 50 * mm
DAY_IMAGE_H = 35 * mm
DAY_IMAGE_GUTTER = 15 * mm
DAY_IMAGE_CLEARANCE = 15 * mm
DAY_MIN_BODY = 16 * mm
DAY_SPACING_AFTER = 8 * mm

NOT_SPECIFIED = "Not specified"


# -------------------------------------------------------------------
# Section header / sub-heading / label
# -------------------------------------------------------------------

def measure_section_header() -> float:
    return SECTION_HEADER_H


def draw_section_header(ctx: RenderContext, title: str, keep_with: float = KEEP_WITH_NEXT) -> float:
    """
    Full-width banner that opens a section. `keep_with` is the height of the
    section's first block, which must fit on the same page as the banner.
    """
    height = measure_section_header()
    top = ctx.place("section", height, title, keep_with=keep_with)
    g = ctx.geometry
    banner_top = top + SECTION_SPACE_BEFORE
    banner_y = ctx.to_canvas_y(banner_top + SECTION_BANNER_H)

    c = ctx.canvas
    c.setFillColor(colors.Color(0, 0, 0, alpha=0.1))
    c.roundRect(g.left + 1 * mm, banner_y - 1 * mm, g.content_width, SECTION_BANNER_H, 2 * mm, stroke=0, fill=1)
    ctx.set_fill("header")
    c.roundRect(g.left, banner_y, g.content_width, SECTION_BANNER_H, 2 * mm, stroke=0, fill=1)

    ctx.set_fill("white")
    ctx.set_font(11, bold=True)
    ctx.draw_text(g.left + 5 * mm, banner_top + 8 * mm, title)
    ctx.set_fill("text")
    ctx.sections.append(title)
    return height


def draw_subheading(ctx: RenderContext, title: str, keep_with: float = KEEP_WITH_NEXT) -> float:
    top = ctx.place("subheading", SUBHEADING_H, title, keep_with=keep_with)
    g = ctx.geometry
    ctx.set_fill("light_gray")
    ctx.canvas.rect(
        g.left + 3 * mm, ctx.to_canvas_y(top + SUBHEADING_BAR_H),
        g.content_width - 6 * mm, SUBHEADING_BAR_H, stroke=0, fill=1,
    )
    ctx.set_font(11, bold=True)
    ctx.set_fill("primary")
    ctx.draw_text(g.left + 8 * mm, top + 5.5 * mm, title)
    ctx.set_fill("text")
    return SUBHEADING_H


def measure_label(font_size: float = 11) -> float:
    return font_size * 0.75 * mm


def draw_label(ctx: RenderContext, text: str, font_size: float = 11, keep_with: float = 0.0) -> float:
    height = measure_label(font_size)
    top = ctx.place("label", height, text, keep_with=keep_with)
    ctx.set_font(font_size, bold=True)
    ctx.set_fill("primary")
    ctx.draw_text(ctx.geometry.left + LABEL_INSET, top + LABEL_BASELINE, text)
    ctx.set_fill("text")
    return height


# -------------------------------------------------------------------
# Key / value rows
# -------------------------------------------------------------------

@dataclass
class RowLayout:
    key_text: str
    key_width: float
    lines: List[str]
    value_size: float
    emphasis: bool

    @property
    def height(self) -> float:
        return ROW_FIRST_LINE + ROW_LINE_STEP * (len(self.lines) - 1)


def layout_key_value(
    ctx: RenderContext,
    key: str,
    value: Optional[str],
    emphasis: bool = False,
    indent: float = 0.0,
    always_show: bool = False,
) -> Optional[RowLayout]:
    """
    Wrap a `key: value` row for the current column, or None when the row is
    suppressed (empty value and not `always_show`).
    """
    cleaned = (value or "").strip()
    if not cleaned:
        if not always_show:
            return None
        cleaned = NOT_SPECIFIED
    key_width = text_width(f"{key}: ", ROW_FONT_SIZE, bold=True) + ROW_KEY_GAP
    value_size = ROW_EMPHASIS_SIZE if emphasis else ROW_FONT_SIZE
    max_width = max(ctx.column_width - key_width - ROW_RIGHT_PAD - indent, MIN_VALUE_WIDTH)
    lines = wrap_text(cleaned, max_width, value_size, bold=emphasis)
    return RowLayout(f"{key}:", key_width, lines, value_size, emphasis)


def measure_key_value(ctx: RenderContext, key: str, value: Optional[str], **kwargs) -> float:
    row = layout_key_value(ctx, key, value, **kwargs)
    return row.height if row else 0.0


def draw_key_value(
    ctx: RenderContext,
    key: str,
    value: Optional[str],
    emphasis: bool = False,
    indent: float = 0.0,
    always_show: bool = False,
) -> float:
    row = layout_key_value(ctx, key, value, emphasis=emphasis, indent=indent, always_show=always_show)
    if row is None:
        return 0.0
    shown = " ".join(row.lines)
    top = ctx.place("row", row.height, f"{key}: {shown}")
    x = ctx.geometry.left + ROW_INSET + indent
    baseline = top + ROW_BASELINE

    ctx.set_font(ROW_FONT_SIZE, bold=True)
    ctx.set_fill("text")
    ctx.draw_text(x, baseline, row.key_text)

    ctx.set_font(row.value_size, bold=row.emphasis)
    ctx.set_fill("primary" if row.emphasis else "text")
    # Continuation lines stay in the value column, right of the label
    for i, line in enumerate(row.lines):
        ctx.draw_text(x + row.key_width, baseline + i * ROW_LINE_STEP, line)
    ctx.set_fill("text")
    ctx.rows.append(f"{key}: {shown}")
    return row.height


# -------------------------------------------------------------------
# Bullet lists
# -------------------------------------------------------------------

def wrap_bullet(ctx: RenderContext, item: str, font_size: float = 10, indent: float = 0.0) -> List[str]:
    max_width = ctx.column_width - BULLET_RIGHT_PAD - indent
    return wrap_text(item, max_width, font_size)


def bullet_height(line_count: int) -> float:
    if line_count <= 0:
        return 0.0
    return BULLET_FIRST_LINE + BULLET_LINE_STEP * (line_count - 1)


def measure_bullet_item(ctx: RenderContext, item: str, font_size: float = 10, indent: float = 0.0) -> float:
    return bullet_height(len(wrap_bullet(ctx, item, font_size, indent)))


def measure_bullet_list(ctx: RenderContext, items: List[str], font_size: float = 10, indent: float = 0.0) -> float:
    return sum(measure_bullet_item(ctx, item, font_size, indent) for item in clean_items(items))


def draw_bullet_list(ctx: RenderContext, items: List[str], font_size: float = 10, indent: float = 0.0) -> float:
    """
    One marker + wrapped text per non-empty item. Each item is its own atomic
    block, so a long list flows across pages between items, never inside one.
    """
    total = 0.0
    marker_x = ctx.geometry.left + BULLET_INSET + indent
    for item in clean_items(items):
        lines = wrap_bullet(ctx, item, font_size, indent)
        height = bullet_height(len(lines))
        top = ctx.place("bullet", height, item)
        baseline = top + BULLET_BASELINE

        ctx.set_fill("primary")
        ctx.canvas.circle(marker_x, ctx.to_canvas_y(baseline - 1 * mm), BULLET_RADIUS, stroke=0, fill=1)

        ctx.set_font(font_size)
        ctx.set_fill("text")
        for i, line in enumerate(lines):
            ctx.draw_text(marker_x + BULLET_TEXT_OFFSET, baseline + i * BULLET_LINE_STEP, line)
        total += height
    return total


def measure_list_start(
    ctx: RenderContext,
    items: List[str],
    label_size: float = 11,
    item_size: float = 10,
    indent: float = 0.0,
) -> float:
    """Label plus the first item, the part of a labeled list that stays together."""
    cleaned = clean_items(items)
    if not cleaned:
        return 0.0
    return measure_label(label_size) + measure_bullet_item(ctx, cleaned[0], item_size, indent)


def measure_labeled_list(
    ctx: RenderContext,
    items: List[str],
    label_size: float = 11,
    item_size: float = 10,
    indent: float = 0.0,
) -> float:
    if not clean_items(items):
        return 0.0
    return measure_label(label_size) + measure_bullet_list(ctx, items, item_size, indent) + LIST_GAP_AFTER


def draw_labeled_list(
    ctx: RenderContext,
    label: str,
    items: List[str],
    label_size: float = 11,
    item_size: float = 10,
    indent: float = 0.0,
) -> float:
    """`Label:` line followed by its bullets; the label keeps with the first item."""
    cleaned = clean_items(items)
    if not cleaned:
        return 0.0
    first = measure_bullet_item(ctx, cleaned[0], item_size, indent)
    total = draw_label(ctx, label, label_size, keep_with=first)
    total += draw_bullet_list(ctx, cleaned, item_size, indent)
    ctx.advance(LIST_GAP_AFTER)
    return total + LIST_GAP_AFTER


# -------------------------------------------------------------------
# Paragraphs
# -------------------------------------------------------------------

def wrap_paragraph(ctx: RenderContext, text: str, font_size: float = 10, indent: float = LABEL_INSET) -> List[str]:
    return wrap_text(text, ctx.column_width - indent - 5 * mm, font_size)


def measure_paragraph(ctx: RenderContext, text: str, font_size: float = 10, indent: float = LABEL_INSET) -> float:
    lines = wrap_paragraph(ctx, text, font_size, indent)
    if not lines:
        return 0.0
    return PARAGRAPH_LINE_STEP * len(lines) + PARAGRAPH_GAP_AFTER


def draw_paragraph(ctx: RenderContext, text: str, font_size: float = 10, indent: float = LABEL_INSET) -> float:
    """Free text placed line by line, so long descriptions flow onto the next page."""
    lines = wrap_paragraph(ctx, text, font_size, indent)
    if not lines:
        return 0.0
    for line in lines:
        top = ctx.place("paragraph", PARAGRAPH_LINE_STEP, line)
        ctx.set_font(font_size)
        ctx.set_fill("text")
        ctx.draw_text(ctx.geometry.left + indent, top + PARAGRAPH_BASELINE, line)
    ctx.advance(PARAGRAPH_GAP_AFTER)
    return PARAGRAPH_LINE_STEP * len(lines) + PARAGRAPH_GAP_AFTER


# -------------------------------------------------------------------
# Itinerary day blocks
# -------------------------------------------------------------------

def day_text_width(ctx: RenderContext, has_image: bool) -> float:
    if not has_image:
        return ctx.column_width
    return ctx.column_width - DAY_IMAGE_W - DAY_IMAGE_GUTTER


def wrap_day_title(ctx: RenderContext, day: ItineraryDay) -> List[str]:
    if not isinstance(day, StructuredDay):
        return []
    return wrap_text(day.title, ctx.column_width - LABEL_INSET - 5 * mm, DAY_TITLE_SIZE, bold=True)


def measure_day_title(ctx: RenderContext, day: ItineraryDay) -> float:
    lines = wrap_day_title(ctx, day)
    return DAY_TITLE_STEP * len(lines) + DAY_TITLE_GAP if lines else 0.0


def meals_text(day: StructuredDay) -> str:
    return ", ".join(day.meals.labels())


def measure_day_body(ctx: RenderContext, day: ItineraryDay) -> float:
    """Height of everything between the title and the stay row."""
    if isinstance(day, LegacyDay):
        return (
            measure_labeled_list(ctx, day.morning)
            + measure_labeled_list(ctx, day.afternoon)
            + measure_labeled_list(ctx, day.meals)
        )
    return measure_paragraph(ctx, day.description) + measure_key_value(ctx, "Meals", meals_text(day))


def measure_day_opener(ctx: RenderContext, day: ItineraryDay, has_image: bool = False) -> float:
    """Header, title and image box (or a minimum of body text) reserved together."""
    with ctx.column(day_text_width(ctx, has_image)):
        title = measure_day_title(ctx, day)
    reserve = DAY_IMAGE_H + DAY_IMAGE_CLEARANCE if has_image else DAY_MIN_BODY
    return DAY_HEADER_H + title + reserve


def measure_day_block(ctx: RenderContext, day: ItineraryDay, has_image: bool = False) -> float:
    """
    Total height of a day when it fits on one page: the text column and the
    floated image sit side by side, so the larger of the two counts.
    """
    with ctx.column(day_text_width(ctx, has_image)):
        text = (
            measure_day_title(ctx, day)
            + measure_day_body(ctx, day)
            + measure_key_value(ctx, "Stay", day.overnight)
        )
    height = DAY_HEADER_H + text
    if has_image:
        height = max(height, measure_day_opener(ctx, day, has_image=True))
    return height + DAY_SPACING_AFTER


def _draw_day_header(ctx: RenderContext, day: ItineraryDay):
    top = ctx.place("day", DAY_HEADER_H, f"DAY {day.day}")
    g = ctx.geometry
    ctx.set_fill("accent")
    ctx.canvas.roundRect(
        g.left + 2 * mm, ctx.to_canvas_y(top + DAY_HEADER_BAR),
        g.content_width - 4 * mm, DAY_HEADER_BAR, 2 * mm, stroke=0, fill=1,
    )
    ctx.set_font(12, bold=True)
    ctx.set_fill("white")
    ctx.draw_text(g.left + 8 * mm, top + 6.5 * mm, f"DAY {day.day}")
    ctx.set_fill("text")


def _draw_day_title(ctx: RenderContext, day: ItineraryDay):
    lines = wrap_day_title(ctx, day)
    if not lines:
        return
    top = ctx.place("day-title", measure_day_title(ctx, day), lines[0])
    ctx.set_font(DAY_TITLE_SIZE, bold=True)
    ctx.set_fill("primary")
    for i, line in enumerate(lines):
        ctx.draw_text(ctx.geometry.left + LABEL_INSET, top + LABEL_BASELINE + i * DAY_TITLE_STEP, line)
    ctx.set_fill("text")


def _draw_day_image(ctx: RenderContext, day: ItineraryDay, image):
    """Pin the photo to the right of the text column."""
    g = ctx.geometry
    top = ctx.y
    x = g.right - DAY_IMAGE_W - 5 * mm
    try:
        ctx.canvas.drawImage(
            image, x, ctx.to_canvas_y(top + DAY_IMAGE_H), DAY_IMAGE_W, DAY_IMAGE_H,
            preserveAspectRatio=True, anchor="c", mask="auto",
        )
    except Exception as e:
        logger.warning("Could not add image for day %s: %s", day.day, e)
        return
    ctx.set_font(8)
    ctx.set_fill("text")
    ctx.draw_text(x, top + DAY_IMAGE_H + 5 * mm, "Day Image")
    ctx.record("day-image", f"DAY {day.day}", top, top + DAY_IMAGE_H + DAY_IMAGE_CLEARANCE)


def _draw_day_body(ctx: RenderContext, day: ItineraryDay):
    if isinstance(day, LegacyDay):
        draw_labeled_list(ctx, "Morning:", day.morning)
        draw_labeled_list(ctx, "Afternoon/Evening:", day.afternoon)
        draw_labeled_list(ctx, "Meals:", day.meals)
        return
    draw_paragraph(ctx, day.description)
    draw_key_value(ctx, "Meals", meals_text(day))


def draw_day_block(ctx: RenderContext, day: ItineraryDay, image=None) -> Optional[float]:
    """
    Lay out one itinerary day:
    header -> [title] -> [image] -> [description | morning/afternoon/meals]
    -> [meals] -> stay row -> clear the floated image.

    `image` is the already loaded day photo, or None to use the full width.
    Returns the height used when the whole day landed on one page, else None.
    """
    has_image = image is not None
    height = measure_day_block(ctx, day, has_image)
    ctx.ensure_space(measure_day_opener(ctx, day, has_image))
    start_page, start_y = ctx.page_number, ctx.y

    _draw_day_header(ctx, day)
    with ctx.column(day_text_width(ctx, has_image)):
        _draw_day_title(ctx, day)
        if has_image:
            _draw_day_image(ctx, day, image)
        _draw_day_body(ctx, day)
        draw_key_value(ctx, "Stay", day.overnight)

    if ctx.page_number == start_page:
        # Clears the image box when the text column is shorter
        ctx.y = start_y + height
        return height
    ctx.advance(DAY_SPACING_AFTER)
    return None


__all__ = [
    "SECTION_HEADER_H",
    "KEEP_WITH_NEXT",
    "measure_section_header",
    "draw_section_header",
    "draw_subheading",
    "measure_label",
    "draw_label",
    "RowLayout",
    "layout_key_value",
    "measure_key_value",
    "draw_key_value",
    "wrap_bullet",
    "measure_bullet_item",
    "measure_bullet_list",
    "draw_bullet_list",
    "measure_list_start",
    "measure_labeled_list",
    "draw_labeled_list",
    "measure_paragraph",
    "draw_paragraph",
    "measure_day_title",
    "measure_day_body",
    "measure_day_opener",
    "measure_day_block",
    "draw_day_block",
    "meals_text",
]
