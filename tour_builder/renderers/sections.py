"""
Section-building helpers for the tour package PDF.

Each `build_*` function takes the render context, the package and the brand
config, decides whether its section has anything to show and, if so, draws the
banner followed by its rows/bullets/days. A section with no source data draws
nothing at all, not even its banner.
"""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Tuple

from reportlab.lib.units import mm

from ..exceptions import GenerationCancelled
from ..layout import RenderContext, wrap_text
from ..logging_utils import get_logger
from ..models import BrandConfig, TourPackage, clean_items
from .blocks import (
    PARAGRAPH_LINE_STEP,
    SUBHEADING_H,
    draw_bullet_list,
    draw_day_block,
    draw_key_value,
    draw_label,
    draw_paragraph,
    draw_section_header,
    draw_subheading,
    measure_bullet_item,
    measure_day_opener,
    measure_key_value,
    measure_list_start,
)

logger = get_logger(__name__)

HEADER_BAND_H = 40 * mm
TITLE_TOP = 50 * mm
TITLE_SIZE = 20
TITLE_LINE_STEP = 8 * mm
SUBTITLE_SIZE = 12
TITLE_GAP_AFTER = 8 * mm
LOGO_RADIUS = 10 * mm

SECTION_GAP = 6 * mm
FLIGHT_GAP = 5 * mm
ROW_INDENT = 5 * mm
POLICY_INDENT = 5 * mm

_AMOUNT_RE = re.compile(r"[\d,]+(\.\d+)?")

# (key, value, emphasis)
Row = Tuple[str, str, bool]


def format_amount(value: Optional[str], currency: str = "Rs.") -> str:
    """
    Prefix numeric-looking amounts with the currency marker.

    "45,000" -> "Rs. 45,000"; free text such as "On request" is kept as is.
    """
    cleaned = (value or "").strip()
    if not cleaned:
        return ""
    if _AMOUNT_RE.fullmatch(cleaned):
        return f"{currency} {cleaned}"
    return cleaned


def format_percent(value: Optional[str]) -> str:
    cleaned = (value or "").strip()
    if not cleaned or cleaned.endswith("%"):
        return cleaned
    return f"{cleaned}%"


def format_date(value) -> str:
    return value.strftime("%d %b %Y")


def _first_row_height(ctx: RenderContext, rows: List[Row], indent: float = 0.0) -> float:
    for key, value, emphasis in rows:
        height = measure_key_value(ctx, key, value, emphasis=emphasis, indent=indent)
        if height:
            return height
    return 0.0


def _draw_rows(ctx: RenderContext, rows: List[Row], indent: float = 0.0):
    for key, value, emphasis in rows:
        draw_key_value(ctx, key, value, emphasis=emphasis, indent=indent)


def _header_then_rows(ctx: RenderContext, title: str, rows: List[Row]) -> bool:
    rows = [row for row in rows if (row[1] or "").strip()]
    if not rows:
        return False
    draw_section_header(ctx, title, keep_with=_first_row_height(ctx, rows))
    _draw_rows(ctx, rows)
    logger.debug("Section %s: %d rows", title, len(rows))
    return True


# -------------------------------------------------------------------
# Title block
# -------------------------------------------------------------------

def _draw_logo(ctx: RenderContext, brand: BrandConfig, image_loader: Callable):
    c = ctx.canvas
    g = ctx.geometry
    cx, cy = g.left + 12 * mm, ctx.to_canvas_y(20 * mm)
    ctx.set_fill("white")
    c.circle(cx, cy, LOGO_RADIUS, stroke=0, fill=1)

    logo = image_loader(brand.logo) if brand.logo else None
    if logo is not None:
        try:
            c.drawImage(
                logo, g.left + 2 * mm, ctx.to_canvas_y(30 * mm), 20 * mm, 20 * mm,
                preserveAspectRatio=True, anchor="c", mask="auto",
            )
            return
        except Exception as e:
            logger.warning("Could not draw logo, using initials: %s", e)

    ctx.set_font(12, bold=True)
    ctx.set_fill("primary")
    ctx.draw_text(cx, 22 * mm, brand.short_name, align="center")


def build_title_block(ctx: RenderContext, package: TourPackage, brand: BrandConfig, image_loader: Callable):
    """Brand band across the top of page one, then the boxed tour title."""
    c = ctx.canvas
    g = ctx.geometry

    ctx.set_fill("primary")
    c.rect(0, ctx.to_canvas_y(HEADER_BAND_H), g.width, HEADER_BAND_H, stroke=0, fill=1)
    _draw_logo(ctx, brand, image_loader)

    ctx.set_fill("white")
    ctx.set_font(18, bold=True)
    ctx.draw_text(g.left + 30 * mm, 16 * mm, brand.organization)
    ctx.set_font(11)
    ctx.draw_text(g.left + 30 * mm, 26 * mm, brand.tagline)
    ctx.record("banner", brand.organization, 0, HEADER_BAND_H)
    ctx.y = TITLE_TOP

    title = package.tour_name.strip() or "Tour Package Details"
    lines = wrap_text(title, g.content_width - 20 * mm, TITLE_SIZE, bold=True)
    box_h = 12 * mm + TITLE_LINE_STEP * (len(lines) - 1) + 18 * mm
    top = ctx.place("title", box_h + TITLE_GAP_AFTER, title)

    ctx.set_fill("light_gray")
    c.roundRect(g.left, ctx.to_canvas_y(top + box_h), g.content_width, box_h, 3 * mm, stroke=0, fill=1)
    ctx.set_font(TITLE_SIZE, bold=True)
    ctx.set_fill("primary")
    for i, line in enumerate(lines):
        ctx.draw_text(g.width / 2, top + 12 * mm + i * TITLE_LINE_STEP, line, align="center")
    ctx.set_font(SUBTITLE_SIZE)
    ctx.set_fill("text")
    ctx.draw_text(g.width / 2, top + box_h - 8 * mm, brand.document_subtitle, align="center")


# -------------------------------------------------------------------
# Body sections
# -------------------------------------------------------------------

def build_trip_overview(ctx: RenderContext, package: TourPackage, brand: BrandConfig):
    travel_dates = ""
    if package.start_date and package.end_date:
        travel_dates = f"{format_date(package.start_date)} to {format_date(package.end_date)}"
    travellers = package.num_travellers.strip()
    rows: List[Row] = [
        ("Customer", package.customer_name, True),
        ("Travel Dates", travel_dates, True),
        ("Duration", package.duration_label, False),
        ("Number of Travelers", f"{travellers} pax" if travellers else "", False),
        ("Places Covered", ", ".join(clean_items(package.places)), False),
        ("Cost per Person", format_amount(package.cost_per_person, brand.currency), True),
    ]
    _header_then_rows(ctx, "TRIP OVERVIEW", rows)


def _flight_rows(package: TourPackage, outbound: bool, currency: str) -> List[Row]:
    leg = package.onward_flight if outbound else package.return_flight
    rows: List[Row] = [
        ("Airline", leg.airline, False),
        ("Route", leg.route, False),
        ("Departure", leg.departure, False),
        ("Arrival", leg.arrival, False),
        ("Baggage", leg.baggage, False),
    ]
    one_way = package.flight_type == "one-way"
    if outbound:
        rows.append(("Onward Cost" if one_way else "Flight Cost", format_amount(leg.cost, currency), True))
    elif one_way:
        rows.append(("Return Cost", format_amount(leg.cost, currency), True))
    rows.append(("Note", leg.note, False))
    return rows


def build_flight_details(ctx: RenderContext, package: TourPackage, brand: BrandConfig):
    onward = package.onward_flight.airline.strip()
    ret = package.return_flight.airline.strip()
    if not (onward or ret):
        return
    legs = [
        (outbound, _flight_rows(package, outbound, brand.currency))
        for outbound, airline in ((True, onward), (False, ret))
        if airline
    ]
    first_row = _first_row_height(ctx, legs[0][1], indent=ROW_INDENT)
    draw_section_header(ctx, "FLIGHT DETAILS", keep_with=SUBHEADING_H + first_row)
    for outbound, rows in legs:
        first_row = _first_row_height(ctx, rows, indent=ROW_INDENT)
        draw_subheading(ctx, "OUTBOUND FLIGHT" if outbound else "RETURN FLIGHT", keep_with=first_row)
        _draw_rows(ctx, rows, indent=ROW_INDENT)
        ctx.advance(FLIGHT_GAP)


def build_land_package(ctx: RenderContext, package: TourPackage, brand: BrandConfig):
    cost = package.land_package_cost.strip()
    note = package.land_package_note.strip()
    if not (cost or note):
        return
    rows: List[Row] = [
        ("Package Type", package.package_type.capitalize(), True),
        ("Land Package Cost", format_amount(cost, brand.currency), True),
        ("GST", format_percent(package.gst_percent), False),
    ]
    if package.package_type == "international":
        rows.append(("TCS", format_percent(package.tcs_percent), False))
    rows.append(("Note", note, False))
    _header_then_rows(ctx, "LAND PACKAGE DETAILS", rows)


def build_accommodation(ctx: RenderContext, package: TourPackage, brand: BrandConfig):
    """
    Multi-hotel list when any hotel entry is named, else the single legacy
    hotel. Never both.
    """
    named = [(i, h) for i, h in enumerate(package.hotels) if h.hotel_name.strip()]
    if named:
        places = package.places
        keys = [
            (places[i].strip() if i < len(places) else "") or f"Hotel {i + 1}"
            for i, _ in named
        ]
        draw_section_header(
            ctx, "ACCOMMODATION",
            keep_with=measure_key_value(ctx, keys[0], named[0][1].hotel_name, emphasis=True),
        )
        for key, (_, hotel) in zip(keys, named):
            draw_key_value(ctx, key, hotel.hotel_name, emphasis=True)
            draw_key_value(ctx, "Room Type", hotel.room_type.strip() or "Standard", indent=ROW_INDENT)
        return
    if not package.hotel_name.strip():
        return
    _header_then_rows(ctx, "ACCOMMODATION", [
        ("Hotel", package.hotel_name, True),
        ("Room Type", package.room_type.strip() or "Standard", False),
    ])


def _load_day_image(day, image_loader: Callable):
    return image_loader(day.image) if day.image else None


def build_itinerary(
    ctx: RenderContext,
    package: TourPackage,
    image_loader: Callable,
    is_cancelled: Callable[[], bool],
):
    if not package.itinerary:
        return
    first = package.itinerary[0]
    image = _load_day_image(first, image_loader)
    draw_section_header(ctx, "DETAILED ITINERARY", keep_with=measure_day_opener(ctx, first, image is not None))
    for i, day in enumerate(package.itinerary):
        _check_cancelled(is_cancelled, f"day {day.day}")
        if i:
            image = _load_day_image(day, image_loader)
        draw_day_block(ctx, day, image)


def _build_bullet_section(ctx: RenderContext, title: str, items: List[str]):
    items = clean_items(items)
    if not items:
        return
    draw_section_header(ctx, title, keep_with=measure_bullet_item(ctx, items[0], 10))
    draw_bullet_list(ctx, items, 10)
    ctx.advance(SECTION_GAP)


def build_inclusions(ctx: RenderContext, package: TourPackage, brand: BrandConfig):
    _build_bullet_section(ctx, "PACKAGE INCLUSIONS", package.inclusions)


def build_exclusions(ctx: RenderContext, package: TourPackage, brand: BrandConfig):
    _build_bullet_section(ctx, "PACKAGE EXCLUSIONS", package.exclusions)


def build_terms(ctx: RenderContext, package: TourPackage, brand: BrandConfig):
    policies = [
        ("Hotel Policy:", clean_items(package.hotel_policy)),
        ("Transport Policy:", clean_items(package.cab_policy)),
    ]
    policies = [(label, items) for label, items in policies if items]
    if not policies:
        return
    first_items = policies[0][1]
    draw_section_header(
        ctx, "TERMS & CONDITIONS",
        keep_with=measure_list_start(ctx, first_items, 12, 9, POLICY_INDENT),
    )
    for label, items in policies:
        first = measure_bullet_item(ctx, items[0], 9, POLICY_INDENT)
        draw_label(ctx, label, font_size=12, keep_with=first)
        draw_bullet_list(ctx, items, 9, POLICY_INDENT)
        ctx.advance(SECTION_GAP)


def build_contact(ctx: RenderContext, package: TourPackage, brand: BrandConfig):
    if not (package.contact_name.strip() or package.contact_phone.strip()):
        return
    _header_then_rows(ctx, "CONTACT INFORMATION", [
        ("Contact Person", package.contact_name, True),
        ("Phone", package.contact_phone, True),
        ("Email", brand.email, True),
        ("Website", brand.website, True),
    ])


def build_disclaimer(ctx: RenderContext, package: TourPackage, brand: BrandConfig):
    if not brand.disclaimer:
        return
    draw_section_header(ctx, "DISCLAIMER", keep_with=PARAGRAPH_LINE_STEP)
    draw_paragraph(ctx, brand.disclaimer, font_size=9)


# -------------------------------------------------------------------
# Assembly
# -------------------------------------------------------------------

def _check_cancelled(is_cancelled: Optional[Callable[[], bool]], where: str):
    if is_cancelled is not None and is_cancelled():
        logger.info("PDF generation cancelled before %s", where)
        raise GenerationCancelled(f"Generation cancelled before {where}")


def build_document(
    ctx: RenderContext,
    package: TourPackage,
    brand: BrandConfig,
    image_loader: Callable,
    is_cancelled: Optional[Callable[[], bool]] = None,
):
    """
    Draw every section in its fixed order. `is_cancelled` is polled between
    sections and between itinerary days.
    """
    cancelled = is_cancelled or (lambda: False)
    steps = [
        ("title", lambda: build_title_block(ctx, package, brand, image_loader)),
        ("overview", lambda: build_trip_overview(ctx, package, brand)),
        ("flights", lambda: build_flight_details(ctx, package, brand)),
        ("land package", lambda: build_land_package(ctx, package, brand)),
        ("accommodation", lambda: build_accommodation(ctx, package, brand)),
        ("itinerary", lambda: build_itinerary(ctx, package, image_loader, cancelled)),
        ("inclusions", lambda: build_inclusions(ctx, package, brand)),
        ("exclusions", lambda: build_exclusions(ctx, package, brand)),
        ("terms", lambda: build_terms(ctx, package, brand)),
        ("contact", lambda: build_contact(ctx, package, brand)),
        ("disclaimer", lambda: build_disclaimer(ctx, package, brand)),
    ]
    for name, step in steps:
        _check_cancelled(is_cancelled, name)
        step()
    logger.debug(
        "Assembled %d sections over %d page(s)", len(ctx.sections), ctx.page_number
    )


__all__ = [
    "format_amount",
    "format_percent",
    "build_title_block",
    "build_trip_overview",
    "build_flight_details",
    "build_land_package",
    "build_accommodation",
    "build_itinerary",
    "build_inclusions",
    "build_exclusions",
    "build_terms",
    "build_contact",
    "build_disclaimer",
    "build_document",
]
