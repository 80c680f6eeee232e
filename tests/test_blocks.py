import pytest
from reportlab.lib.units import mm

from tour_builder.models import LegacyDay, MealPlan, StructuredDay
from tour_builder.renderers import blocks

LONG_VALUE = (
    "IndiGo 6E-123 departing Rajiv Gandhi International Airport early morning "
    "with a short layover in Bengaluru before continuing to Kochi"
)


def _structured_day(description="Transfer to Munnar and check in. Evening at leisure.", image=None):
    return StructuredDay(
        day=1,
        title="Arrival in Kochi",
        description=description,
        meals=MealPlan(breakfast=True, dinner=True),
        overnight="Munnar",
        image=image,
    )


def _legacy_day(image=None):
    return LegacyDay(
        day=2,
        morning=["Tea museum", "", "Mattupetty dam"],
        afternoon=["Echo point"],
        meals=["Breakfast"],
        overnight="Munnar",
        image=image,
    )


def test_key_value_suppressed_when_empty(ctx):
    assert blocks.draw_key_value(ctx, "Route", "") == 0.0
    assert blocks.draw_key_value(ctx, "Route", "   ") == 0.0
    assert ctx.rows == []
    assert ctx.y == ctx.geometry.top


def test_key_value_always_show(ctx):
    blocks.draw_key_value(ctx, "Room Type", "", always_show=True)
    assert ctx.rows == ["Room Type: Not specified"]


def test_key_value_height_matches_cursor(ctx):
    expected = blocks.measure_key_value(ctx, "Airline", LONG_VALUE, indent=5 * mm)
    start = ctx.y
    drawn = blocks.draw_key_value(ctx, "Airline", LONG_VALUE, indent=5 * mm)
    assert drawn == pytest.approx(expected)
    assert ctx.y - start == pytest.approx(expected)
    # wrapped onto several lines: 8mm first line + 6mm per extra line
    extra_lines = round((expected - 8 * mm) / (6 * mm))
    assert extra_lines >= 1
    assert expected == pytest.approx(8 * mm + extra_lines * 6 * mm)


def test_key_value_narrow_column_wraps_more(ctx):
    wide = blocks.measure_key_value(ctx, "Stay", LONG_VALUE)
    with ctx.column(ctx.column_width - 65 * mm):
        narrow = blocks.measure_key_value(ctx, "Stay", LONG_VALUE)
    assert narrow > wide


def test_bullet_list_skips_blank_items(ctx):
    drawn = blocks.draw_bullet_list(ctx, ["Airport transfers", "", "   ", "Sightseeing"])
    assert [b.label for b in ctx.blocks if b.kind == "bullet"] == ["Airport transfers", "Sightseeing"]
    assert drawn == pytest.approx(2 * 7 * mm)


def test_bullet_list_height_matches_measure(ctx):
    items = ["Short one", LONG_VALUE, "Another"]
    expected = blocks.measure_bullet_list(ctx, items, 9, 5 * mm)
    start = ctx.y
    blocks.draw_bullet_list(ctx, items, 9, 5 * mm)
    assert ctx.y - start == pytest.approx(expected)


def test_long_bullet_list_flows_between_items(ctx):
    items = [f"Item number {i} with a little text" for i in range(80)]
    blocks.draw_bullet_list(ctx, items)
    bullets = [b for b in ctx.blocks if b.kind == "bullet"]
    assert ctx.page_number > 1
    for b in bullets:
        assert b.bottom <= ctx.geometry.bottom_limit + 1e-6


def test_labeled_list_height_matches_measure(ctx):
    items = ["Tea museum", LONG_VALUE]
    expected = blocks.measure_labeled_list(ctx, items)
    start = ctx.y
    drawn = blocks.draw_labeled_list(ctx, "Morning:", items)
    assert drawn == pytest.approx(expected)
    assert ctx.y - start == pytest.approx(expected)


def test_labeled_list_empty_draws_nothing(ctx):
    assert blocks.draw_labeled_list(ctx, "Morning:", ["", " "]) == 0.0
    assert ctx.blocks == []


def test_label_keeps_with_first_item(ctx):
    ctx.place("row", 10)
    ctx.y = ctx.geometry.bottom_limit - blocks.measure_label() - 1 * mm
    blocks.draw_labeled_list(ctx, "Hotel Policy:", ["Valid ID proof required"])
    label = next(b for b in ctx.blocks if b.kind == "label")
    first = next(b for b in ctx.blocks if b.kind == "bullet")
    assert label.page == first.page == 2


def test_section_header_never_stranded(ctx):
    ctx.place("row", 10)
    ctx.y = ctx.geometry.bottom_limit - blocks.SECTION_HEADER_H - 5 * mm
    blocks.draw_section_header(ctx, "PACKAGE INCLUSIONS")
    assert ctx.blocks[-1].page == 2
    assert ctx.sections == ["PACKAGE INCLUSIONS"]


def test_section_header_keeps_with_given_height(ctx):
    ctx.place("row", 10)
    ctx.y = ctx.geometry.bottom_limit - blocks.SECTION_HEADER_H - 15 * mm
    blocks.draw_section_header(ctx, "DISCLAIMER", keep_with=5 * mm)
    assert ctx.blocks[-1].page == 1
    blocks.draw_section_header(ctx, "DETAILED ITINERARY", keep_with=30 * mm)
    assert ctx.blocks[-1].page == 2


def test_paragraph_height_matches_measure(ctx):
    expected = blocks.measure_paragraph(ctx, LONG_VALUE * 3)
    start = ctx.y
    assert blocks.draw_paragraph(ctx, LONG_VALUE * 3) == pytest.approx(expected)
    assert ctx.y - start == pytest.approx(expected)


@pytest.mark.parametrize("make_day", [_structured_day, _legacy_day])
def test_day_block_height_matches_measure(ctx, make_day):
    day = make_day()
    expected = blocks.measure_day_block(ctx, day, has_image=False)
    drawn = blocks.draw_day_block(ctx, day)
    assert drawn == pytest.approx(expected)


@pytest.mark.parametrize("make_day", [_structured_day, _legacy_day])
def test_day_block_with_image_height_matches_measure(ctx, make_day, image_reader):
    day = make_day(image="data:image/png;base64,xx")
    expected = blocks.measure_day_block(ctx, day, has_image=True)
    drawn = blocks.draw_day_block(ctx, day, image_reader)
    assert drawn == pytest.approx(expected)
    assert any(b.kind == "day-image" for b in ctx.blocks)


def test_short_day_with_image_clears_image_box(ctx, image_reader):
    day = StructuredDay(day=1, title="Rest", overnight="Hotel", image="photo.png")
    start = ctx.y
    blocks.draw_day_block(ctx, day, image_reader)
    image = next(b for b in ctx.blocks if b.kind == "day-image")
    assert ctx.y >= image.bottom
    assert ctx.y - start == pytest.approx(
        blocks.DAY_HEADER_H + blocks.measure_day_title(ctx, day) + 50 * mm + blocks.DAY_SPACING_AFTER
    )


def test_unloaded_day_image_keeps_full_width(ctx):
    day = _structured_day(image="https://example.invalid/missing.jpg")
    drawn = blocks.draw_day_block(ctx, day)
    assert not any(b.kind == "day-image" for b in ctx.blocks)
    assert drawn == pytest.approx(blocks.measure_day_block(ctx, day, has_image=False))


def test_day_image_never_straddles_pages(ctx, image_reader):
    ctx.place("row", 10)
    ctx.y = ctx.geometry.bottom_limit - 40 * mm
    blocks.draw_day_block(ctx, _structured_day(image="photo.png"), image_reader)
    header = next(b for b in ctx.blocks if b.kind == "day")
    image = next(b for b in ctx.blocks if b.kind == "day-image")
    assert header.page == image.page == 2
    assert image.bottom <= ctx.geometry.bottom_limit


def test_day_opener_includes_image_box(ctx):
    day = _structured_day()
    title = blocks.measure_day_title(ctx, day)
    assert blocks.measure_day_opener(ctx, day) == pytest.approx(blocks.DAY_HEADER_H + title + 16 * mm)
    with_image = blocks.measure_day_opener(ctx, day, has_image=True)
    assert with_image >= blocks.DAY_HEADER_H + 50 * mm


def test_day_moves_to_next_page_when_opener_does_not_fit(ctx):
    day = _structured_day()
    ctx.place("row", 10)
    ctx.y = ctx.geometry.bottom_limit - blocks.measure_day_opener(ctx, day) + 1 * mm
    blocks.draw_day_block(ctx, day)
    header = next(b for b in ctx.blocks if b.kind == "day")
    assert header.page == 2
    assert header.top == ctx.geometry.top


def test_long_day_spans_pages_without_overflow(ctx):
    description = " ".join(["Long scenic drive with several photo stops."] * 120)
    result = blocks.draw_day_block(ctx, _structured_day(description=description))
    assert result is None
    assert ctx.page_number == 2
    for b in ctx.blocks:
        assert b.bottom <= ctx.geometry.bottom_limit + 1e-6 or b.top == ctx.geometry.top


def test_structured_meals_row(ctx):
    blocks.draw_day_block(ctx, _structured_day())
    assert "Meals: Breakfast, Dinner" in ctx.rows
    assert "Stay: Munnar" in ctx.rows


def test_legacy_meals_render_as_bullets(ctx):
    blocks.draw_day_block(ctx, _legacy_day())
    labels = [b.label for b in ctx.blocks if b.kind == "label"]
    assert labels == ["Morning:", "Afternoon/Evening:", "Meals:"]
    assert "Breakfast" in [b.label for b in ctx.blocks if b.kind == "bullet"]
