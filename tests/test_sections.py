import dataclasses
from datetime import date
from io import BytesIO

import pytest
from reportlab.lib.units import mm

from tour_builder.exceptions import GenerationCancelled, PDFGenerationError
from tour_builder.models import FlightLeg, HotelStay
from tour_builder.pipelines import generate_pdf
from tour_builder.renderers import blocks, pdf_renderer, sections
from tour_builder.renderers.pdf_renderer import DeferredPageCanvas, pdf_filename, render_pdf

EXPECTED_ORDER = [
    "TRIP OVERVIEW",
    "FLIGHT DETAILS",
    "LAND PACKAGE DETAILS",
    "ACCOMMODATION",
    "DETAILED ITINERARY",
    "PACKAGE INCLUSIONS",
    "PACKAGE EXCLUSIONS",
    "TERMS & CONDITIONS",
    "CONTACT INFORMATION",
    "DISCLAIMER",
]


def _render(package, brand, **kwargs):
    return render_pdf(package, brand, image_loader=lambda src: None, **kwargs)


def test_full_package_sections_in_order(sample_package, brand):
    result = _render(sample_package, brand)
    assert result.sections == EXPECTED_ORDER
    assert result.pdf.startswith(b"%PDF")
    assert result.filename == "KeralaBackwatersEscape_sangeethaholidays.pdf"


def test_empty_sections_are_omitted(brand):
    from tour_builder.models import TourPackage

    package = TourPackage(tour_name="Day Trip", customer_name="Ravi", num_travellers="2")
    result = _render(package, brand)
    for header in (
        "PACKAGE INCLUSIONS",
        "PACKAGE EXCLUSIONS",
        "TERMS & CONDITIONS",
        "ACCOMMODATION",
        "FLIGHT DETAILS",
        "LAND PACKAGE DETAILS",
        "DETAILED ITINERARY",
        "CONTACT INFORMATION",
    ):
        assert header not in result.sections
    assert result.sections == ["TRIP OVERVIEW", "DISCLAIMER"]


def test_nothing_to_show_still_renders_title(empty_package):
    from tour_builder.models import BrandConfig

    result = _render(empty_package, BrandConfig())
    assert result.sections == []
    assert result.page_count == 1
    assert [b.kind for b in result.blocks] == ["banner", "title"]


def test_trip_overview_rows(sample_package, brand):
    result = _render(sample_package, brand)
    assert "Travel Dates: 10 Jan 2024 to 13 Jan 2024" in result.rows
    assert "Duration: 3N/4D" in result.rows
    assert "Number of Travelers: 4 pax" in result.rows
    assert "Cost per Person: Rs. 45,000" in result.rows


def test_tcs_only_for_international(sample_package, brand):
    domestic = _render(sample_package, brand)
    assert not any(row.startswith("TCS:") for row in domestic.rows)
    assert "GST: 5%" in domestic.rows

    international = _render(dataclasses.replace(sample_package, package_type="international"), brand)
    assert "TCS: 5%" in international.rows
    assert "Package Type: International" in international.rows


def test_roundtrip_flight_costs(sample_package, brand):
    result = _render(sample_package, brand)
    assert "Flight Cost: Rs. 12,000" in result.rows
    assert not any(row.startswith("Return Cost") for row in result.rows)
    assert not any(row.startswith("Onward Cost") for row in result.rows)


def test_one_way_flight_costs(sample_package, brand):
    package = dataclasses.replace(sample_package, flight_type="one-way")
    result = _render(package, brand)
    assert "Onward Cost: Rs. 12,000" in result.rows
    assert "Return Cost: Rs. 11,500" in result.rows
    assert not any(row.startswith("Flight Cost") for row in result.rows)


def test_flight_subsections_conditional_on_airline(sample_package, brand):
    package = dataclasses.replace(sample_package, return_flight=FlightLeg(cost="9,000"))
    result = _render(package, brand)
    subheadings = [b.label for b in result.blocks if b.kind == "subheading"]
    assert subheadings == ["OUTBOUND FLIGHT"]


def test_multi_hotel_replaces_legacy_hotel(sample_package, brand):
    package = dataclasses.replace(
        sample_package,
        places=["Munnar", "Alleppey"],
        hotels=[HotelStay("Tea County", "Valley View"), HotelStay("", "")],
    )
    result = _render(package, brand)
    assert "Munnar: Tea County" in result.rows
    assert "Room Type: Valley View" in result.rows
    assert not any(row.startswith("Hotel: Backwater Retreat") for row in result.rows)


def test_legacy_hotel_defaults_room_type(sample_package, brand):
    result = _render(dataclasses.replace(sample_package, room_type=""), brand)
    assert "Hotel: Backwater Retreat" in result.rows
    assert "Room Type: Standard" in result.rows


def test_contact_uses_brand_details(sample_package, brand):
    result = _render(sample_package, brand)
    assert "Email: desk@example.com" in result.rows
    assert "Website: www.example.com" in result.rows


def test_long_document_respects_bottom_limit(long_package, brand):
    result = _render(long_package, brand)
    limit = pdf_renderer.PageGeometry().bottom_limit
    top = pdf_renderer.PageGeometry().top
    assert result.page_count > 2
    for block in result.blocks:
        assert block.bottom <= limit + 1e-6 or block.top == top
    assert max(b.page for b in result.blocks) == result.page_count


@pytest.mark.parametrize(
    "value, expected",
    [
        ("45,000", "Rs. 45,000"),
        ("1200.50", "Rs. 1200.50"),
        ("On request", "On request"),
        ("", ""),
        ("  ", ""),
    ],
)
def test_format_amount(value, expected):
    assert sections.format_amount(value) == expected


def test_format_percent():
    assert sections.format_percent("5") == "5%"
    assert sections.format_percent("5%") == "5%"
    assert sections.format_percent("") == ""


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Goa Getaway 2024!", "GoaGetaway2024_sangeethaholidays.pdf"),
        ("  Kerala  ", "Kerala_sangeethaholidays.pdf"),
        ("", "TourPackage_sangeethaholidays.pdf"),
        ("***", "TourPackage_sangeethaholidays.pdf"),
    ],
)
def test_pdf_filename(name, expected):
    assert pdf_filename(name) == expected


def test_footer_stamped_with_total_pages():
    calls = []
    c = DeferredPageCanvas(BytesIO(), footer=lambda canv, page, total: calls.append((page, total)))
    for _ in range(3):
        c.drawString(100, 100, "content")
        c.showPage()
    c.save()
    assert calls == [(1, 3), (2, 3), (3, 3)]


def test_footer_text(monkeypatch, sample_package, brand):
    drawn = []
    original = pdf_renderer.PageFooter.__call__

    def spy(self, c, page_number, total):
        drawn.append((self.organization, page_number, total, self.generated_on))
        original(self, c, page_number, total)

    monkeypatch.setattr(pdf_renderer.PageFooter, "__call__", spy)
    result = _render(sample_package, brand, generated_on=date(2024, 1, 5))
    assert len(drawn) == result.page_count
    assert drawn[-1] == (brand.organization, result.page_count, result.page_count, date(2024, 1, 5))


def test_cancelled_generation_raises_and_writes_nothing(sample_package, brand, tmp_path):
    with pytest.raises(GenerationCancelled):
        generate_pdf(sample_package, tmp_path, brand, is_cancelled=lambda: True)
    assert list(tmp_path.iterdir()) == []


def test_cancel_between_itinerary_days(long_package, brand):
    checks = {"n": 0}

    def cancel_after_a_few():
        checks["n"] += 1
        return checks["n"] > 9

    with pytest.raises(GenerationCancelled):
        _render(long_package, brand, is_cancelled=cancel_after_a_few)


def test_drawing_failure_is_wrapped(monkeypatch, sample_package, brand):
    def boom(*args, **kwargs):
        raise ValueError("bad value")

    monkeypatch.setattr(sections, "build_trip_overview", boom)
    with pytest.raises(PDFGenerationError) as excinfo:
        _render(sample_package, brand)
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_generate_pdf_writes_file(sample_package, brand, tmp_path, monkeypatch):
    monkeypatch.setattr(pdf_renderer, "load_image", lambda source, timeout=10.0: None)
    path = generate_pdf(sample_package, tmp_path, brand)
    assert path == tmp_path / "KeralaBackwatersEscape_sangeethaholidays.pdf"
    assert path.read_bytes().startswith(b"%PDF")


def _near_page_end(ctx, space):
    ctx.place("row", 10)
    ctx.y = ctx.geometry.bottom_limit - blocks.SECTION_HEADER_H - space


def _first(ctx, kind):
    return next(b for b in ctx.blocks if b.kind == kind)


def test_flight_header_stays_with_first_subheading(ctx, sample_package, brand):
    _near_page_end(ctx, 15 * mm)
    sections.build_flight_details(ctx, sample_package, brand)
    header, subheading = _first(ctx, "section"), _first(ctx, "subheading")
    assert header.page == subheading.page == 2


def test_itinerary_header_stays_with_first_day(ctx, sample_package):
    _near_page_end(ctx, 15 * mm)
    sections.build_itinerary(ctx, sample_package, lambda src: None, None)
    assert _first(ctx, "section").page == _first(ctx, "day").page == 2


def test_itinerary_header_reserves_first_day_image(ctx, sample_package, image_reader):
    sample_package.itinerary[0].image = "photo.png"
    _near_page_end(ctx, 40 * mm)
    sections.build_itinerary(ctx, sample_package, lambda src: image_reader, None)
    header, image = _first(ctx, "section"), _first(ctx, "day-image")
    assert header.page == image.page == 2


def test_day_images_loaded_once_each(ctx, sample_package, image_reader):
    for day in sample_package.itinerary:
        day.image = f"day{day.day}.png"
    loaded = []

    def loader(src):
        loaded.append(src)
        return image_reader

    sections.build_itinerary(ctx, sample_package, loader, None)
    assert loaded == ["day1.png", "day2.png", "day3.png", "day4.png"]


def test_terms_header_stays_with_first_policy(ctx, sample_package, brand):
    _near_page_end(ctx, 15 * mm)
    sections.build_terms(ctx, sample_package, brand)
    header, label, bullet = _first(ctx, "section"), _first(ctx, "label"), _first(ctx, "bullet")
    assert header.page == label.page == bullet.page == 2


def test_short_sections_stay_on_page_when_first_block_fits(ctx, sample_package, brand):
    _near_page_end(ctx, 15 * mm)
    sections.build_inclusions(ctx, sample_package, brand)
    header, bullet = _first(ctx, "section"), _first(ctx, "bullet")
    assert header.page == bullet.page == 1
