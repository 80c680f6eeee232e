import json

import pytest

from tour_builder import data_sources
from tour_builder.exceptions import InvalidPayloadError


def test_merge_overrides_merges_nested_dicts():
    target = {"organization": {"name": "A", "short_name": "AA"}, "currency": "Rs."}
    data_sources.merge_overrides(target, {"organization": {"name": "B"}, "currency": "INR"})
    assert target == {"organization": {"name": "B", "short_name": "AA"}, "currency": "INR"}


def test_default_brand_config():
    brand = data_sources.load_brand_config(data_sources.CONFIG_DIR / "no-such-brand.yml")
    assert brand.organization == "SANGEETHA HOLIDAYS PRIVATE LIMITED"
    assert brand.short_name == "SHPL"
    assert brand.file_tag == "sangeethaholidays"
    assert brand.palette["primary"] == "#2980B9"
    assert brand.logo is None
    assert brand.disclaimer


def test_brand_override_file(tmp_path):
    override = tmp_path / "brand.yml"
    override.write_text(
        "organization:\n  name: Coastal Trails\n  file_tag: coastal\nlogo: assets/logo.png\npalette:\n  accent: '#FF0000'\n",
        encoding="utf-8",
    )
    brand = data_sources.load_brand_config(override)
    assert brand.organization == "Coastal Trails"
    assert brand.short_name == "SHPL"
    assert brand.file_tag == "coastal"
    assert brand.palette["accent"] == "#FF0000"
    assert brand.palette["primary"] == "#2980B9"
    assert brand.logo == str((tmp_path / "assets" / "logo.png").resolve())


def test_form_defaults_loaded():
    defaults = data_sources.load_form_defaults()
    assert defaults["flight"]["baggage"] == "15kg + 7kg"
    assert defaults["contact_name"] == "Mr. Venkata Srikanth Pinnamaraju"


def test_load_tour_package_from_saved_record(tmp_path, sample_payload):
    path = tmp_path / "record.json"
    path.write_text(json.dumps({"id": "form_1", "tourName": "x", "data": sample_payload}), encoding="utf-8")
    package = data_sources.load_tour_package(path)
    assert package.tour_name == "Kerala Backwaters Escape"
    assert len(package.itinerary) == 4


def test_load_tour_package_from_raw_payload(tmp_path, sample_payload):
    path = tmp_path / "payload.json"
    path.write_text(json.dumps(sample_payload), encoding="utf-8")
    assert data_sources.load_tour_package(path).customer_name == "Anita Rao"


def test_invalid_json_rejected(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(InvalidPayloadError):
        data_sources.load_json_object(path)


def test_non_object_rejected(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    with pytest.raises(InvalidPayloadError):
        data_sources.load_json_object(path)
