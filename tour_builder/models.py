from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

PACKAGE_TYPES = ("domestic", "international")
FLIGHT_TYPES = ("roundtrip", "one-way")
MEAL_NAMES = ("breakfast", "lunch", "dinner")

# Forms are filled in from India; stored timestamps are UTC instants of local midnight
BUSINESS_TZ = timezone(timedelta(hours=5, minutes=30), "IST")


# -------------------------------------------------------------------
# Small coercion helpers
# -------------------------------------------------------------------

def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _text_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [_text(v) for v in value]


def clean_items(items: List[str] | None) -> List[str]:
    """Drop empty / whitespace-only entries and trim the rest."""
    return [item.strip() for item in (items or []) if item and item.strip()]


def _local_date(moment: datetime, tz: timezone) -> date:
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(tz).date()


def parse_iso_date(value: Any, tz: timezone = BUSINESS_TZ) -> Optional[date]:
    """
    Turn a stored date back into a `date`.

    Accepts `date`/`datetime` objects, plain `YYYY-MM-DD` strings and full
    ISO-8601 timestamps such as `2024-01-09T18:30:00.000Z`. Timestamps that
    carry an offset are read as calendar dates in `tz`, so that instant is
    10 Jan. Empty values give None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _local_date(value, tz)
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return _local_date(datetime.fromisoformat(raw), tz)
    except ValueError:
        pass
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def _iso(value: Optional[date]) -> str:
    return value.isoformat() if value else ""


def resize_entries(entries: List[Any], count: int, factory: Callable[[], Any]) -> List[Any]:
    """
    Truncate or pad `entries` to `count` items.

    Existing entries keep their index; new slots are filled from `factory`.
    """
    count = max(0, int(count))
    resized = list(entries[:count])
    while len(resized) < count:
        resized.append(factory())
    return resized


# -------------------------------------------------------------------
# Flights / hotels
# -------------------------------------------------------------------

@dataclass
class FlightLeg:
    airline: str = ""
    baggage: str = ""
    departure: str = ""
    arrival: str = ""
    route: str = ""
    note: str = ""
    cost: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any] | None) -> "FlightLeg":
        data = data or {}
        return cls(**{f.name: _text(data.get(f.name)) for f in dataclasses.fields(cls)})

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass
class HotelStay:
    hotel_name: str = ""
    room_type: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any] | None) -> "HotelStay":
        data = data or {}
        return cls(
            hotel_name=_text(data.get("hotelName", data.get("name"))),
            room_type=_text(data.get("roomType")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"hotelName": self.hotel_name, "roomType": self.room_type}


# -------------------------------------------------------------------
# Itinerary days (tagged union on `kind`)
# -------------------------------------------------------------------

@dataclass
class MealPlan:
    breakfast: bool = False
    lunch: bool = False
    dinner: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any] | None) -> "MealPlan":
        data = data or {}
        return cls(**{name: bool(data.get(name)) for name in MEAL_NAMES})

    def to_dict(self) -> Dict[str, bool]:
        return dataclasses.asdict(self)

    def labels(self) -> List[str]:
        return [name.capitalize() for name in MEAL_NAMES if getattr(self, name)]


@dataclass
class LegacyDay:
    """Older itinerary shape: free-text activity lists per part of the day."""

    day: int
    morning: List[str] = field(default_factory=list)
    afternoon: List[str] = field(default_factory=list)
    meals: List[str] = field(default_factory=list)
    overnight: str = ""
    image: Optional[str] = None
    kind: str = field(default="legacy", init=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LegacyDay":
        return cls(
            day=int(data.get("day", 1)),
            morning=_text_list(data.get("morning")),
            afternoon=_text_list(data.get("afternoon")),
            meals=_text_list(data.get("meals")),
            overnight=_text(data.get("overnight")),
            image=data.get("image") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "kind": self.kind,
            "day": self.day,
            "morning": list(self.morning),
            "afternoon": list(self.afternoon),
            "meals": list(self.meals),
            "overnight": self.overnight,
        }
        if self.image:
            out["image"] = self.image
        return out


@dataclass
class StructuredDay:
    """Newer itinerary shape: title, description and a fixed meal set."""

    day: int
    title: str = ""
    description: str = ""
    meals: MealPlan = field(default_factory=MealPlan)
    overnight: str = ""
    image: Optional[str] = None
    kind: str = field(default="structured", init=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructuredDay":
        meals = data.get("meals")
        return cls(
            day=int(data.get("day", 1)),
            title=_text(data.get("title")),
            description=_text(data.get("description")),
            meals=MealPlan.from_dict(meals if isinstance(meals, dict) else {}),
            overnight=_text(data.get("overnight")),
            image=data.get("image") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "kind": self.kind,
            "day": self.day,
            "title": self.title,
            "description": self.description,
            "meals": self.meals.to_dict(),
            "overnight": self.overnight,
        }
        if self.image:
            out["image"] = self.image
        return out


ItineraryDay = Union[LegacyDay, StructuredDay]


def itinerary_day_from_dict(data: Dict[str, Any]) -> ItineraryDay:
    kind = data.get("kind")
    if kind == "structured":
        return StructuredDay.from_dict(data)
    if kind == "legacy":
        return LegacyDay.from_dict(data)
    # Payloads saved before the discriminant existed
    if "title" in data or "description" in data or isinstance(data.get("meals"), dict):
        return StructuredDay.from_dict(data)
    return LegacyDay.from_dict(data)


def default_overnight(day_number: int, total_days: int) -> str:
    return "Departure" if day_number == total_days else "Hotel"


# -------------------------------------------------------------------
# Tour package
# -------------------------------------------------------------------

@dataclass
class TourPackage:
    """Everything the staff member entered for one trip offer."""

    tour_name: str = ""
    customer_name: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    num_travellers: str = ""
    cost_per_person: str = ""
    flight_type: str = "roundtrip"
    onward_flight: FlightLeg = field(default_factory=FlightLeg)
    return_flight: FlightLeg = field(default_factory=FlightLeg)
    package_type: str = "domestic"
    land_package_cost: str = ""
    land_package_note: str = ""
    gst_percent: str = ""
    tcs_percent: str = ""
    hotel_name: str = ""
    room_type: str = ""
    places: List[str] = field(default_factory=list)
    hotels: List[HotelStay] = field(default_factory=list)
    itinerary: List[ItineraryDay] = field(default_factory=list)
    inclusions: List[str] = field(default_factory=list)
    exclusions: List[str] = field(default_factory=list)
    hotel_policy: List[str] = field(default_factory=list)
    cab_policy: List[str] = field(default_factory=list)
    contact_name: str = ""
    contact_phone: str = ""

    # ---- derived values ----

    @property
    def duration_days(self) -> Optional[int]:
        if not self.start_date or not self.end_date:
            return None
        return (self.end_date - self.start_date).days + 1

    @property
    def nights(self) -> Optional[int]:
        days = self.duration_days
        return None if days is None else days - 1

    @property
    def duration_label(self) -> str:
        days = self.duration_days
        if days is None or days < 1:
            return ""
        return f"{days - 1}N/{days}D"

    # ---- resizable extensions ----

    def with_place_count(self, count: int) -> "TourPackage":
        return dataclasses.replace(self, places=resize_entries(self.places, count, str))

    def with_hotel_count(self, count: int) -> "TourPackage":
        return dataclasses.replace(self, hotels=resize_entries(self.hotels, count, HotelStay))

    # ---- (de)serialization ----

    @classmethod
    def from_dict(cls, data: Dict[str, Any] | None) -> "TourPackage":
        data = data or {}
        package_type = _text(data.get("packageType")) or "domestic"
        flight_type = _text(data.get("flightType")) or "roundtrip"
        return cls(
            tour_name=_text(data.get("tourName")),
            customer_name=_text(data.get("customerName")),
            start_date=parse_iso_date(data.get("startDate")),
            end_date=parse_iso_date(data.get("endDate")),
            num_travellers=_text(data.get("numTravellers")),
            cost_per_person=_text(data.get("costPerPerson")),
            flight_type=flight_type,
            onward_flight=FlightLeg.from_dict(data.get("onwardFlight")),
            return_flight=FlightLeg.from_dict(data.get("returnFlight")),
            package_type=package_type,
            land_package_cost=_text(data.get("landPackageCost")),
            land_package_note=_text(data.get("landPackageNote")),
            gst_percent=_text(data.get("gstPercent")),
            tcs_percent=_text(data.get("tcsPercent")),
            hotel_name=_text(data.get("hotelName")),
            room_type=_text(data.get("roomType")),
            places=_text_list(data.get("places")),
            hotels=[HotelStay.from_dict(h) for h in data.get("hotels") or []],
            itinerary=[itinerary_day_from_dict(d) for d in data.get("itinerary") or []],
            inclusions=_text_list(data.get("inclusions")),
            exclusions=_text_list(data.get("exclusions")),
            hotel_policy=_text_list(data.get("hotelPolicy")),
            cab_policy=_text_list(data.get("cabPolicy")),
            contact_name=_text(data.get("contactName")),
            contact_phone=_text(data.get("contactPhone")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tourName": self.tour_name,
            "customerName": self.customer_name,
            "startDate": _iso(self.start_date),
            "endDate": _iso(self.end_date),
            "numTravellers": self.num_travellers,
            "costPerPerson": self.cost_per_person,
            "flightType": self.flight_type,
            "onwardFlight": self.onward_flight.to_dict(),
            "returnFlight": self.return_flight.to_dict(),
            "packageType": self.package_type,
            "landPackageCost": self.land_package_cost,
            "landPackageNote": self.land_package_note,
            "gstPercent": self.gst_percent,
            "tcsPercent": self.tcs_percent,
            "hotelName": self.hotel_name,
            "roomType": self.room_type,
            "places": list(self.places),
            "hotels": [h.to_dict() for h in self.hotels],
            "itinerary": [d.to_dict() for d in self.itinerary],
            "inclusions": list(self.inclusions),
            "exclusions": list(self.exclusions),
            "hotelPolicy": list(self.hotel_policy),
            "cabPolicy": list(self.cab_policy),
            "contactName": self.contact_name,
            "contactPhone": self.contact_phone,
        }


def sync_itinerary(package: TourPackage) -> TourPackage:
    """
    Return a copy whose itinerary has exactly one entry per trip day.

    Days already present are kept by day number; missing days are created
    empty, with "Hotel" as the overnight stay except on the last day.
    """
    total = package.duration_days
    if not total or total < 1:
        return package
    existing = {d.day: d for d in package.itinerary}
    days: List[ItineraryDay] = []
    for number in range(1, total + 1):
        days.append(
            existing.get(number)
            or StructuredDay(day=number, overnight=default_overnight(number, total))
        )
    return dataclasses.replace(package, itinerary=days)


def new_tour_package(defaults: Dict[str, Any] | None = None, **overrides) -> TourPackage:
    """
    Fresh package pre-filled with the form defaults (baggage, fare note,
    tax rates, standard policy lists, contact person).
    """
    defaults = defaults or {}
    flight = defaults.get("flight", {}) or {}
    leg = {"baggage": flight.get("baggage", ""), "note": flight.get("note", "")}
    package = TourPackage(
        onward_flight=FlightLeg.from_dict(leg),
        return_flight=FlightLeg.from_dict(leg),
        gst_percent=_text(defaults.get("gst_percent")),
        tcs_percent=_text(defaults.get("tcs_percent")),
        inclusions=_text_list(defaults.get("inclusions")),
        exclusions=_text_list(defaults.get("exclusions")),
        hotel_policy=_text_list(defaults.get("hotel_policy")),
        cab_policy=_text_list(defaults.get("cab_policy")),
        contact_name=_text(defaults.get("contact_name")),
        contact_phone=_text(defaults.get("contact_phone")),
    )
    if overrides:
        package = dataclasses.replace(package, **overrides)
    return sync_itinerary(package)


# -------------------------------------------------------------------
# Configuration objects
# -------------------------------------------------------------------

@dataclass
class BrandConfig:
    """Organisation details and styling applied to every generated PDF."""

    organization: str = "SANGEETHA HOLIDAYS PRIVATE LIMITED"
    short_name: str = "SHPL"
    tagline: str = "Professional Travel Services | Customized Tour Packages"
    document_subtitle: str = "Complete Travel Itinerary & Package Details"
    email: str = ""
    website: str = ""
    file_tag: str = "sangeethaholidays"
    currency: str = "Rs."
    logo: Optional[str] = None
    image_timeout: float = 10.0
    disclaimer: str = ""
    palette: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrandConfig":
        org = data.get("organization", {}) or {}
        base = cls()
        return cls(
            organization=org.get("name", base.organization),
            short_name=org.get("short_name", base.short_name),
            tagline=org.get("tagline", base.tagline),
            document_subtitle=org.get("document_subtitle", base.document_subtitle),
            email=org.get("email", ""),
            website=org.get("website", ""),
            file_tag=org.get("file_tag", base.file_tag),
            currency=data.get("currency", base.currency),
            logo=data.get("logo") or None,
            image_timeout=float(data.get("image_timeout", base.image_timeout)),
            disclaimer=(data.get("disclaimer") or "").strip(),
            palette=dict(data.get("palette") or {}),
        )


@dataclass
class BuildConfig:
    """Paths and options for building a tour PDF from a saved payload."""

    payload_path: Optional[Path] = None
    output_dir: Path = Path("exports")
    output_pdf: Optional[Path] = None
    brand_config_path: Optional[Path] = None

    @classmethod
    def default(cls, root: Path | None = None) -> "BuildConfig":
        root = Path(root) if root else Path.cwd()
        return cls(output_dir=root / "exports")


__all__ = [
    "FlightLeg",
    "HotelStay",
    "MealPlan",
    "LegacyDay",
    "StructuredDay",
    "ItineraryDay",
    "TourPackage",
    "BrandConfig",
    "BuildConfig",
    "itinerary_day_from_dict",
    "default_overnight",
    "sync_itinerary",
    "new_tour_package",
    "resize_entries",
    "clean_items",
    "parse_iso_date",
]
