import os

# Keep the service off the on-disk database while tests import it
os.environ.setdefault("TOUR_DB_URL", "sqlite://")

from datetime import date
from io import BytesIO

import pytest
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tour_builder.layout import RenderContext
from tour_builder.models import BrandConfig, TourPackage


@pytest.fixture
def ctx():
    return RenderContext(canvas.Canvas(BytesIO(), pagesize=A4))


@pytest.fixture
def brand():
    return BrandConfig(
        email="desk@example.com",
        website="www.example.com",
        disclaimer="Rates are subject to availability.",
    )


def _png_bytes(size=(40, 30), color=(200, 80, 40)):
    from PIL import Image

    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    return _png_bytes()


@pytest.fixture
def image_reader(png_bytes):
    return ImageReader(BytesIO(png_bytes))


@pytest.fixture
def sample_payload():
    return {
        "tourName": "Kerala Backwaters Escape",
        "customerName": "Anita Rao",
        "startDate": "2024-01-10T00:00:00.000Z",
        "endDate": "2024-01-13T00:00:00.000Z",
        "numTravellers": "4",
        "costPerPerson": "45,000",
        "flightType": "roundtrip",
        "onwardFlight": {
            "airline": "IndiGo 6E-123",
            "baggage": "15kg + 7kg",
            "departure": "HYD 06:10",
            "arrival": "COK 07:45",
            "route": "Hyderabad - Kochi",
            "note": "",
            "cost": "12,000",
        },
        "returnFlight": {
            "airline": "IndiGo 6E-456",
            "baggage": "15kg + 7kg",
            "departure": "COK 20:10",
            "arrival": "HYD 21:40",
            "route": "Kochi - Hyderabad",
            "note": "",
            "cost": "11,500",
        },
        "packageType": "domestic",
        "landPackageCost": "30,000",
        "landPackageNote": "",
        "gstPercent": "5",
        "tcsPercent": "5",
        "hotelName": "Backwater Retreat",
        "roomType": "Deluxe",
        "places": [],
        "hotels": [],
        "itinerary": [
            {
                "kind": "structured",
                "day": 1,
                "title": "Arrival in Kochi",
                "description": "Pickup from the airport and transfer to Munnar. Evening at leisure.",
                "meals": {"breakfast": False, "lunch": True, "dinner": True},
                "overnight": "Munnar",
            },
            {
                "day": 2,
                "morning": ["Tea museum", "Mattupetty dam"],
                "afternoon": ["Echo point"],
                "meals": ["Breakfast", "Dinner"],
                "overnight": "Munnar",
            },
            {
                "kind": "structured",
                "day": 3,
                "title": "Alleppey houseboat",
                "description": "Drive to Alleppey and board the houseboat.",
                "meals": {"breakfast": True, "lunch": True, "dinner": True},
                "overnight": "Houseboat",
            },
            {
                "kind": "structured",
                "day": 4,
                "title": "Departure",
                "description": "Drop at Kochi airport.",
                "meals": {"breakfast": True},
                "overnight": "Departure",
            },
        ],
        "inclusions": ["Airport transfers", "", "All sightseeing as per itinerary"],
        "exclusions": ["Personal expenses", "   "],
        "hotelPolicy": ["Check-in: 2:00 PM | Check-out: 12:00 PM"],
        "cabPolicy": ["Driver tips not included"],
        "contactName": "Mr. Venkata Srikanth Pinnamaraju",
        "contactPhone": "8106868686",
    }


@pytest.fixture
def sample_package(sample_payload):
    return TourPackage.from_dict(sample_payload)


@pytest.fixture
def empty_package():
    return TourPackage(tour_name="Bare Trip")


@pytest.fixture
def long_package(sample_package):
    from tour_builder.models import StructuredDay, MealPlan

    words = " ".join(["Sightseeing along the coast with plenty of stops."] * 12)
    days = [
        StructuredDay(
            day=i,
            title=f"Day {i} exploring",
            description=words,
            meals=MealPlan(breakfast=True, dinner=True),
            overnight="Hotel",
        )
        for i in range(1, 16)
    ]
    sample_package.itinerary = days
    sample_package.start_date = date(2024, 1, 1)
    sample_package.end_date = date(2024, 1, 15)
    return sample_package


@pytest.fixture
def db_session():
    from backend.app.database import init_db, make_engine

    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    session = sessionmaker(bind=engine, autoflush=False, future=True)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
