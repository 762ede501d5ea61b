"""Pytest fixtures for backend tests."""

import sys
from pathlib import Path
from typing import Dict, List, Tuple

import pytest

# Ensure backend root is on path
_backend_root = Path(__file__).resolve().parent.parent
if str(_backend_root) not in sys.path:
    sys.path.insert(0, str(_backend_root))

from api.cache import init_cache
from api.services.geocoding import GeocodeError
from config import set_geocoder_instance
from models import GeocodedProperty, LocationSuggestion, Property


class FakeGeocoder:
    """In-memory provider: known addresses resolve, anything else raises GeocodeError."""

    def __init__(self, known: Dict[str, Tuple[float, float]]):
        self.known = known
        self.calls = []

    def geocode_address(self, query: str) -> Tuple[float, float]:
        self.calls.append(query)
        if query in self.known:
            return self.known[query]
        raise GeocodeError(query)

    def reverse_geocode(self, longitude: float, latitude: float) -> str:
        for name, coordinates in self.known.items():
            if coordinates == (longitude, latitude):
                return name
        raise GeocodeError(f"{latitude}, {longitude}")

    def search_locations(self, query: str, limit: int = 5) -> List[LocationSuggestion]:
        matches = [
            LocationSuggestion(place_name=name, longitude=lng, latitude=lat)
            for name, (lng, lat) in self.known.items()
            if query.lower() in name.lower()
        ]
        if not matches:
            raise GeocodeError(query, "No suggestions")
        return matches[:limit]


def make_property(id, lng=None, lat=None, price=1000.0, **kwargs) -> Property:
    return Property(id=id, longitude=lng, latitude=lat, price=price, **kwargs)


def make_geocoded(id, lng, lat, price=1000.0, **kwargs) -> GeocodedProperty:
    return GeocodedProperty.from_property(make_property(id, lng, lat, price, **kwargs))


@pytest.fixture(autouse=True)
def fresh_cache():
    """Every test starts with an empty geocode cache."""
    init_cache()
    yield


@pytest.fixture
def fake_geocoder():
    return FakeGeocoder(
        {
            "12 Admiralty Way, Lekki, Lagos": (3.4700, 6.4400),
            "5 Aminu Kano Crescent, Wuse, Abuja": (7.4700, 9.0800),
            "Ikeja": (3.3500, 6.6000),
        }
    )


@pytest.fixture
def app(fake_geocoder):
    """FastAPI app with the fake provider installed after main's own setup."""
    from main import app as fastapi_app

    set_geocoder_instance(fake_geocoder)
    return fastapi_app


@pytest.fixture
def client(app):
    """Test client for the FastAPI app."""
    from fastapi.testclient import TestClient
    return TestClient(app)
