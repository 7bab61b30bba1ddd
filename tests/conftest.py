# --------------------------- tests/conftest.py ----------------------------
"""
Shared fixtures for the load matching engine test suite.

No test touches the network: HTTP providers run against httpx.MockTransport
and the geocoder/router chains use in-memory fakes.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.services.distance.models import Coordinate  # noqa: E402

# Approximate ZIP centroids
ZIP_COORDINATES = {
    "89011": Coordinate(latitude=36.0273, longitude=-114.9268),   # Henderson / Las Vegas, NV
    "85001": Coordinate(latitude=33.4484, longitude=-112.0741),   # Phoenix, AZ
    "75201": Coordinate(latitude=32.7876, longitude=-96.7994),    # Dallas, TX
    "77002": Coordinate(latitude=29.7566, longitude=-95.3597),    # Houston, TX
}


class FakeGeocodingProvider:
    """Table-driven geocoding provider that counts its calls."""

    name = "fake_geocoder"

    def __init__(self, table=None, supports_freeform=False, configured=True, error=None):
        self.table = dict(ZIP_COORDINATES if table is None else table)
        self.supports_freeform = supports_freeform
        self.configured = configured
        self.error = error
        self.calls = []

    def is_configured(self):
        return self.configured

    async def resolve(self, query, client):
        self.calls.append(query)
        if self.error is not None:
            raise self.error
        return self.table.get(query)


class FakeRoutingProvider:

    name = "fake_router"

    def __init__(self, miles=None, configured=True, error=None):
        self.miles = miles
        self.configured = configured
        self.error = error
        self.calls = 0

    def is_configured(self):
        return self.configured

    async def resolve(self, a, b, client):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.miles


@pytest.fixture
def fake_geocoder_provider():
    return FakeGeocodingProvider()


@pytest.fixture(autouse=True)
def no_provider_credentials(monkeypatch):
    """Keep real credentials from a developer .env out of the tests."""
    for name in ("MAPBOX_TOKEN", "EXPO_PUBLIC_MAPBOX_TOKEN", "ORS_API_KEY",
                 "EXPO_PUBLIC_ORS_API_KEY", "DUPLICATE_SERVICE_URL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def vegas_phoenix_load():
    return {
        "origin": "Las Vegas, NV 89011",
        "destination": "Phoenix, AZ 85001",
        "rate": 1200,
        "pickupDate": "2025-03-10",
        "equipmentType": "Box Truck",
    }
