import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from domain.models import GeoBounds  # noqa: E402

# Venezuela, the region the delivery app serves
VENEZUELA = GeoBounds(north=12.5, south=0.6, west=-73.4, east=-59.7)


def nominatim_item(place_id, lat="10.5", lon="-66.9", **extra):
    """Build a /search result object the way Nominatim returns it."""
    item = {
        "place_id": place_id,
        "display_name": extra.pop("display_name", f"Place {place_id}, Caracas, Venezuela"),
        "lat": lat,
        "lon": lon,
        "importance": extra.pop("importance", 0.5),
        "address": extra.pop("address", {}),
    }
    item.update(extra)
    return item


class FakeClient:
    """Stands in for NominatimClient and records every call."""

    def __init__(self, search_result=None, details_result=None, reverse_result=None):
        self.search_result = search_result if search_result is not None else []
        self.details_result = details_result if details_result is not None else {}
        self.reverse_result = reverse_result if reverse_result is not None else {}
        self.calls = []

    def _answer(self, value):
        if isinstance(value, Exception):
            raise value
        return value

    def search(self, text, *, language, country_codes, limit=10):
        self.calls.append(("search", text, language, country_codes))
        return self._answer(self.search_result)

    def details(self, place_id, *, language=None):
        self.calls.append(("details", place_id))
        return self._answer(self.details_result)

    def reverse(self, lat, lon, *, language, zoom=18):
        self.calls.append(("reverse", lat, lon))
        return self._answer(self.reverse_result)


@pytest.fixture
def bounds():
    return VENEZUELA


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def make_item():
    return nominatim_item
