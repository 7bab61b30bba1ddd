# --------------------------- src/services/distance_calculator.py ----------------------------
"""
Load Matching Engine · Distance Calculation Service

OVERVIEW:
Provides road-mile distances for load records, used by load cards, rate per
mile displays and analytics. Composes endpoint extraction, geocoding and route
resolution, with a lane-level cache in front.

WORKFLOW:
1. Extract origin/destination endpoints from the load record
2. Check the distance cache for the lane
3. Geocode origin and destination concurrently
4. Resolve road miles through the routing chain
5. Cache the rounded result

BUSINESS LOGIC:
- A lane that cannot be resolved shows as "distance unavailable" (None);
  the engine never guesses and never raises
- Lanes are keyed by ZIP pair when both ZIPs are known, else by the
  freeform text pair
- A zero-mile result is treated as unavailable and is not cached

TECHNICAL ARCHITECTURE:
- asyncio with one shared httpx.AsyncClient per computation
- Explicitly constructed caches, injectable for tests
- Provider chains configured as data (see geocoding.py and routing.py)

DEPENDENCIES:
- httpx, geopy
- Optional: MAPBOX_TOKEN, ORS_API_KEY
"""

import asyncio
import logging
from typing import Any, Optional, Tuple

import httpx

from config import settings
from src.services.distance.cache import CoordinateCache, DistanceCache
from src.services.distance.geocoding import Geocoder
from src.services.distance.models import Coordinate
from src.services.distance.routing import RouteResolver
from src.utils.zip_utils import Endpoint, extract_endpoints, sanitize_zip

logger = logging.getLogger(__name__)


class DistanceCalculator:
    """
    Multi-source distance calculator for freight lanes.

    ARCHITECTURE ROLE:
    Central service used by load listings and analytics. Owns the
    lane distance cache; the geocoder owns the coordinate cache.
    """

    def __init__(self, geocoder: Optional[Geocoder] = None,
                 router: Optional[RouteResolver] = None,
                 distance_cache: Optional[DistanceCache] = None,
                 client: Optional[httpx.AsyncClient] = None,
                 timeout: float = settings.HTTP_TIMEOUT_SECONDS):
        self.geocoder = geocoder if geocoder is not None else Geocoder(cache=CoordinateCache())
        self.router = router if router is not None else RouteResolver()
        self.distance_cache = distance_cache if distance_cache is not None else DistanceCache()
        self._client = client
        self.timeout = timeout

    def clear_caches(self) -> None:
        self.distance_cache.clear()
        self.geocoder.cache.clear()

    async def compute_distance_miles(self, load: Any) -> Optional[float]:
        """
        Road miles for a load record, or None when the lane cannot be resolved.
        """
        try:
            endpoints = extract_endpoints(load)
            return await self._compute(endpoints["origin"], endpoints["destination"])
        except Exception as e:
            logger.error(f"compute_distance_miles error: {e}")
            return None

    async def compute_distance_miles_from_zips(self, origin_zip: Any, dest_zip: Any) -> Optional[float]:
        """
        Road miles between two ZIP codes.

        Malformed input ("abc12", "", None) returns None.
        """
        orig = sanitize_zip(origin_zip)
        dest = sanitize_zip(dest_zip)
        if not orig or not dest:
            logger.warning(f"Invalid ZIP code format: {origin_zip!r}, {dest_zip!r}")
            return None

        try:
            return await self._compute(Endpoint(postal_code=orig), Endpoint(postal_code=dest))
        except Exception as e:
            logger.error(f"compute_distance_miles_from_zips error: {e}")
            return None

    async def resolve_coordinates(self, load: Any) -> Tuple[Optional[Coordinate], Optional[Coordinate]]:
        """Geocode both endpoints of a load without computing a distance."""
        endpoints = extract_endpoints(load)
        async with self._session() as client:
            return await self._geocode_pair(endpoints["origin"], endpoints["destination"], client)

    async def _compute(self, origin: Endpoint, destination: Endpoint) -> Optional[float]:
        key = self._lane_key(origin, destination)
        if key is None:
            return None

        cached = self.distance_cache.get(key)
        if cached is not None:
            return cached

        async with self._session() as client:
            origin_coords, dest_coords = await self._geocode_pair(origin, destination, client)
            if origin_coords is None or dest_coords is None:
                logger.warning(f"Failed to geocode lane {key}")
                return None

            miles = await self.router.route_distance_miles(origin_coords, dest_coords, client)

        if miles is None or miles <= 0:
            return None

        self.distance_cache.set(key, miles)
        return miles

    async def _geocode_pair(self, origin: Endpoint, destination: Endpoint,
                            client: httpx.AsyncClient) -> Tuple[Optional[Coordinate], Optional[Coordinate]]:
        origin_coords, dest_coords = await asyncio.gather(
            self.geocoder.geocode(origin, client),
            self.geocoder.geocode(destination, client),
        )
        return origin_coords, dest_coords

    @staticmethod
    def _lane_key(origin: Endpoint, destination: Endpoint) -> Optional[str]:
        if origin.postal_code and destination.postal_code:
            return DistanceCache.make_key(origin.postal_code, destination.postal_code)
        if origin.freeform_text and destination.freeform_text:
            return DistanceCache.make_key(origin.freeform_text, destination.freeform_text)
        # Mixed lanes (ZIP on one side, text on the other)
        if origin.key and destination.key:
            return DistanceCache.make_key(origin.key, destination.key)
        return None

    def _session(self):
        if self._client is not None:
            return _BorrowedClient(self._client)
        return httpx.AsyncClient(timeout=self.timeout)


class _BorrowedClient:
    """Async context manager that hands out an injected client without closing it."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def __aenter__(self) -> httpx.AsyncClient:
        return self._client

    async def __aexit__(self, *exc_info) -> None:
        return None


_default_calculator: Optional[DistanceCalculator] = None


def get_default_calculator() -> DistanceCalculator:
    """Process-wide calculator, created on first use."""
    global _default_calculator
    if _default_calculator is None:
        _default_calculator = DistanceCalculator()
    return _default_calculator


def reset_default_calculator() -> None:
    global _default_calculator
    _default_calculator = None


# Utility functions for easy integration
async def compute_distance_miles(load: Any) -> Optional[float]:
    """
    USAGE:
    ```python
    miles = await compute_distance_miles({"originZip": "89011", "destZip": "85001"})
    ```
    """
    return await get_default_calculator().compute_distance_miles(load)


async def compute_distance_miles_from_zips(origin_zip: Any, dest_zip: Any) -> Optional[float]:
    return await get_default_calculator().compute_distance_miles_from_zips(origin_zip, dest_zip)


# Example usage and testing
if __name__ == "__main__":
    settings.configure_logging()

    test_lanes = [
        ("89011", "85001"),
        ("75201", "77002"),
        ("90001", "85001"),
    ]

    async def _demo():
        calculator = DistanceCalculator()
        for origin_zip, dest_zip in test_lanes:
            miles = await calculator.compute_distance_miles_from_zips(origin_zip, dest_zip)
            shown = f"{miles} miles" if miles is not None else "unavailable"
            print(f"{origin_zip} → {dest_zip}: {shown}")

    asyncio.run(_demo())
