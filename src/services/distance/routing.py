# --------------------------- src/services/distance/routing.py ----------------------------
"""
Load Matching Engine · Route Distance Providers

OVERVIEW:
Turns two coordinates into road miles using an ordered chain of routing
providers, ending in a great-circle estimate that always answers.

CALCULATION HIERARCHY:
1. OpenRouteService driving-car route (needs ORS_API_KEY)
2. Mapbox Directions driving route (needs MAPBOX_TOKEN)
3. Haversine distance x road curvature factor (1.2)

BUSINESS LOGIC:
- Road miles differ from straight-line distance; the 1.2 factor is a
  conservative average for US highway lanes
- Every result is rounded to one decimal place
"""

import logging
from typing import List, Optional, Sequence

import httpx
from geopy.distance import great_circle
from geopy.units import kilometers

from config import settings
from src.services.distance.models import Coordinate

logger = logging.getLogger(__name__)


def haversine_miles(a: Coordinate, b: Coordinate) -> float:
    """Great-circle miles on a sphere of radius EARTH_RADIUS_MILES."""
    radius_km = kilometers(miles=settings.EARTH_RADIUS_MILES)
    return max(0.0, great_circle(a.as_lat_lon(), b.as_lat_lon(), radius=radius_km).miles)


def meters_to_miles(meters: float) -> float:
    return float(meters) / settings.METERS_PER_MILE


class RoutingProvider:
    """One link in the routing chain. `resolve` returns miles or None."""

    name = "base"

    def is_configured(self) -> bool:
        return True

    async def resolve(self, a: Coordinate, b: Coordinate,
                      client: httpx.AsyncClient) -> Optional[float]:
        raise NotImplementedError


class OpenRouteServiceRouter(RoutingProvider):

    name = "openrouteservice"

    def __init__(self, api_key: Optional[str] = None, url: str = settings.ORS_DIRECTIONS_URL):
        self._api_key = api_key
        self.url = url

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key or settings.get_ors_api_key()

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def resolve(self, a: Coordinate, b: Coordinate,
                      client: httpx.AsyncClient) -> Optional[float]:
        response = await client.post(
            self.url,
            headers={"Authorization": self.api_key, "Content-Type": "application/json"},
            json={"coordinates": [a.as_lon_lat(), b.as_lon_lat()]},
        )
        response.raise_for_status()
        routes = response.json().get("routes") or []
        if not routes or not routes[0].get("summary"):
            return None
        return meters_to_miles(routes[0]["summary"]["distance"])


class MapboxDirectionsRouter(RoutingProvider):

    name = "mapbox_directions"

    def __init__(self, token: Optional[str] = None, base_url: str = settings.MAPBOX_DIRECTIONS_URL):
        self._token = token
        self.base_url = base_url

    @property
    def token(self) -> Optional[str]:
        return self._token or settings.get_mapbox_token()

    def is_configured(self) -> bool:
        return bool(self.token)

    async def resolve(self, a: Coordinate, b: Coordinate,
                      client: httpx.AsyncClient) -> Optional[float]:
        url = f"{self.base_url}/{a.longitude},{a.latitude};{b.longitude},{b.latitude}"
        response = await client.get(url, params={"overview": "false", "access_token": self.token})
        response.raise_for_status()
        routes = response.json().get("routes") or []
        if not routes or routes[0].get("distance") is None:
            return None
        return meters_to_miles(routes[0]["distance"])


class HaversineRouter(RoutingProvider):
    """Straight-line fallback scaled up to approximate road miles."""

    name = "haversine"

    def __init__(self, road_factor: float = settings.ROAD_CURVATURE_FACTOR):
        self.road_factor = road_factor

    async def resolve(self, a: Coordinate, b: Coordinate,
                      client: httpx.AsyncClient) -> Optional[float]:
        return haversine_miles(a, b) * self.road_factor


def default_routing_providers() -> List[RoutingProvider]:
    return [OpenRouteServiceRouter(), MapboxDirectionsRouter(), HaversineRouter()]


class RouteResolver:
    """Runs the routing chain and rounds the first answer to 0.1 mile."""

    def __init__(self, providers: Optional[Sequence[RoutingProvider]] = None,
                 timeout: float = settings.HTTP_TIMEOUT_SECONDS):
        self.providers = list(providers) if providers is not None else default_routing_providers()
        self.timeout = timeout

    async def route_distance_miles(self, a: Coordinate, b: Coordinate,
                                   client: Optional[httpx.AsyncClient] = None) -> Optional[float]:
        if a is None or b is None:
            return None

        if client is None:
            async with httpx.AsyncClient(timeout=self.timeout) as owned_client:
                return await self.route_distance_miles(a, b, owned_client)

        for provider in self.providers:
            if not provider.is_configured():
                continue
            try:
                miles = await provider.resolve(a, b, client)
            except Exception as e:
                logger.warning(f"{provider.name} routing failed, trying next provider: {e}")
                continue
            if miles is not None:
                logger.debug(f"{provider.name} route distance: {miles:.1f} miles")
                return round(miles, 1)

        logger.warning("Route distance unavailable: all routing providers exhausted")
        return None
