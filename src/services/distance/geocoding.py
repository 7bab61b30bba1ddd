# --------------------------- src/services/distance/geocoding.py ----------------------------
"""
Load Matching Engine · Geocoding Service

OVERVIEW:
Resolves a load endpoint (ZIP code or freeform address) to a latitude/longitude
pair using an ordered chain of providers.

WORKFLOW:
1. ZIP endpoints: check the coordinate cache
2. Try each configured provider in order (Mapbox, then zippopotam.us)
3. Cache the first hit
4. Freeform endpoints: only freeform-capable providers, never cached

BUSINESS LOGIC:
- Distance shown to drivers is "unavailable" rather than wrong, so every
  provider failure degrades to None instead of raising
- zippopotam.us needs no credential and is always the last resort for ZIPs
- Freeform text rarely repeats exactly, caching it is not worth the memory

DEPENDENCIES:
- httpx for async HTTP
- Optional: MAPBOX_TOKEN
"""

import logging
from typing import List, Optional, Sequence
from urllib.parse import quote

import httpx

from config import settings
from src.services.distance.cache import CoordinateCache
from src.services.distance.models import Coordinate
from src.utils.zip_utils import Endpoint, sanitize_zip

logger = logging.getLogger(__name__)


class GeocodingProvider:
    """
    Base class for one link in the geocoding chain.

    Subclasses implement `resolve` and return None when the provider has no
    answer. Raising is allowed; the Geocoder catches and logs it.
    """

    name = "base"
    supports_freeform = False

    def is_configured(self) -> bool:
        return True

    async def resolve(self, query: str, client: httpx.AsyncClient) -> Optional[Coordinate]:
        raise NotImplementedError


class MapboxGeocoder(GeocodingProvider):
    """Mapbox Geocoding API, US only. Handles ZIPs and freeform text."""

    name = "mapbox"
    supports_freeform = True

    def __init__(self, token: Optional[str] = None, base_url: str = settings.MAPBOX_GEOCODING_URL):
        self._token = token
        self.base_url = base_url

    @property
    def token(self) -> Optional[str]:
        return self._token or settings.get_mapbox_token()

    def is_configured(self) -> bool:
        return bool(self.token)

    async def resolve(self, query: str, client: httpx.AsyncClient) -> Optional[Coordinate]:
        url = f"{self.base_url}/{quote(query, safe='')}.json"
        params = {"country": "US", "limit": 1, "access_token": self.token}

        response = await client.get(url, params=params)
        response.raise_for_status()
        data = response.json()

        features = data.get("features") or []
        if not features or not features[0].get("center"):
            return None

        lon, lat = features[0]["center"][:2]
        return Coordinate(latitude=float(lat), longitude=float(lon))


class ZippopotamGeocoder(GeocodingProvider):
    """Free public ZIP lookup. No credential, ZIP codes only."""

    name = "zippopotam"

    def __init__(self, base_url: str = settings.ZIPPOPOTAM_URL):
        self.base_url = base_url

    async def resolve(self, query: str, client: httpx.AsyncClient) -> Optional[Coordinate]:
        response = await client.get(f"{self.base_url}/{quote(query, safe='')}")
        response.raise_for_status()
        data = response.json()

        places = data.get("places") or []
        if not places:
            return None

        place = places[0]
        return Coordinate(
            latitude=float(place["latitude"]),
            longitude=float(place["longitude"]),
        )


def default_geocoding_providers() -> List[GeocodingProvider]:
    return [MapboxGeocoder(), ZippopotamGeocoder()]


class Geocoder:
    """
    Provider chain with a ZIP coordinate cache.

    ARGS:
        providers: Ordered providers, first hit wins
        cache: Shared CoordinateCache; a private one is created if omitted
        timeout: Per-request timeout for the client created when the caller
            does not pass one
    """

    def __init__(self, providers: Optional[Sequence[GeocodingProvider]] = None,
                 cache: Optional[CoordinateCache] = None,
                 timeout: float = settings.HTTP_TIMEOUT_SECONDS):
        self.providers = list(providers) if providers is not None else default_geocoding_providers()
        self.cache = cache if cache is not None else CoordinateCache()
        self.timeout = timeout

    async def geocode(self, endpoint: Endpoint,
                      client: Optional[httpx.AsyncClient] = None) -> Optional[Coordinate]:
        if client is None:
            async with httpx.AsyncClient(timeout=self.timeout) as owned_client:
                return await self.geocode(endpoint, owned_client)

        zip_code = sanitize_zip(endpoint.postal_code)
        if zip_code:
            return await self._geocode_zip(zip_code, client)

        if endpoint.freeform_text and endpoint.freeform_text.strip():
            return await self._geocode_text(endpoint.freeform_text.strip(), client)

        return None

    async def _geocode_zip(self, zip_code: str, client: httpx.AsyncClient) -> Optional[Coordinate]:
        cached = self.cache.get(zip_code)
        if cached is not None:
            return cached

        coordinate = await self._run_chain(zip_code, self.providers, client)
        if coordinate is not None:
            self.cache.set(zip_code, coordinate)
        else:
            logger.warning(f"Geocoding failed for ZIP {zip_code}: all providers exhausted")
        return coordinate

    async def _geocode_text(self, text: str, client: httpx.AsyncClient) -> Optional[Coordinate]:
        providers = [p for p in self.providers if p.supports_freeform]
        coordinate = await self._run_chain(text, providers, client)
        if coordinate is None:
            logger.warning(f"Geocoding failed for address '{text}'")
        return coordinate

    async def _run_chain(self, query: str, providers: Sequence[GeocodingProvider],
                         client: httpx.AsyncClient) -> Optional[Coordinate]:
        for provider in providers:
            if not provider.is_configured():
                continue
            try:
                coordinate = await provider.resolve(query, client)
            except Exception as e:
                logger.warning(f"{provider.name} geocoding error for {query}: {e}")
                continue
            if coordinate is not None:
                logger.debug(f"{provider.name} geocoded {query} -> {coordinate}")
                return coordinate
        return None
