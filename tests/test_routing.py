"""
Route resolver tests: provider request shapes, unit conversion and fallback.
"""

import asyncio
import json

import httpx
import pytest

from conftest import ZIP_COORDINATES, FakeRoutingProvider
from src.services.distance.models import Coordinate
from src.services.distance.routing import (
    HaversineRouter,
    MapboxDirectionsRouter,
    OpenRouteServiceRouter,
    RouteResolver,
    haversine_miles,
)

VEGAS = ZIP_COORDINATES["89011"]
PHOENIX = ZIP_COORDINATES["85001"]


async def _route(resolver, a, b, handler=None):
    transport = httpx.MockTransport(handler or (lambda request: httpx.Response(404)))
    async with httpx.AsyncClient(transport=transport) as client:
        return await resolver.route_distance_miles(a, b, client)


class TestHaversine:

    def test_known_distance(self):
        # One degree of longitude on the equator
        miles = haversine_miles(Coordinate(0.0, 0.0), Coordinate(0.0, 1.0))
        assert miles == pytest.approx(69.09, abs=0.01)

    def test_symmetric_and_zero_for_same_point(self):
        assert haversine_miles(VEGAS, PHOENIX) == pytest.approx(haversine_miles(PHOENIX, VEGAS))
        assert haversine_miles(VEGAS, VEGAS) == 0.0

    def test_fallback_applies_road_factor_and_rounds(self):
        resolver = RouteResolver(providers=[HaversineRouter()])
        miles = asyncio.run(_route(resolver, VEGAS, PHOENIX))

        assert miles == round(haversine_miles(VEGAS, PHOENIX) * 1.2, 1)
        assert 250 <= miles <= 310


class TestProviders:

    def test_openrouteservice_request_and_meters(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"routes": [{"summary": {"distance": 160934.0}}]})

        resolver = RouteResolver(providers=[OpenRouteServiceRouter(api_key="ors-key"), HaversineRouter()])
        miles = asyncio.run(_route(resolver, VEGAS, PHOENIX, handler))

        assert miles == 100.0
        assert seen["method"] == "POST"
        assert seen["auth"] == "ors-key"
        assert seen["body"] == {"coordinates": [[VEGAS.longitude, VEGAS.latitude],
                                                [PHOENIX.longitude, PHOENIX.latitude]]}

    def test_mapbox_directions_request_and_meters(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["token"] = request.url.params["access_token"]
            return httpx.Response(200, json={"routes": [{"distance": 482802.0}]})

        resolver = RouteResolver(providers=[MapboxDirectionsRouter(token="pk.test")])
        miles = asyncio.run(_route(resolver, VEGAS, PHOENIX, handler))

        assert miles == 300.0
        assert seen["token"] == "pk.test"
        assert seen["path"].endswith(
            f"{VEGAS.longitude},{VEGAS.latitude};{PHOENIX.longitude},{PHOENIX.latitude}"
        )

    def test_credentialed_providers_skipped_without_keys(self):
        requests_made = []

        def handler(request):
            requests_made.append(request)
            return httpx.Response(500)

        resolver = RouteResolver()
        miles = asyncio.run(_route(resolver, VEGAS, PHOENIX, handler))

        assert requests_made == []
        assert miles == round(haversine_miles(VEGAS, PHOENIX) * 1.2, 1)

    def test_provider_errors_fall_through_to_haversine(self):
        def handler(request):
            return httpx.Response(503)

        resolver = RouteResolver(providers=[
            OpenRouteServiceRouter(api_key="ors-key"),
            MapboxDirectionsRouter(token="pk.test"),
            HaversineRouter(),
        ])
        miles = asyncio.run(_route(resolver, VEGAS, PHOENIX, handler))
        assert miles == round(haversine_miles(VEGAS, PHOENIX) * 1.2, 1)


class TestResolverChain:

    def test_first_answer_wins_and_is_rounded(self):
        first = FakeRoutingProvider(miles=287.46)
        second = FakeRoutingProvider(miles=1.0)
        resolver = RouteResolver(providers=[first, second])

        assert asyncio.run(_route(resolver, VEGAS, PHOENIX)) == 287.5
        assert second.calls == 0

    def test_exception_moves_to_next_provider(self):
        broken = FakeRoutingProvider(error=httpx.ConnectError("down"))
        working = FakeRoutingProvider(miles=12.34)
        resolver = RouteResolver(providers=[broken, working])

        assert asyncio.run(_route(resolver, VEGAS, PHOENIX)) == 12.3

    def test_all_providers_exhausted(self):
        resolver = RouteResolver(providers=[FakeRoutingProvider(miles=None),
                                            FakeRoutingProvider(configured=False)])
        assert asyncio.run(_route(resolver, VEGAS, PHOENIX)) is None

    def test_missing_coordinate(self):
        resolver = RouteResolver(providers=[HaversineRouter()])
        assert asyncio.run(_route(resolver, None, PHOENIX)) is None
