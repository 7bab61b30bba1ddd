"""Geocoding and Route Distance Module"""
from .cache import CoordinateCache, DistanceCache
from .geocoding import Geocoder, GeocodingProvider, MapboxGeocoder, ZippopotamGeocoder
from .models import Coordinate
from .routing import (
    HaversineRouter,
    MapboxDirectionsRouter,
    OpenRouteServiceRouter,
    RouteResolver,
    RoutingProvider,
    haversine_miles,
)

__all__ = [
    "Coordinate", "CoordinateCache", "DistanceCache",
    "Geocoder", "GeocodingProvider", "MapboxGeocoder", "ZippopotamGeocoder",
    "RouteResolver", "RoutingProvider", "OpenRouteServiceRouter", "MapboxDirectionsRouter",
    "HaversineRouter", "haversine_miles",
]
