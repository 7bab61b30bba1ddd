"""
Load Matching Engine Configuration Settings

This module contains all configuration settings for the load matching engine.
Settings can be overridden by environment variables.

Provider credentials are read through the getter functions on every call so a
long-running process picks up rotated keys without a restart.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# HTTP
HTTP_TIMEOUT_SECONDS = _float_env("HTTP_TIMEOUT_SECONDS", 5.0)
USER_AGENT = os.getenv("USER_AGENT", "load-matching-engine")

# Distance resolution
EARTH_RADIUS_MILES = 3958.7613
ROAD_CURVATURE_FACTOR = _float_env("ROAD_CURVATURE_FACTOR", 1.2)
METERS_PER_MILE = 1609.34

# Provider endpoints
MAPBOX_GEOCODING_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places"
MAPBOX_DIRECTIONS_URL = "https://api.mapbox.com/directions/v5/mapbox/driving"
ZIPPOPOTAM_URL = "https://api.zippopotam.us/us"
ORS_DIRECTIONS_URL = "https://api.openrouteservice.org/v2/directions/driving-car"

# Duplicate detection
DUPLICATE_THRESHOLD = _float_env("DUPLICATE_THRESHOLD", 0.8)
DUPLICATE_PROBE_TIMEOUT = _float_env("DUPLICATE_PROBE_TIMEOUT", 1.5)
DUPLICATE_REMOTE_TIMEOUT = _float_env("DUPLICATE_REMOTE_TIMEOUT", 2.5)
EXISTING_LOADS_LIMIT = int(_float_env("EXISTING_LOADS_LIMIT", 200))

# Supabase Configuration
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")


def get_mapbox_token():
    """Mapbox access token, used for geocoding and directions."""
    return os.getenv("MAPBOX_TOKEN") or os.getenv("EXPO_PUBLIC_MAPBOX_TOKEN")


def get_ors_api_key():
    """OpenRouteService API key."""
    return os.getenv("ORS_API_KEY") or os.getenv("EXPO_PUBLIC_ORS_API_KEY")


def get_duplicate_service_url():
    """Base URL of the remote duplicate-check service, without trailing slash."""
    url = os.getenv("DUPLICATE_SERVICE_URL")
    if not url or not url.strip():
        return None
    return url.strip().rstrip("/")


def configure_logging(level: str = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
