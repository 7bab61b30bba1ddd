# --------------------------- src/services/distance/cache.py ----------------------------
"""
In-memory caches for geocoding and route distance results.

Both caches are created once per process (or per test) and injected into the
services that use them. They are unbounded: typical session volume is a few
hundred lanes at most. Writes are idempotent, the same key always maps to the
same value, so no locking is needed on a single event loop.
"""

from typing import Dict, Generic, Optional, TypeVar

from src.services.distance.models import Coordinate

V = TypeVar("V")


class _KeyValueCache(Generic[V]):

    def __init__(self):
        self._entries: Dict[str, V] = {}

    def get(self, key: str) -> Optional[V]:
        return self._entries.get(key)

    def set(self, key: str, value: V) -> None:
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class CoordinateCache(_KeyValueCache[Coordinate]):
    """ZIP code -> Coordinate."""


class DistanceCache(_KeyValueCache[float]):
    """Endpoint pair key -> rounded road miles."""

    @staticmethod
    def make_key(origin_key: str, dest_key: str) -> str:
        return f"{origin_key}-{dest_key}"
