# --------------------------- src/services/distance/models.py ----------------------------
"""Value types shared by the geocoder and the route resolver."""

from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def as_lat_lon(self) -> Tuple[float, float]:
        # geopy order
        return (self.latitude, self.longitude)

    def as_lon_lat(self) -> List[float]:
        # GeoJSON / routing API order
        return [self.longitude, self.latitude]
