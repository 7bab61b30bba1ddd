# --------------------------- src/utils/zip_utils.py ----------------------------
"""
Load Matching Engine · ZIP Sanitization and Endpoint Extraction

OVERVIEW:
Load records arrive from posting forms, CSV uploads, scrapers and older app
versions, so the origin and destination can live under many field names and
shapes. This module turns any of those shapes into a normalized pair of
endpoints that the geocoder can work with.

WORKFLOW:
1. Probe ZIP-bearing fields in priority order, take the first 5-digit run
2. Probe freeform address fields in priority order, take the first non-empty
3. Return both for origin and destination

BUSINESS LOGIC:
- A ZIP is always preferred over freeform text because it geocodes reliably
  and can be cached
- Upstream data is often a phrase like "las vegas nv 89011", so ZIPs are
  found by pattern, not by equality
- Missing data never raises, it yields an empty endpoint
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

ZIP_PATTERN = re.compile(r"\b\d{5}\b")

Path = Tuple[str, ...]


@dataclass(frozen=True)
class Endpoint:
    """Normalized origin or destination reference."""
    postal_code: Optional[str] = None
    freeform_text: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.postal_code and not self.freeform_text

    @property
    def key(self) -> Optional[str]:
        """Identifier used when caching distances for this endpoint."""
        return self.postal_code or self.freeform_text


# ZIP-bearing candidates, highest priority first
ORIGIN_ZIP_FIELDS: Sequence[Path] = (
    ("origin", "zip"),
    ("pickupZip",),
    ("originZip",),
    ("srcZip",),
    ("fromZip",),
    ("origin", "postal"),
    ("pickup", "zip"),
    ("origin", "zipCode"),
    ("origin_zip",),
    ("pickup_zip",),
    ("origin",),
)

DEST_ZIP_FIELDS: Sequence[Path] = (
    ("destination", "zip"),
    ("destZip",),
    ("deliveryZip",),
    ("toZip",),
    ("destination", "postal"),
    ("dropoff", "zip"),
    ("destination", "zipCode"),
    ("dest_zip",),
    ("delivery_zip",),
    ("destination",),
)

# Freeform candidates: single paths, or groups joined as "city, state, zip"
ORIGIN_TEXT_FIELDS: Sequence[Sequence[Path]] = (
    (("origin", "address"),),
    (("pickupAddress",),),
    (("originAddress",),),
    (("pickup", "address"),),
    (("origin", "city"), ("origin", "state"), ("origin", "zip")),
    (("pickup", "city"), ("pickup", "state"), ("pickup", "zip")),
    (("origin_city",), ("origin_state",), ("origin_zip",)),
    (("origin",),),
)

DEST_TEXT_FIELDS: Sequence[Sequence[Path]] = (
    (("destination", "address"),),
    (("deliveryAddress",),),
    (("destAddress",),),
    (("dropoff", "address"),),
    (("destination", "city"), ("destination", "state"), ("destination", "zip")),
    (("dropoff", "city"), ("dropoff", "state"), ("dropoff", "zip")),
    (("dest_city",), ("dest_state",), ("dest_zip",)),
    (("destination",),),
)


def sanitize_zip(value: Any) -> Optional[str]:
    """
    Pull a clean 5-digit ZIP out of a messy value.

    sanitize_zip("las vegas nv 89011") -> "89011"
    sanitize_zip("89011-1234")         -> "89011"
    sanitize_zip("abc12")              -> None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (Mapping, list, tuple, set)):
        return None
    match = ZIP_PATTERN.search(str(value))
    return match.group(0) if match else None


def _lookup(record: Mapping, path: Path) -> Any:
    current: Any = record
    for part in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def _scalar_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (bool, Mapping, list, tuple, set)):
        return None
    text = str(value).strip()
    return text or None


def _first_zip(record: Mapping, candidates: Sequence[Path]) -> Optional[str]:
    for path in candidates:
        zip_code = sanitize_zip(_lookup(record, path))
        if zip_code:
            return zip_code
    return None


def _first_text(record: Mapping, candidates: Sequence[Sequence[Path]]) -> Optional[str]:
    for group in candidates:
        parts = [_scalar_text(_lookup(record, path)) for path in group]
        text = ", ".join(part for part in parts if part)
        if text.strip():
            return text.strip()
    return None


def extract_endpoints(load: Any) -> Dict[str, Endpoint]:
    """
    Extract origin and destination endpoints from a load record.

    ARGS:
        load: Any mapping; other values are treated as an empty record

    RETURNS:
        {"origin": Endpoint, "destination": Endpoint}
    """
    if not isinstance(load, Mapping):
        return {"origin": Endpoint(), "destination": Endpoint()}

    return {
        "origin": Endpoint(
            postal_code=_first_zip(load, ORIGIN_ZIP_FIELDS),
            freeform_text=_first_text(load, ORIGIN_TEXT_FIELDS),
        ),
        "destination": Endpoint(
            postal_code=_first_zip(load, DEST_ZIP_FIELDS),
            freeform_text=_first_text(load, DEST_TEXT_FIELDS),
        ),
    }


def extract_zips(load: Any) -> Tuple[Optional[str], Optional[str]]:
    """Shortcut returning just the (origin, destination) ZIP codes."""
    endpoints = extract_endpoints(load)
    return endpoints["origin"].postal_code, endpoints["destination"].postal_code
