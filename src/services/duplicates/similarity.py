# --------------------------- src/services/duplicates/similarity.py ----------------------------
"""
Load Matching Engine · Load Similarity Scoring

OVERVIEW:
Scores how likely two load posts describe the same shipment. Four
independent sub-scores are combined with fixed weights.

SCORING BREAKDOWN:
- Location (40%): word overlap of "origin destination"
- Rate (30%): step function on relative rate difference
- Timing (20%): step function on pickup day difference
- Equipment (10%): exact, synonym group, or word overlap

BUSINESS LOGIC:
- Location and rate are the strongest duplicate signals for freight posts,
  so they dominate the weighting
- Rate scoring tolerates rounding (<=5%) and is punitive past 30%
- A missing pickup date or equipment type is neutral (0.5) so that
  ambiguity does not decide the verdict
"""

import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from dateutil import parser as date_parser

from src.utils.zip_utils import extract_endpoints

LOCATION_WEIGHT = 0.4
RATE_WEIGHT = 0.3
TIMING_WEIGHT = 0.2
EQUIPMENT_WEIGHT = 0.1

NEUTRAL_SCORE = 0.5
MAX_TOKEN_LENGTH = 50

EQUIPMENT_SYNONYMS = (
    frozenset({"truck", "box-truck", "box truck"}),
    frozenset({"trailer", "flatbed", "enclosed-trailer"}),
    frozenset({"van", "cargo-van", "cargo van"}),
)

RATE_FIELDS = ("rate", "price", "rate_usd")
PICKUP_DATE_FIELDS = ("pickupDate", "pickup_date", "pickup_dt")
EQUIPMENT_FIELDS = ("equipmentType", "equipment_type", "equipment", "vehicleType")

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_MONEY_CHARS = re.compile(r"[^0-9.\-]")


@dataclass(frozen=True)
class SimilarityResult:
    overall: float
    location: float
    rate: float
    timing: float
    equipment: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping) -> "SimilarityResult":
        return cls(
            overall=float(data.get("overall", 0)),
            location=float(data.get("location", 0)),
            rate=float(data.get("rate", 0)),
            timing=float(data.get("timing", 0)),
            equipment=float(data.get("equipment", 0)),
        )


def _first_present(load: Any, fields: Sequence[str]) -> Any:
    if not isinstance(load, Mapping):
        return None
    for field in fields:
        value = load.get(field)
        if value is not None and value != "":
            return value
    return None


def normalize_location(text: Any) -> str:
    if text is None:
        return ""
    lowered = str(text).lower()
    return _WHITESPACE.sub(" ", _NON_ALNUM.sub("", lowered)).strip()


def string_similarity(first: str, second: str) -> float:
    """
    Word overlap ratio: |common words| / max(|words1|, |words2|).

    Tokens longer than 50 characters are treated as noise.
    """
    s1 = (first or "").lower().strip()
    s2 = (second or "").lower().strip()

    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0

    words1 = s1.split(" ")
    words2 = s2.split(" ")
    lookup = {word.strip() for word in words2}
    common = [
        word for word in words1
        if word.strip() and len(word) <= MAX_TOKEN_LENGTH and word.strip() in lookup
    ]
    total = max(len(words1), len(words2))
    return len(common) / total if total else 0.0


def _lane_text(load: Any) -> str:
    endpoints = extract_endpoints(load)
    parts = []
    for side in ("origin", "destination"):
        endpoint = endpoints[side]
        parts.append(endpoint.freeform_text or endpoint.postal_code or "")
    return " ".join(parts)


def location_similarity(load1: Any, load2: Any) -> float:
    return string_similarity(
        normalize_location(_lane_text(load1)),
        normalize_location(_lane_text(load2)),
    )


def parse_rate(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = _MONEY_CHARS.sub("", str(value))
    try:
        return float(cleaned)
    except ValueError:
        return None


def rate_similarity(rate1: Any, rate2: Any) -> float:
    r1 = parse_rate(rate1)
    r2 = parse_rate(rate2)
    if not r1 or not r2:
        return 0.0

    average = (r1 + r2) / 2
    if average == 0:
        return 0.0
    percent_diff = abs(r1 - r2) / abs(average)

    if percent_diff <= 0.05:
        return 1.0
    if percent_diff <= 0.15:
        return 0.7
    if percent_diff <= 0.30:
        return 0.4
    return 0.0


def parse_date(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError):
        return None


def timing_similarity(date1: Any, date2: Any) -> float:
    d1 = parse_date(date1)
    d2 = parse_date(date2)
    if d1 is None or d2 is None:
        return NEUTRAL_SCORE

    # Mixed aware/naive timestamps are compared on wall-clock time
    if (d1.tzinfo is None) != (d2.tzinfo is None):
        d1 = d1.replace(tzinfo=None)
        d2 = d2.replace(tzinfo=None)

    days_diff = abs((d1 - d2).total_seconds()) / 86400

    if days_diff == 0:
        return 1.0
    if days_diff <= 3:
        return 0.8
    if days_diff <= 7:
        return 0.5
    if days_diff <= 14:
        return 0.2
    return 0.0


def equipment_similarity(equipment1: Any, equipment2: Any) -> float:
    if not equipment1 or not equipment2:
        return NEUTRAL_SCORE

    norm1 = str(equipment1).lower().strip()
    norm2 = str(equipment2).lower().strip()

    if norm1 == norm2:
        return 1.0

    for group in EQUIPMENT_SYNONYMS:
        if norm1 in group and norm2 in group:
            return 0.7

    return string_similarity(norm1, norm2)


def calculate_similarity(load1: Any, load2: Any) -> SimilarityResult:
    """
    Compare two load records across all four dimensions.

    ARGS:
        load1, load2: Load records (mappings); missing fields are tolerated

    RETURNS:
        SimilarityResult with the weighted overall score
    """
    location = location_similarity(load1, load2)
    rate = rate_similarity(_first_present(load1, RATE_FIELDS), _first_present(load2, RATE_FIELDS))
    timing = timing_similarity(
        _first_present(load1, PICKUP_DATE_FIELDS),
        _first_present(load2, PICKUP_DATE_FIELDS),
    )
    equipment = equipment_similarity(
        _first_present(load1, EQUIPMENT_FIELDS),
        _first_present(load2, EQUIPMENT_FIELDS),
    )

    overall = (
        location * LOCATION_WEIGHT +
        rate * RATE_WEIGHT +
        timing * TIMING_WEIGHT +
        equipment * EQUIPMENT_WEIGHT
    )

    return SimilarityResult(
        overall=round(overall, 6),
        location=location,
        rate=rate,
        timing=timing,
        equipment=equipment,
    )
