# --------------------------- src/services/duplicates/models.py ----------------------------
"""
Duplicate check result types.

The remote duplicate-check service and the local fallback produce the same
shape, so callers never need to know which path ran. `to_dict` emits the wire
format; `from_dict` also accepts the older service keys (loadIndex, aiReason,
suggestions/aiInsights) and tRPC result envelopes.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from src.services.duplicates.similarity import SimilarityResult


class MatchType(str, Enum):
    EXACT = "exact"
    HIGH = "high"
    MEDIUM = "medium"


class Recommendation(str, Enum):
    DELETE_EXISTING = "delete_existing"
    MERGE = "merge"
    KEEP_BOTH = "keep_both"
    SKIP_NEW = "skip_new"


# Recommendation -> histogram bucket
ACTION_BUCKETS = {
    Recommendation.DELETE_EXISTING: "delete",
    Recommendation.MERGE: "merge",
    Recommendation.SKIP_NEW: "skip",
    Recommendation.KEEP_BOTH: "keep",
}


def empty_action_counts() -> Dict[str, int]:
    return {"delete": 0, "merge": 0, "skip": 0, "keep": 0}


@dataclass
class DuplicateMatch:
    candidate_index: int
    similarity: SimilarityResult
    match_type: MatchType
    conflict_fields: List[str]
    recommendation: Recommendation
    reason: str
    existing_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "candidateIndex": self.candidate_index,
            "similarity": self.similarity.to_dict(),
            "matchType": self.match_type.value,
            "conflictFields": list(self.conflict_fields),
            "recommendation": self.recommendation.value,
            "reason": self.reason,
        }
        if self.existing_id is not None:
            data["existingId"] = self.existing_id
        return data

    @classmethod
    def from_dict(cls, data: Mapping) -> "DuplicateMatch":
        index = data.get("candidateIndex", data.get("loadIndex"))
        existing_id = data.get("existingId", data.get("existingLoadId"))
        return cls(
            candidate_index=int(index),
            similarity=SimilarityResult.from_dict(data.get("similarity") or {}),
            match_type=MatchType(data["matchType"]),
            conflict_fields=list(data.get("conflictFields") or []),
            recommendation=Recommendation(data["recommendation"]),
            reason=str(data.get("reason", data.get("aiReason", ""))),
            existing_id=str(existing_id) if existing_id is not None else None,
        )


@dataclass
class DuplicateSummary:
    total_duplicates: int = 0
    recommended_actions: Dict[str, int] = field(default_factory=empty_action_counts)
    insights: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalDuplicates": self.total_duplicates,
            "recommendedActions": dict(self.recommended_actions),
            "insights": list(self.insights),
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "DuplicateSummary":
        actions = empty_action_counts()
        actions.update({k: int(v) for k, v in (data.get("recommendedActions") or {}).items()})
        return cls(
            total_duplicates=int(data.get("totalDuplicates", 0)),
            recommended_actions=actions,
            insights=list(data.get("insights", data.get("aiInsights")) or []),
        )


@dataclass
class DuplicateCheckResult:
    duplicates: List[DuplicateMatch]
    summary: DuplicateSummary
    source: str = "local"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duplicates": [match.to_dict() for match in self.duplicates],
            "summary": self.summary.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping, source: str = "remote") -> "DuplicateCheckResult":
        # tRPC wraps procedure output as {"result": {"data": ...}}
        if "duplicates" not in data and isinstance(data.get("result"), Mapping):
            data = data["result"].get("data", data["result"])
            if isinstance(data, Mapping) and "json" in data and "duplicates" not in data:
                data = data["json"]

        if not isinstance(data, Mapping) or not isinstance(data.get("duplicates"), list):
            raise ValueError("Duplicate check payload has no 'duplicates' list")

        summary = data.get("summary", data.get("suggestions")) or {}
        return cls(
            duplicates=[DuplicateMatch.from_dict(item) for item in data["duplicates"]],
            summary=DuplicateSummary.from_dict(summary),
            source=source,
        )
