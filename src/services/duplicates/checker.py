# --------------------------- src/services/duplicates/checker.py ----------------------------
"""
Load Matching Engine · Duplicate Load Checker

OVERVIEW:
Flags likely duplicate load posts in an upload batch before they are
committed, classifies each match and recommends what to do with it.

WORKFLOW:
1. Probe the remote duplicate-check service (bounded to 1.5s)
2. If reachable, call it (bounded to 2.5s) and return its verdict as-is
3. Otherwise score every pair in the batch locally
4. Optionally compare each candidate with already-posted loads
5. Summarize: totals, recommendation histogram, insights

BUSINESS LOGIC:
- The remote service is authoritative; its scores may differ from the local
  heuristic and are never reconciled with it
- A slow or failing service never blocks an upload: the local heuristic
  always produces an answer
- Match tiers: >=0.95 exact, >=0.80 high, else medium
- Recommendations: exact -> delete_existing, >0.85 -> merge, else skip_new

INTEGRATION POINTS:
- Called by the upload/posting flow before new loads are written
- Returns None only for an empty batch
"""

import asyncio
import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence

from config import settings
from src.services.duplicates.existing import ExistingLoadSource
from src.services.duplicates.models import (
    ACTION_BUCKETS,
    DuplicateCheckResult,
    DuplicateMatch,
    DuplicateSummary,
    MatchType,
    Recommendation,
    empty_action_counts,
)
from src.services.duplicates.remote import RemoteDuplicateService
from src.services.duplicates.similarity import SimilarityResult, calculate_similarity

logger = logging.getLogger(__name__)

EXACT_THRESHOLD = 0.95
HIGH_THRESHOLD = 0.80
MERGE_THRESHOLD = 0.85

# Sub-scores below these are reported as conflicts
CONFLICT_THRESHOLDS = (
    ("location", 0.9),
    ("rate", 0.9),
    ("timing", 0.8),
    ("equipment", 0.9),
)


def determine_match_type(similarity: SimilarityResult) -> MatchType:
    if similarity.overall >= EXACT_THRESHOLD:
        return MatchType.EXACT
    if similarity.overall >= HIGH_THRESHOLD:
        return MatchType.HIGH
    return MatchType.MEDIUM


def determine_recommendation(similarity: SimilarityResult, match_type: MatchType) -> Recommendation:
    if match_type is MatchType.EXACT:
        return Recommendation.DELETE_EXISTING
    if similarity.overall > MERGE_THRESHOLD:
        return Recommendation.MERGE
    return Recommendation.SKIP_NEW


def identify_conflict_fields(similarity: SimilarityResult) -> List[str]:
    return [name for name, floor in CONFLICT_THRESHOLDS if getattr(similarity, name) < floor]


def build_match(candidate_index: int, similarity: SimilarityResult,
                existing_id: Optional[str] = None) -> DuplicateMatch:
    match_type = determine_match_type(similarity)
    percent = int(similarity.overall * 100 + 0.5)
    return DuplicateMatch(
        candidate_index=candidate_index,
        existing_id=existing_id,
        similarity=similarity,
        match_type=match_type,
        conflict_fields=identify_conflict_fields(similarity),
        recommendation=determine_recommendation(similarity, match_type),
        reason=f"{match_type.value} similarity detected ({percent}% match)",
    )


def summarize(duplicates: Sequence[DuplicateMatch]) -> DuplicateSummary:
    insights: List[str] = []

    if duplicates:
        insights.append(f"Found {len(duplicates)} potential duplicates in your upload.")

        tiers = Counter(match.match_type for match in duplicates)
        if tiers[MatchType.EXACT]:
            insights.append(
                f"{tiers[MatchType.EXACT]} exact duplicates detected - these should be removed."
            )
        if tiers[MatchType.HIGH]:
            insights.append(
                f"{tiers[MatchType.HIGH]} high-similarity matches found - review for potential merging."
            )

        conflicts = Counter(field for match in duplicates for field in match.conflict_fields)
        if conflicts:
            field, count = conflicts.most_common(1)[0]
            insights.append(f"Most common difference: {field} ({count} cases)")
    else:
        insights.append("No duplicates detected in your upload. All loads appear unique.")

    return DuplicateSummary(
        total_duplicates=len(duplicates),
        recommended_actions=get_recommended_actions_for(duplicates),
        insights=insights,
    )


def get_recommended_actions_for(duplicates: Sequence[DuplicateMatch]) -> Dict[str, int]:
    actions = empty_action_counts()
    for match in duplicates:
        actions[ACTION_BUCKETS[match.recommendation]] += 1
    return actions


def find_batch_duplicates(loads: Sequence[Any], threshold: float) -> List[DuplicateMatch]:
    """All pairs i<j within the batch; the later load is the one flagged."""
    duplicates = []
    for i in range(len(loads)):
        for j in range(i + 1, len(loads)):
            similarity = calculate_similarity(loads[i], loads[j])
            if similarity.overall >= threshold:
                duplicates.append(build_match(j, similarity))
    return duplicates


def find_existing_duplicates(loads: Sequence[Any], existing: Sequence[Dict[str, Any]],
                             threshold: float) -> List[DuplicateMatch]:
    duplicates = []
    for index, candidate in enumerate(loads):
        for record in existing:
            similarity = calculate_similarity(candidate, record)
            if similarity.overall >= threshold:
                record_id = record.get("id") if isinstance(record, dict) else None
                duplicates.append(
                    build_match(index, similarity, str(record_id) if record_id is not None else None)
                )
    return duplicates


def check_locally(loads: Sequence[Any], threshold: float = settings.DUPLICATE_THRESHOLD,
                  existing: Optional[Sequence[Dict[str, Any]]] = None) -> DuplicateCheckResult:
    """
    Offline duplicate check. Pure and deterministic for a given input.

    O(n^2) in the batch size; callers should cap upload batches.
    """
    duplicates = find_batch_duplicates(loads, threshold)
    if existing:
        duplicates.extend(find_existing_duplicates(loads, existing, threshold))
    return DuplicateCheckResult(duplicates=duplicates, summary=summarize(duplicates), source="local")


class DuplicateChecker:
    """
    Remote-first duplicate checker with a local fallback.

    ARGS:
        remote: Remote service client; built from DUPLICATE_SERVICE_URL if omitted
        existing_source: Optional source of already-posted loads
        probe_timeout: Seconds allowed for the reachability probe
        remote_timeout: Seconds allowed for the remote check itself
    """

    def __init__(self, remote: Optional[RemoteDuplicateService] = None,
                 existing_source: Optional[ExistingLoadSource] = None,
                 probe_timeout: float = settings.DUPLICATE_PROBE_TIMEOUT,
                 remote_timeout: float = settings.DUPLICATE_REMOTE_TIMEOUT):
        self.remote = remote if remote is not None else RemoteDuplicateService()
        self.existing_source = existing_source
        self.probe_timeout = probe_timeout
        self.remote_timeout = remote_timeout

    async def check_duplicates(self, loads: Sequence[Any],
                               threshold: float = settings.DUPLICATE_THRESHOLD,
                               check_existing: bool = True) -> Optional[DuplicateCheckResult]:
        if not loads:
            return None

        loads = list(loads)
        try:
            result = await self._check_remotely(loads, threshold, check_existing)
            if result is not None:
                return result

            existing = await self._load_existing() if check_existing else None
            return check_locally(loads, threshold, existing)

        except Exception as e:
            logger.error(f"Duplicate check failed, using offline heuristics: {e}")
            return check_locally(loads, threshold)

    async def check_single_load(self, load: Any,
                                threshold: float = settings.DUPLICATE_THRESHOLD) -> List[DuplicateMatch]:
        """Compare one new load against already-posted loads."""
        result = await self.check_duplicates([load], threshold=threshold, check_existing=True)
        return result.duplicates if result else []

    async def _check_remotely(self, loads: List[Any], threshold: float,
                              check_existing: bool) -> Optional[DuplicateCheckResult]:
        if not self.remote.is_configured():
            return None

        try:
            reachable = await asyncio.wait_for(self.remote.probe(), timeout=self.probe_timeout)
        except asyncio.TimeoutError:
            reachable = False
        if not reachable:
            logger.info("Duplicate service not reachable, using local duplicate check")
            return None

        try:
            result = await asyncio.wait_for(
                self.remote.check_duplicates(loads, threshold, check_existing),
                timeout=self.remote_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Remote duplicate check timed out after {self.remote_timeout}s, using local fallback")
            return None
        except Exception as e:
            logger.warning(f"Remote duplicate check failed, using local fallback: {e}")
            return None

        logger.info(f"Remote duplicate check found {len(result.duplicates)} duplicates")
        return result

    async def _load_existing(self) -> Optional[List[Dict[str, Any]]]:
        if self.existing_source is None:
            return None
        try:
            return await self.existing_source.fetch_existing()
        except Exception as e:
            logger.warning(f"Could not load existing loads, checking batch only: {e}")
            return None


# Result helpers
def has_duplicates(result: Optional[DuplicateCheckResult]) -> bool:
    return bool(result and result.duplicates)


def get_recommended_actions(result: Optional[DuplicateCheckResult]) -> Dict[str, int]:
    if not result:
        return empty_action_counts()
    return get_recommended_actions_for(result.duplicates)


def get_highest_similarity(result: Optional[DuplicateCheckResult]) -> float:
    if not result or not result.duplicates:
        return 0.0
    return max(match.similarity.overall for match in result.duplicates)


def get_insights(result: Optional[DuplicateCheckResult]) -> List[str]:
    return list(result.summary.insights) if result else []


def filter_by_match_type(result: Optional[DuplicateCheckResult], match_type: Any) -> List[DuplicateMatch]:
    if not result:
        return []
    wanted = MatchType(match_type)
    return [match for match in result.duplicates if match.match_type is wanted]
