"""Duplicate Load Detection Module"""
from .checker import (
    DuplicateChecker,
    check_locally,
    filter_by_match_type,
    get_highest_similarity,
    get_insights,
    get_recommended_actions,
    has_duplicates,
)
from .existing import ExistingLoadSource, StaticLoadSource, SupabaseLoadSource
from .models import DuplicateCheckResult, DuplicateMatch, DuplicateSummary, MatchType, Recommendation
from .remote import RemoteDuplicateService
from .similarity import SimilarityResult, calculate_similarity

__all__ = [
    "DuplicateChecker", "check_locally", "has_duplicates", "get_recommended_actions",
    "get_highest_similarity", "get_insights", "filter_by_match_type",
    "ExistingLoadSource", "StaticLoadSource", "SupabaseLoadSource",
    "DuplicateCheckResult", "DuplicateMatch", "DuplicateSummary", "MatchType", "Recommendation",
    "RemoteDuplicateService", "SimilarityResult", "calculate_similarity",
]
