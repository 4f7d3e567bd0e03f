"""
Canonical store matching.

Provides:
- ItunesSearchClient: iTunes Search API client
- ConfidenceMatcher: candidate scoring and best-match selection
- BatchReconciler: applies the matcher over catalog entries
"""

from appdiscovery.matching.confidence import (
    ConfidenceMatcher,
    MatchResult,
    clean_name,
    score,
    similarity,
    strip_platform_suffix,
)
from appdiscovery.matching.itunes_client import ItunesSearchClient, SearchError
from appdiscovery.matching.reconcile import (
    BatchReconciler,
    ReconcileOutcome,
    ReconcileReport,
    ReconcileSummary,
    summarize,
)

__all__ = [
    "BatchReconciler",
    "ConfidenceMatcher",
    "ItunesSearchClient",
    "MatchResult",
    "ReconcileOutcome",
    "ReconcileReport",
    "ReconcileSummary",
    "SearchError",
    "clean_name",
    "score",
    "similarity",
    "strip_platform_suffix",
    "summarize",
]
