"""
Confidence scoring of canonical store candidates.

A scraped (name, developer) pair is searched on the canonical store and
every candidate is scored:

    score = 0.7 * name_similarity + 0.3 * developer_similarity
            + 0.2 if the cleaned names are equal
            + 0.1 if the cleaned developers are equal

clamped to 1.0. Without a developer, name similarity fills the developer
weight too. Only the best candidate scoring at least the match threshold
is reported as found; the weighting favours precision over recall.
"""

import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel

from appdiscovery.core.config import Config, get_config
from appdiscovery.core.error_logger import get_error_logger
from appdiscovery.core.error_models import ErrorComponent, ErrorStage
from appdiscovery.core.logging import get_logger
from appdiscovery.db.models import CanonicalCandidate
from appdiscovery.matching.itunes_client import ItunesSearchClient, SearchError

logger = get_logger(__name__)

NAME_WEIGHT = 0.7
DEVELOPER_WEIGHT = 0.3
EXACT_NAME_BONUS = 0.2
EXACT_DEVELOPER_BONUS = 0.1
CONTAINMENT_SIMILARITY = 0.95
OVERLAP_BOOST = 0.2

PLATFORM_SUFFIX = re.compile(r"\s*(?:for\s+macos|for\s+mac|mac\s+version)\s*$", re.IGNORECASE)

NO_RESULTS = "No results found"
NO_CONFIDENT_MATCH = "No high-confidence match found"


def clean_name(text: Optional[str]) -> str:
    """
    Example:
        >>> clean_name("  Notion Labs, Inc. ")
        'notion labs inc'
    """
    text = (text or "").lower()
    text = re.sub(r"[^\w\s]", "", text)
    return re.sub(r"\s+", " ", text).strip()


def strip_platform_suffix(name: str) -> str:
    """Drop a trailing "for Mac", "for macOS" or "Mac version"."""
    return PLATFORM_SUFFIX.sub("", name or "").strip()


def similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Similarity of two names in [0, 1].

    Exact match after cleaning is 1.0, containment either way 0.95,
    otherwise the share of common words (over the longer name), boosted
    by 0.2 when at least half the words are shared.
    """
    clean_a, clean_b = clean_name(a), clean_name(b)
    if not clean_a or not clean_b:
        return 0.0
    if clean_a == clean_b:
        return 1.0
    if clean_a in clean_b or clean_b in clean_a:
        return CONTAINMENT_SIMILARITY

    words_a, words_b = clean_a.split(), clean_b.split()
    common = sum(1 for word in words_a if word in words_b)
    overlap = common / max(len(words_a), len(words_b))
    if overlap >= 0.5:
        overlap = min(overlap + OVERLAP_BOOST, 1.0)
    return overlap


def score(candidate_name: str, candidate_developer: str, name: str, developer: Optional[str] = None) -> float:
    """Confidence that a candidate is the queried app, rounded to 4 places."""
    name_sim = similarity(candidate_name, name)
    dev_sim = similarity(candidate_developer, developer) if developer else name_sim

    total = NAME_WEIGHT * name_sim + DEVELOPER_WEIGHT * dev_sim
    if clean_name(candidate_name) == clean_name(name):
        total += EXACT_NAME_BONUS
        if developer and clean_name(candidate_developer) == clean_name(developer):
            total += EXACT_DEVELOPER_BONUS
    return round(min(total, 1.0), 4)


class MatchResult(BaseModel):
    found: bool
    confidence: float = 0.0
    canonical_id: Optional[str] = None
    canonical_url: Optional[str] = None
    raw_result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    request_failed: bool = False


Scorer = Callable[[str, str, str, Optional[str]], float]


class ConfidenceMatcher:
    """
    Finds the canonical store entry of a scraped app.

    Args:
        client: Search client (default: ItunesSearchClient)
        config: Supplies MATCH_THRESHOLD (default: global config)
        threshold: Overrides the configured threshold
        scorer: Candidate scoring function (default: score)
    """

    def __init__(
        self,
        client: Optional[ItunesSearchClient] = None,
        config: Optional[Config] = None,
        threshold: Optional[float] = None,
        scorer: Optional[Scorer] = None,
    ):
        self.config = config or get_config()
        self.client = client or ItunesSearchClient(config=self.config)
        self.threshold = self.config.match_threshold if threshold is None else threshold
        self.scorer = scorer or score

    def best_candidate(
        self,
        candidates: List[CanonicalCandidate],
        name: str,
        developer: Optional[str] = None,
    ) -> Tuple[Optional[CanonicalCandidate], float]:
        """Highest-scoring candidate (first one wins ties) and its score."""
        best, best_score = None, 0.0
        for candidate in candidates:
            candidate_score = self.scorer(candidate.track_name, candidate.artist_name, name, developer)
            logger.debug(f"  {candidate.track_name!r} by {candidate.artist_name!r}: {candidate_score}")
            if best is None or candidate_score > best_score:
                best, best_score = candidate, candidate_score
        return best, best_score

    def search_app(self, name: str, developer: Optional[str] = None) -> MatchResult:
        """
        Search the canonical store for name/developer.

        Never raises: API failures come back as found=False with
        request_failed set and the error message.
        """
        query = strip_platform_suffix(name)
        logger.info(f"Searching canonical store for {query!r} by {developer or 'unknown'}")

        try:
            candidates = self.client.search(query)
        except SearchError as e:
            logger.warning(f"Canonical search failed for {query!r}: {e}")
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.MATCHING,
                stage=ErrorStage.SEARCH_CANONICAL,
                domain="itunes.apple.com",
                metadata={"term": query},
            )
            return MatchResult(found=False, error=str(e), request_failed=True)

        if not candidates:
            return MatchResult(found=False, error=NO_RESULTS)

        best, best_score = self.best_candidate(candidates, query, developer)
        if best is None or best_score < self.threshold:
            logger.info(f"No confident match for {query!r} (best {best_score})")
            return MatchResult(found=False, confidence=best_score, error=NO_CONFIDENT_MATCH)

        logger.info(f"Matched {query!r} to {best.track_name!r} ({best.track_id}) with confidence {best_score}")
        return MatchResult(
            found=True,
            confidence=best_score,
            canonical_id=str(best.track_id),
            canonical_url=best.track_view_url,
            raw_result=best.raw(),
        )
