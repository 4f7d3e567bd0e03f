"""
Batch reconciliation of catalog entries against the canonical store.
"""

import time
from typing import Callable, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from appdiscovery.core.config import Config, get_config
from appdiscovery.core.error_logger import get_error_logger
from appdiscovery.core.error_models import ErrorComponent, ErrorStage
from appdiscovery.core.exceptions import InvalidRequestError, NotFoundError
from appdiscovery.core.logging import get_logger
from appdiscovery.core.outcomes import OutcomeStatus, count_outcomes
from appdiscovery.db.models import CatalogEntry, MatchAttempt, MatchStatus
from appdiscovery.db.repository import CatalogRepository
from appdiscovery.matching.confidence import ConfidenceMatcher, MatchResult

logger = get_logger(__name__)

EntryId = Union[int, str]


class ReconcileOutcome(BaseModel):
    """
    One entry's reconciliation.

    status is ok when a match was found, skipped when there was no
    confident match, failed when the search or a write blew up.
    """
    app_id: str
    app_name: str
    status: OutcomeStatus
    found: bool = False
    confidence: float = 0.0
    canonical_id: Optional[str] = None
    canonical_url: Optional[str] = None
    auto_applied: bool = False
    error: Optional[str] = None


class ReconcileSummary(BaseModel):
    total: int = 0
    found: int = 0
    auto_applied: int = 0
    failed: int = 0
    errors: int = 0


class ReconcileReport(BaseModel):
    results: List[ReconcileOutcome] = Field(default_factory=list)
    summary: ReconcileSummary = Field(default_factory=ReconcileSummary)


def summarize(results: List[ReconcileOutcome]) -> ReconcileSummary:
    """Aggregate counts; failed counts every entry without a match."""
    found = sum(1 for r in results if r.found)
    return ReconcileSummary(
        total=len(results),
        found=found,
        auto_applied=sum(1 for r in results if r.auto_applied),
        failed=len(results) - found,
        errors=count_outcomes(r.status for r in results)[OutcomeStatus.FAILED.value],
    )


class BatchReconciler:
    """
    Runs the ConfidenceMatcher over catalog entries, one at a time.

    Every attempt is recorded in the match-attempts table (best-effort).
    With auto_apply, a match at or above AUTO_APPLY_THRESHOLD writes the
    canonical ID and URL back onto the entry and confirms the attempt.

    Args:
        repository: Catalog store access
        matcher: Confidence matcher (default: one over the iTunes client)
        config: MATCH_DELAY_MS and AUTO_APPLY_THRESHOLD (default: global config)
        sleep: Sleep function used between entries
    """

    def __init__(
        self,
        repository: CatalogRepository,
        matcher: Optional[ConfidenceMatcher] = None,
        config: Optional[Config] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.repository = repository
        self.config = config or get_config()
        self.matcher = matcher or ConfidenceMatcher(config=self.config)
        self._sleep = sleep

    def reconcile(self, entry_ids: Sequence[EntryId], auto_apply: bool = False) -> ReconcileReport:
        """
        Reconcile the given entries, skipping those that already carry
        both canonical identifiers.

        Raises:
            InvalidRequestError: If entry_ids is empty
        """
        if not entry_ids:
            raise InvalidRequestError("entry_ids must be a non-empty list")

        entries = [e for e in self.repository.get_apps(entry_ids) if e.needs_canonical]
        logger.info(f"Reconciling {len(entries)} of {len(entry_ids)} entries (auto_apply={auto_apply})")

        results = []
        for index, entry in enumerate(entries):
            if index and self.config.match_delay_ms:
                self._sleep(self.config.match_delay_ms / 1000)
            results.append(self._reconcile_entry(entry, auto_apply))

        report = ReconcileReport(results=results, summary=summarize(results))
        logger.info(f"Reconciliation summary: {report.summary.model_dump()}")
        return report

    def reconcile_one(self, entry_id: EntryId) -> ReconcileOutcome:
        """
        Reconcile a single entry, applying a confident match.

        Raises:
            NotFoundError: If the entry does not exist
        """
        entry = self.repository.get_app(entry_id)
        if entry is None:
            raise NotFoundError(f"App not found: {entry_id}")
        return self._reconcile_entry(entry, auto_apply=True)

    def attempts_for(self, app_id: EntryId) -> List[MatchAttempt]:
        return self.repository.list_match_attempts(app_id)

    def _reconcile_entry(self, entry: CatalogEntry, auto_apply: bool) -> ReconcileOutcome:
        app_id = str(entry.id)
        try:
            result = self.matcher.search_app(entry.name, entry.developer)
            attempt_id = self._record_attempt(entry, result)

            applied = False
            if auto_apply and result.found and result.confidence >= self.config.auto_apply_threshold:
                self.repository.update_app_canonical(entry.id, result.canonical_id, result.canonical_url)
                applied = True
                logger.info(f"Applied canonical match {result.canonical_id} to {entry.name}")
                if attempt_id is not None:
                    self._confirm_attempt(attempt_id)
        except Exception as e:
            logger.error(f"Reconciliation of {entry.name} ({app_id}) failed: {e}")
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.MATCHING,
                stage=ErrorStage.APPLY_MATCH,
                domain="itunes.apple.com",
                metadata={"app_id": app_id, "name": entry.name},
            )
            return ReconcileOutcome(app_id=app_id, app_name=entry.name, status=OutcomeStatus.FAILED, error=str(e))

        if result.found:
            status = OutcomeStatus.OK
        elif result.request_failed:
            status = OutcomeStatus.FAILED
        else:
            status = OutcomeStatus.SKIPPED

        return ReconcileOutcome(
            app_id=app_id,
            app_name=entry.name,
            status=status,
            found=result.found,
            confidence=result.confidence,
            canonical_id=result.canonical_id,
            canonical_url=result.canonical_url,
            auto_applied=applied,
            error=result.error,
        )

    def _record_attempt(self, entry: CatalogEntry, result: MatchResult) -> Optional[EntryId]:
        attempt = MatchAttempt(
            app_id=entry.id,
            search_term=entry.name,
            developer_name=entry.developer,
            itunes_response=result.raw_result,
            confidence_score=result.confidence,
            status=MatchStatus.FOUND if result.found else MatchStatus.FAILED,
            mas_id=result.canonical_id,
            mas_url=result.canonical_url,
            error_message=result.error,
        )
        try:
            return self.repository.insert_match_attempt(attempt)
        except Exception as e:
            self._log_attempt_failure(e, entry.id, "insert")
            return None

    def _confirm_attempt(self, attempt_id: EntryId) -> None:
        try:
            self.repository.set_match_attempt_status(attempt_id, MatchStatus.CONFIRMED)
        except Exception as e:
            self._log_attempt_failure(e, attempt_id, "confirm")

    def _log_attempt_failure(self, exc: Exception, ref: EntryId, action: str) -> None:
        logger.error(f"Could not {action} match attempt for {ref}: {exc}")
        metadata: Dict[str, str] = {"ref": str(ref), "action": action}
        get_error_logger().log_exception(
            exc,
            component=ErrorComponent.DATABASE,
            stage=ErrorStage.RECORD_ATTEMPT,
            domain="itunes_match_attempts",
            metadata=metadata,
        )
