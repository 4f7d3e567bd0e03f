"""
Category crawl orchestration.

CategoryCrawler drives one invocation end to end: either "fetch the next
pages of a category and return the item URLs not yet in the catalog"
(crawl_next), or "import every item of one tracked page" (import_page).
Each invocation builds its own RateLimiter; nothing survives between
invocations except the rows written to the store.
"""

from typing import Callable, List, Optional, Union

from pydantic import BaseModel, Field

from appdiscovery.core.config import Config, get_config
from appdiscovery.core.error_logger import get_error_logger
from appdiscovery.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from appdiscovery.core.exceptions import NotFoundError
from appdiscovery.core.logging import get_logger
from appdiscovery.core.outcomes import OutcomeStatus, count_outcomes
from appdiscovery.crawler.cursor import PageCursorTracker
from appdiscovery.crawler.dedup import DedupChecker
from appdiscovery.crawler.extractor import extract_detail, extract_listing_urls
from appdiscovery.crawler.http import FetchError, PageFetcher
from appdiscovery.crawler.importer import CatalogImporter, ImportOutcome
from appdiscovery.crawler.rate_limiter import RateLimiter
from appdiscovery.crawler.url_utils import build_page_url, category_name_from_url, domain_of
from appdiscovery.db.models import PageStatus
from appdiscovery.db.repository import CatalogRepository
from appdiscovery.utils.date_utils import get_current_timestamp

logger = get_logger(__name__)

FetcherFactory = Callable[[RateLimiter], PageFetcher]


class CrawlResult(BaseModel):
    """Outcome of one crawl_next invocation."""
    category_url: str
    category_name: str
    start_page: Optional[int] = None
    new_item_urls: List[str] = Field(default_factory=list)
    total_found: int = 0
    existing_count: int = 0
    pages_processed: List[int] = Field(default_factory=list)
    error: Optional[str] = None


class PageImportResult(BaseModel):
    """Outcome of importing one tracked listing page."""
    session_id: str
    page_number: int
    status: str
    apps_imported: int = 0
    apps_skipped: int = 0
    apps_failed: int = 0
    results: List[ImportOutcome] = Field(default_factory=list)
    error: Optional[str] = None


class CategoryCrawler:
    """
    Composes fetcher, extractor, URL validator, dedup checker and cursor.

    Args:
        repository: Catalog store access
        config: Crawl delay and page-yield threshold (default: global config)
        fetcher_factory: Builds a fetcher around the run's RateLimiter
        limiter_factory: Builds the run's RateLimiter
        importer: Used by import_page (default: CatalogImporter on repository)
    """

    def __init__(
        self,
        repository: CatalogRepository,
        config: Optional[Config] = None,
        fetcher_factory: Optional[FetcherFactory] = None,
        limiter_factory: Optional[Callable[[], RateLimiter]] = None,
        importer: Optional[CatalogImporter] = None,
    ):
        self.repository = repository
        self.config = config or get_config()
        self.cursor = PageCursorTracker(repository)
        self.dedup = DedupChecker(repository)
        self.importer = importer or CatalogImporter(repository)
        self._fetcher_factory = fetcher_factory or (
            lambda limiter: PageFetcher(rate_limiter=limiter, config=self.config)
        )
        self._limiter_factory = limiter_factory or (lambda: RateLimiter(self.config.crawl_delay_ms))

    def _new_fetcher(self) -> PageFetcher:
        return self._fetcher_factory(self._limiter_factory())

    def crawl_next(self, category_url: str, per_page_limit: int = 20, page_count: int = 1) -> CrawlResult:
        """
        Fetch the next page_count pages of a category and return new item URLs.

        Pages are fetched in order starting at the cursor. Each fetched
        page is marked processed whatever it yielded. The loop stops early
        once per_page_limit URLs are accumulated, when a page yields fewer
        than MIN_PAGE_YIELD URLs (last page), or on a fetch failure. The
        accumulated URLs are then deduplicated against the catalog and the
        new ones returned, capped at per_page_limit.
        """
        category_name = category_name_from_url(category_url)
        result = CrawlResult(category_url=category_url, category_name=category_name)

        try:
            start = self.cursor.next_page(category_url)
        except Exception as e:
            logger.error(f"Could not read crawl cursor for {category_url}: {e}")
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.CRAWLER,
                stage=ErrorStage.READ_CURSOR,
                domain=domain_of(category_url),
                url=category_url,
            )
            result.error = f"Could not read crawl progress: {e}"
            return result

        result.start_page = start
        fetcher = self._new_fetcher()
        accumulated: List[str] = []
        seen = set()

        for offset in range(page_count):
            page = start + offset
            page_url = build_page_url(category_url, page)
            try:
                html = fetcher.fetch(page_url)
            except FetchError as e:
                logger.warning(f"Stopping crawl of {category_name} at page {page}: {e}")
                get_error_logger().log_exception(
                    e,
                    component=ErrorComponent.CRAWLER,
                    stage=ErrorStage.FETCH_LISTING,
                    domain=domain_of(page_url),
                    url=page_url,
                    metadata={"page_number": page},
                )
                result.error = str(e)
                break

            page_urls = extract_listing_urls(html, want=per_page_limit)
            for url in page_urls:
                if url not in seen:
                    seen.add(url)
                    accumulated.append(url)

            self.cursor.mark_processed(category_url, page, category_name)
            result.pages_processed.append(page)
            logger.info(f"{category_name} page {page}: {len(page_urls)} item URLs")

            if len(accumulated) >= per_page_limit:
                break
            if len(page_urls) < self.config.min_page_yield:
                logger.info(f"{category_name} page {page} looks like the last page")
                break

        partition = self.dedup.partition(accumulated)
        result.total_found = len(accumulated)
        result.existing_count = len(partition.existing)
        result.new_item_urls = partition.new[:per_page_limit]
        return result

    def import_page(self, session_id: Union[int, str], page_number: Optional[int] = None) -> PageImportResult:
        """
        Import every item listed on a tracked page.

        Already-imported sessions short-circuit without writes. Items whose
        source URL is catalogued are skipped without fetching their detail
        page. The session ends up imported with counts, or failed when the
        listing itself cannot be fetched.

        Raises:
            NotFoundError: If the session does not exist
        """
        session = self.repository.get_session(session_id)
        if session is None:
            raise NotFoundError(f"Session not found: {session_id}")

        page = page_number or session.resolved_page_number or 1
        sid = str(session_id)

        if session.page_status == PageStatus.IMPORTED:
            logger.info(f"Session {sid} (page {page}) already imported")
            return PageImportResult(
                session_id=sid,
                page_number=page,
                status="already_imported",
                apps_imported=session.apps_imported,
                apps_skipped=session.apps_skipped,
            )

        fetcher = self._new_fetcher()
        page_url = build_page_url(session.category_url, page)
        try:
            html = fetcher.fetch(page_url)
        except FetchError as e:
            logger.error(f"Listing fetch failed for session {sid}: {e}")
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.CRAWLER,
                stage=ErrorStage.FETCH_LISTING,
                domain=domain_of(page_url),
                url=page_url,
                metadata={"session_id": sid},
            )
            self._update_session(sid, {"page_status": PageStatus.FAILED.value, "completed_at": get_current_timestamp()})
            return PageImportResult(session_id=sid, page_number=page, status=PageStatus.FAILED.value, error=str(e))

        outcomes = [self._import_url(fetcher, url) for url in extract_listing_urls(html)]
        counts = count_outcomes(o.status for o in outcomes)

        self._update_session(
            sid,
            {
                "page_status": PageStatus.IMPORTED.value,
                "apps_imported": counts[OutcomeStatus.OK.value],
                "apps_skipped": counts[OutcomeStatus.SKIPPED.value],
                "completed_at": get_current_timestamp(),
            },
        )
        logger.info(
            f"Session {sid} page {page}: {counts['ok']} imported, "
            f"{counts['skipped']} skipped, {counts['failed']} failed"
        )
        return PageImportResult(
            session_id=sid,
            page_number=page,
            status=PageStatus.IMPORTED.value,
            apps_imported=counts[OutcomeStatus.OK.value],
            apps_skipped=counts[OutcomeStatus.SKIPPED.value],
            apps_failed=counts[OutcomeStatus.FAILED.value],
            results=outcomes,
        )

    def _import_url(self, fetcher: PageFetcher, url: str) -> ImportOutcome:
        try:
            if self.repository.find_app_by_source_url(url):
                return ImportOutcome(url=url, status=OutcomeStatus.SKIPPED, reason="already in catalog")
        except Exception as e:
            logger.debug(f"Existence check failed for {url}, importing anyway: {e}")

        try:
            html = fetcher.fetch_detail(url)
        except FetchError as e:
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.CRAWLER,
                stage=ErrorStage.FETCH_DETAIL,
                domain=domain_of(url),
                url=url,
            )
            return ImportOutcome(url=url, status=OutcomeStatus.FAILED, reason=str(e))

        try:
            item = extract_detail(html, url)
        except Exception as e:
            logger.warning(f"Could not extract {url}: {e}")
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.CRAWLER,
                stage=ErrorStage.EXTRACT_DETAIL,
                domain=domain_of(url),
                url=url,
                error_type=ErrorType.PARSE_ERROR,
            )
            return ImportOutcome(url=url, status=OutcomeStatus.FAILED, reason=f"extraction failed: {e}")
        if item is None:
            get_error_logger().log_error(
                component=ErrorComponent.CRAWLER,
                stage=ErrorStage.EXTRACT_DETAIL,
                error_type=ErrorType.PARSE_ERROR,
                domain=domain_of(url),
                message="No name found on detail page",
                url=url,
                severity=ErrorSeverity.WARNING,
            )
            return ImportOutcome(url=url, status=OutcomeStatus.FAILED, reason="no name found on detail page")
        return self.importer.import_item(item)

    def _update_session(self, session_id: str, fields: dict) -> None:
        try:
            self.repository.update_session(session_id, fields)
        except Exception as e:
            logger.error(f"Failed to update session {session_id}: {e}")
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.DATABASE,
                stage=ErrorStage.UPDATE_SESSION,
                domain="import_sessions",
                metadata={"session_id": session_id, "fields": fields},
            )
