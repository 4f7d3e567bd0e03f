"""
Entry points for the admin backend.

CatalogService validates caller input and returns plain JSON-ready dicts,
so an HTTP handler or the CLI can hand results straight to the UI.
Client mistakes raise InvalidRequestError (400) or NotFoundError (404);
every other problem degrades into the returned payload.
"""

from typing import Any, Dict, List, Optional, Sequence, Union

from appdiscovery.core.config import Config, get_config
from appdiscovery.core.error_logger import get_error_logger, summarize_errors
from appdiscovery.core.error_models import ErrorComponent
from appdiscovery.core.exceptions import InvalidRequestError
from appdiscovery.core.logging import get_logger
from appdiscovery.crawler.cursor import PageCursorTracker
from appdiscovery.crawler.orchestrator import CategoryCrawler, CrawlResult
from appdiscovery.crawler.url_utils import domain_of
from appdiscovery.db.repository import CatalogRepository
from appdiscovery.matching.reconcile import BatchReconciler

logger = get_logger(__name__)

RowId = Union[int, str]


def _require(value: Any, name: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidRequestError(f"{name} is required")


def _require_positive(value: Optional[int], name: str) -> None:
    if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value < 1):
        raise InvalidRequestError(f"{name} must be a positive integer, got {value!r}")


def _require_category_url(url: str) -> None:
    _require(url, "category_url")
    if not url.startswith(("http://", "https://")):
        raise InvalidRequestError(f"category_url must be an absolute http(s) URL, got {url!r}")


def crawl_note(result: CrawlResult) -> str:
    if result.error and not result.pages_processed:
        return result.error
    if not result.pages_processed:
        return "No pages processed"
    first, last = result.pages_processed[0], result.pages_processed[-1]
    pages = f"page {first}" if first == last else f"pages {first}-{last}"
    if not result.new_item_urls:
        note = f"No new apps found on {pages}"
    else:
        note = f"Found {len(result.new_item_urls)} new apps on {pages}"
    if result.error:
        note += f" (stopped early: {result.error})"
    return note


class CatalogService:
    """
    Args:
        repository: Catalog store access (default: over the shared Supabase client)
        config: Defaults for limits and delays (default: global config)
        crawler: CategoryCrawler to use (default: built on repository)
        reconciler: BatchReconciler to use (default: built on repository)
    """

    def __init__(
        self,
        repository: Optional[CatalogRepository] = None,
        config: Optional[Config] = None,
        crawler: Optional[CategoryCrawler] = None,
        reconciler: Optional[BatchReconciler] = None,
    ):
        self.config = config or get_config()
        self.repository = repository or CatalogRepository(config=self.config)
        self.crawler = crawler or CategoryCrawler(self.repository, config=self.config)
        self.reconciler = reconciler or BatchReconciler(self.repository, config=self.config)
        self.cursor = PageCursorTracker(self.repository)

    def crawl_next_page(
        self,
        category_url: str,
        limit: Optional[int] = None,
        pages: Optional[int] = None,
        reset: bool = False,
    ) -> Dict[str, Any]:
        """Crawl the next page(s) of a category; reset=True starts over at page 1."""
        _require_category_url(category_url)
        _require_positive(limit, "limit")
        _require_positive(pages, "pages")

        if reset:
            self.cursor.reset(category_url)

        result = self.crawler.crawl_next(
            category_url,
            per_page_limit=limit or self.config.per_page_limit,
            page_count=pages or self.config.page_count,
        )
        payload = result.model_dump()
        payload["success"] = not (result.error and not result.pages_processed)
        payload["note"] = crawl_note(result)
        return payload

    def import_page(self, session_id: RowId, page_number: Optional[int] = None) -> Dict[str, Any]:
        _require(session_id, "session_id")
        _require_positive(page_number, "page_number")
        result = self.crawler.import_page(session_id, page_number)
        payload = result.model_dump(mode="json")
        payload["success"] = result.error is None
        return payload

    def reconcile(self, entry_ids: Sequence[RowId], auto_apply: bool = False) -> Dict[str, Any]:
        if not entry_ids:
            raise InvalidRequestError("entry_ids must be a non-empty list")
        report = self.reconciler.reconcile(list(entry_ids), auto_apply=auto_apply)
        return {
            "success": True,
            "summary": report.summary.model_dump(),
            "results": [r.model_dump(mode="json") for r in report.results],
        }

    def reconcile_one(self, entry_id: RowId) -> Dict[str, Any]:
        _require(entry_id, "entry_id")
        outcome = self.reconciler.reconcile_one(entry_id)
        return {"success": True, "result": outcome.model_dump(mode="json")}

    def match_attempts(self, app_id: RowId) -> List[Dict[str, Any]]:
        _require(app_id, "app_id")
        return [a.model_dump(mode="json") for a in self.reconciler.attempts_for(app_id)]

    def category_progress(self, category_url: str) -> Dict[str, Any]:
        _require_category_url(category_url)
        return self.cursor.progress(category_url).model_dump(mode="json")

    def reset_category(self, category_url: str) -> Dict[str, Any]:
        _require_category_url(category_url)
        removed = self.cursor.reset(category_url)
        return {"success": True, "category_url": category_url, "sessions_removed": removed}

    def error_report(
        self,
        domain: Optional[str] = None,
        limit: Optional[int] = None,
        component: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Summarize recent logged errors for a domain (default: the source host)."""
        _require_positive(limit, "limit")
        try:
            parsed_component = ErrorComponent(component) if component else None
        except ValueError:
            choices = ", ".join(c.value for c in ErrorComponent)
            raise InvalidRequestError(f"component must be one of {choices}, got {component!r}")

        domain = domain or domain_of(self.config.source_base_url)
        errors = get_error_logger().recent_errors(domain, limit=limit or 100, component=parsed_component)
        logger.info(f"Loaded {len(errors)} recent errors for {domain}")
        return {"domain": domain, **summarize_errors(errors), "errors": errors}
