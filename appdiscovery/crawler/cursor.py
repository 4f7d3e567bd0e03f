"""
Page cursor for multi-page category crawls.

There is no cursor column anywhere: the import_sessions rows of a category
are the cursor. Every processed page leaves one row, and the next page to
fetch is one past the highest page recorded. Re-deriving the cursor from
the log makes repeated or duplicated invocations harmless, and deleting a
category's rows resets it to page 1.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from appdiscovery.core.error_logger import get_error_logger
from appdiscovery.core.error_models import ErrorComponent, ErrorStage
from appdiscovery.core.logging import get_logger
from appdiscovery.crawler.url_utils import category_name_from_url, domain_of
from appdiscovery.db.models import CrawlSession, PageStatus, SourceType
from appdiscovery.db.repository import CatalogRepository
from appdiscovery.utils.date_utils import get_current_timestamp

logger = get_logger(__name__)


def session_name_for(category_name: str, page_number: int) -> str:
    return f"{category_name} - Page {page_number}"


class PageProgress(BaseModel):
    page_number: int
    session_id: Optional[str] = None
    session_name: str
    status: PageStatus
    created_at: Optional[str] = None
    apps_imported: int = 0
    apps_skipped: int = 0


class CategoryProgress(BaseModel):
    """Crawl and import progress of one category, derived from its session log."""
    category_url: str
    category_name: str
    pages: List[PageProgress] = Field(default_factory=list)
    pages_scraped: int = 0
    pages_imported: int = 0
    pages_pending: int = 0
    pages_failed: int = 0
    last_scraped_page: int = 0
    last_imported_page: int = 0
    scrape_progress_percent: int = 0
    import_progress_percent: int = 0
    next_page_to_scrape: int = 1
    next_page_to_import: Optional[int] = None


class PageCursorTracker:
    """
    Reads and appends the crawl-session log of a category.

    Example:
        >>> tracker = PageCursorTracker(repository)
        >>> page = tracker.next_page(url)          # 1 on a fresh category
        >>> tracker.mark_processed(url, page, "Productivity")
        >>> tracker.next_page(url) == page + 1
        True
    """

    def __init__(self, repository: CatalogRepository):
        self.repository = repository

    def _numbered(self, category_url: str) -> Dict[int, CrawlSession]:
        """Latest session per page number; rows without a page number are ignored."""
        pages: Dict[int, CrawlSession] = {}
        for session in self.repository.list_sessions(category_url):
            number = session.resolved_page_number
            if number is not None:
                pages[number] = session
        return pages

    def processed_pages(self, category_url: str) -> List[int]:
        return sorted(self._numbered(category_url))

    def next_page(self, category_url: str) -> int:
        """Highest recorded page number + 1, or 1 when the category has no sessions."""
        pages = self.processed_pages(category_url)
        next_page = (pages[-1] if pages else 0) + 1
        logger.debug(f"Cursor for {category_url}: next page {next_page}")
        return next_page

    def mark_processed(
        self,
        category_url: str,
        page_number: int,
        category_name: Optional[str] = None,
    ) -> Optional[CrawlSession]:
        """
        Record that a page was fetched.

        Best-effort: a failed write is logged and None is returned, the
        crawl carries on.
        """
        category_name = category_name or category_name_from_url(category_url)
        session = CrawlSession(
            session_name=session_name_for(category_name, page_number),
            category_url=category_url,
            source_type=SourceType.BULK_PAGE,
            page_status=PageStatus.SCRAPED,
            page_number=page_number,
            apps_imported=0,
            apps_skipped=0,
            completed_at=get_current_timestamp(),
        )
        try:
            stored = self.repository.insert_session(session)
            logger.info(f"Marked page {page_number} of {category_name} as processed")
            return stored
        except Exception as e:
            logger.error(f"Failed to mark page {page_number} of {category_url} as processed: {e}")
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.CRAWLER,
                stage=ErrorStage.MARK_PAGE,
                domain=domain_of(category_url),
                url=category_url,
                metadata={"page_number": page_number},
            )
            return None

    def progress(self, category_url: str) -> CategoryProgress:
        numbered = self._numbered(category_url)
        pages = [
            PageProgress(
                page_number=number,
                session_id=str(session.id) if session.id is not None else None,
                session_name=session.session_name,
                status=session.page_status or PageStatus.SCRAPED,
                created_at=session.created_at,
                apps_imported=session.apps_imported,
                apps_skipped=session.apps_skipped,
            )
            for number, session in sorted(numbered.items())
        ]

        if pages:
            category_name = pages[0].session_name.rsplit(" - Page ", 1)[0]
        else:
            category_name = category_name_from_url(category_url)

        imported = [p for p in pages if p.status == PageStatus.IMPORTED]
        pending = [p for p in pages if p.status == PageStatus.SCRAPED]
        failed = [p for p in pages if p.status == PageStatus.FAILED]
        last_scraped = pages[-1].page_number if pages else 0

        return CategoryProgress(
            category_url=category_url,
            category_name=category_name,
            pages=pages,
            pages_scraped=len(pages),
            pages_imported=len(imported),
            pages_pending=len(pending),
            pages_failed=len(failed),
            last_scraped_page=last_scraped,
            last_imported_page=max((p.page_number for p in imported), default=0),
            scrape_progress_percent=round(len(pages) / last_scraped * 100) if last_scraped else 0,
            import_progress_percent=round(len(imported) / len(pages) * 100) if pages else 0,
            next_page_to_scrape=last_scraped + 1,
            next_page_to_import=pending[0].page_number if pending else None,
        )

    def reset(self, category_url: str) -> int:
        """Delete the category's session log; the next crawl starts at page 1."""
        removed = self.repository.delete_sessions(category_url)
        logger.info(f"Reset cursor for {category_url} ({removed} sessions removed)")
        return removed
