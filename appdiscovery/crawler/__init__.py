"""
Source-site crawling.

Provides:
- PageFetcher / RateLimiter: polite HTTP fetching
- is_item_url and friends: URL classification
- extract_listing_urls / extract_detail: HTML extraction
- DedupChecker, PageCursorTracker: catalog dedup and page cursor
- CategoryCrawler: crawl and page-import orchestration
"""

from appdiscovery.crawler.categories import CategoryMapper, StaticCategoryMapper
from appdiscovery.crawler.cursor import CategoryProgress, PageCursorTracker
from appdiscovery.crawler.dedup import DedupChecker, DedupPartition
from appdiscovery.crawler.extractor import extract_detail, extract_listing, extract_listing_urls
from appdiscovery.crawler.http import FetchError, PageFetcher
from appdiscovery.crawler.importer import CatalogImporter, ImportOutcome
from appdiscovery.crawler.orchestrator import CategoryCrawler, CrawlResult, PageImportResult
from appdiscovery.crawler.rate_limiter import RateLimiter
from appdiscovery.crawler.url_utils import is_item_url

__all__ = [
    "CatalogImporter",
    "CategoryCrawler",
    "CategoryMapper",
    "CategoryProgress",
    "CrawlResult",
    "DedupChecker",
    "DedupPartition",
    "FetchError",
    "ImportOutcome",
    "PageCursorTracker",
    "PageFetcher",
    "PageImportResult",
    "RateLimiter",
    "StaticCategoryMapper",
    "extract_detail",
    "extract_listing",
    "extract_listing_urls",
    "is_item_url",
]
