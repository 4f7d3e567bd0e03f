"""
Partition candidate item URLs into catalog hits and new items.
"""

from typing import List, Sequence

from pydantic import BaseModel, Field

from appdiscovery.core.logging import get_logger
from appdiscovery.crawler.url_utils import app_name_from_url
from appdiscovery.db.repository import CatalogRepository

logger = get_logger(__name__)

CUSTOM_SOURCE = "CUSTOM"


class DedupPartition(BaseModel):
    new: List[str] = Field(default_factory=list)
    existing: List[str] = Field(default_factory=list)


class DedupChecker:
    """
    Looks each URL up in the catalog: first by exact source URL, then by the
    display name derived from the URL (case-insensitive, custom-imported
    entries only).

    A failed lookup counts as "not existing". Re-discovering an item is
    cheaper than silently dropping part of a crawl batch.
    """

    def __init__(self, repository: CatalogRepository):
        self.repository = repository

    def exists(self, url: str) -> bool:
        try:
            if self.repository.find_app_by_source_url(url):
                return True
            name = app_name_from_url(url)
            if name and self.repository.find_app_by_name(name, source=CUSTOM_SOURCE):
                return True
        except Exception as e:
            logger.debug(f"Dedup lookup failed for {url}, treating as new: {e}")
        return False

    def partition(self, urls: Sequence[str]) -> DedupPartition:
        """Split urls, preserving input order within each side."""
        result = DedupPartition()
        for url in urls:
            if self.exists(url):
                result.existing.append(url)
            else:
                result.new.append(url)
        logger.info(f"Dedup: {len(result.new)} new, {len(result.existing)} existing")
        return result
