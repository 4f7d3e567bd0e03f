"""
Database module for the App Discovery backend.

- Pydantic models for catalog records and crawl bookkeeping
- Supabase client singleton
- CatalogRepository, the single point of table access
"""

from appdiscovery.db.models import (
    ScrapedItem,
    CrawlSession,
    MatchAttempt,
    CatalogEntry,
    CanonicalCandidate,
    PageStatus,
    SourceType,
    MatchStatus,
)

from appdiscovery.db.supabase_client import (
    get_supabase,
    is_supabase_enabled,
)

from appdiscovery.db.repository import CatalogRepository, RepositoryUnavailableError

__all__ = [
    # Models
    "ScrapedItem",
    "CrawlSession",
    "MatchAttempt",
    "CatalogEntry",
    "CanonicalCandidate",
    "PageStatus",
    "SourceType",
    "MatchStatus",
    # Client functions
    "get_supabase",
    "is_supabase_enabled",
    # Repository
    "CatalogRepository",
    "RepositoryUnavailableError",
]
