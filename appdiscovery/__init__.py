"""
App Discovery backend.

Harvests software-catalog records from MacUpdate category listings,
deduplicates them against the catalog, and reconciles catalog entries
against the iTunes Search API to attach Mac App Store identifiers.

Subpackages:
- core: configuration, logging, structured error logging
- db: pydantic models, Supabase client, catalog repository
- crawler: fetching, extraction, page cursor, crawl orchestration
- matching: iTunes search client, confidence scoring, reconciliation
- utils: retry and date helpers
"""

__version__ = "0.1.0"
