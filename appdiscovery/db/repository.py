"""
Catalog repository over the Supabase query builder.

Every table access of the crawler and the reconciler goes through
CatalogRepository, so the store stays an opaque collaborator that can be
replaced by anything offering the same small query-builder surface.
Query errors propagate; callers decide whether a failure is fatal.
"""

from typing import Any, Dict, List, Optional, Sequence, Union

from appdiscovery.core.config import Config, get_config
from appdiscovery.core.logging import get_logger
from appdiscovery.db.models import (
    CatalogEntry,
    CrawlSession,
    MatchAttempt,
    MatchStatus,
    SourceType,
)
from appdiscovery.db.supabase_client import get_supabase

logger = get_logger(__name__)

RowId = Union[int, str]


class RepositoryUnavailableError(RuntimeError):
    """Raised when no Supabase client is configured."""


class CatalogRepository:
    """Table access for apps, import_sessions, itunes_match_attempts and friends."""

    def __init__(self, client: Any = None, config: Optional[Config] = None):
        """
        Args:
            client: Supabase client (default: the shared client)
            config: Table names come from here (default: global config)
        """
        self.config = config or get_config()
        if client is None:
            client = get_supabase()
        if client is None:
            raise RepositoryUnavailableError(
                "Supabase is not configured; set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY"
            )
        self.client = client

    def _table(self, name: str):
        return self.client.table(name)

    # ------------------------------------------------------------------
    # apps
    # ------------------------------------------------------------------

    def find_app_by_source_url(self, url: str) -> Optional[Dict[str, Any]]:
        """Exact match on the canonical source URL column."""
        rows = (
            self._table(self.config.apps_table)
            .select("id, name")
            .eq("macupdate_url", url)
            .limit(1)
            .execute()
            .data
        )
        return rows[0] if rows else None

    def find_app_by_website_url(self, url: str) -> Optional[Dict[str, Any]]:
        rows = (
            self._table(self.config.apps_table)
            .select("id, name")
            .eq("website_url", url)
            .limit(1)
            .execute()
            .data
        )
        return rows[0] if rows else None

    def find_app_by_name(self, name: str, source: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Case-insensitive name lookup, optionally restricted to one source."""
        query = self._table(self.config.apps_table).select("id, name").ilike("name", name)
        if source:
            query = query.eq("source", source)
        rows = query.limit(1).execute().data
        return rows[0] if rows else None

    def insert_app(self, row: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._table(self.config.apps_table).insert(row).execute().data
        if not rows:
            raise RuntimeError(f"insert into {self.config.apps_table} returned no row")
        return rows[0]

    def get_app(self, app_id: RowId) -> Optional[CatalogEntry]:
        rows = (
            self._table(self.config.apps_table)
            .select("*")
            .eq("id", app_id)
            .limit(1)
            .execute()
            .data
        )
        return CatalogEntry(**rows[0]) if rows else None

    def get_apps(self, app_ids: Sequence[RowId]) -> List[CatalogEntry]:
        """Fetch entries by id, in the order of app_ids (unknown ids are dropped)."""
        if not app_ids:
            return []
        rows = (
            self._table(self.config.apps_table)
            .select("id, name, developer, mas_id, mas_url, is_on_mas, website_url, macupdate_url, source")
            .in_("id", list(app_ids))
            .execute()
            .data
        )
        by_id = {str(row["id"]): CatalogEntry(**row) for row in rows}
        return [by_id[str(i)] for i in app_ids if str(i) in by_id]

    def update_app_canonical(self, app_id: RowId, mas_id: str, mas_url: str) -> None:
        """Write back canonical identifiers; no other column is touched."""
        (
            self._table(self.config.apps_table)
            .update({"mas_id": mas_id, "mas_url": mas_url, "is_on_mas": True})
            .eq("id", app_id)
            .execute()
        )

    def find_category_id(self, slug: str) -> Optional[RowId]:
        rows = (
            self._table(self.config.categories_table)
            .select("id")
            .eq("slug", slug)
            .limit(1)
            .execute()
            .data
        )
        return rows[0]["id"] if rows else None

    def insert_screenshots(self, rows: List[Dict[str, Any]]) -> None:
        if rows:
            self._table(self.config.screenshots_table).insert(rows).execute()

    # ------------------------------------------------------------------
    # import_sessions
    # ------------------------------------------------------------------

    def list_sessions(self, category_url: str) -> List[CrawlSession]:
        """Page sessions of one category, oldest first."""
        rows = (
            self._table(self.config.sessions_table)
            .select("*")
            .eq("category_url", category_url)
            .eq("source_type", SourceType.BULK_PAGE.value)
            .order("created_at")
            .execute()
            .data
        )
        return [CrawlSession(**row) for row in rows]

    def get_session(self, session_id: RowId) -> Optional[CrawlSession]:
        rows = (
            self._table(self.config.sessions_table)
            .select("*")
            .eq("id", session_id)
            .limit(1)
            .execute()
            .data
        )
        return CrawlSession(**rows[0]) if rows else None

    def insert_session(self, session: CrawlSession) -> CrawlSession:
        rows = self._table(self.config.sessions_table).insert(session.to_row()).execute().data
        return CrawlSession(**rows[0]) if rows else session

    def update_session(self, session_id: RowId, fields: Dict[str, Any]) -> None:
        self._table(self.config.sessions_table).update(fields).eq("id", session_id).execute()

    def delete_sessions(self, category_url: str) -> int:
        """Delete every session row of a category; returns the number removed."""
        rows = (
            self._table(self.config.sessions_table)
            .delete()
            .eq("category_url", category_url)
            .execute()
            .data
        )
        return len(rows or [])

    # ------------------------------------------------------------------
    # itunes_match_attempts
    # ------------------------------------------------------------------

    def insert_match_attempt(self, attempt: MatchAttempt) -> Optional[RowId]:
        rows = self._table(self.config.match_attempts_table).insert(attempt.to_row()).execute().data
        return rows[0].get("id") if rows else None

    def set_match_attempt_status(self, attempt_id: RowId, status: MatchStatus) -> None:
        (
            self._table(self.config.match_attempts_table)
            .update({"status": status.value})
            .eq("id", attempt_id)
            .execute()
        )

    def list_match_attempts(self, app_id: RowId) -> List[MatchAttempt]:
        """Attempt history for one entry, newest first."""
        rows = (
            self._table(self.config.match_attempts_table)
            .select("*")
            .eq("app_id", app_id)
            .order("created_at", desc=True)
            .execute()
            .data
        )
        return [MatchAttempt(**row) for row in rows]
