"""
Centralized error logging with Supabase integration.

A fail-safe error logger that:
- Logs errors to the Supabase error_logs table
- Falls back to a local JSONL file on database failures
- Never raises into the caller
"""

import json
from collections import Counter
from pathlib import Path
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone

from appdiscovery.core.config import get_config
from appdiscovery.core.logging import get_logger
from appdiscovery.core.error_models import (
    ErrorRecord,
    ErrorComponent,
    ErrorSeverity,
    ErrorType,
)

logger = get_logger(__name__)

_error_logger: Optional["ErrorLogger"] = None


class ErrorLogger:
    """
    Centralized error logger with database and file fallback.

    Usage:
        >>> error_logger = get_error_logger()
        >>> error_logger.log_error(
        ...     component=ErrorComponent.CRAWLER,
        ...     stage=ErrorStage.FETCH_LISTING,
        ...     error_type=ErrorType.TIMEOUT,
        ...     domain="www.macupdate.com",
        ...     message="Listing fetch timed out after 10s",
        ...     url="https://www.macupdate.com/explore/categories/productivity",
        ... )
    """

    def __init__(
        self,
        client: Any = None,
        table: Optional[str] = None,
        fallback_dir: Optional[Path] = None,
        use_database: bool = True,
    ):
        """
        Args:
            client: Supabase client (default: the shared client, if configured)
            table: Error log table name (default: ERROR_LOG_TABLE)
            fallback_dir: Directory for JSONL fallback files
            use_database: Set False to always write to the fallback file
        """
        config = get_config()
        self._table = table or config.error_log_table
        self._fallback_dir = Path(fallback_dir or config.error_log_fallback_dir)
        self._client = client
        self._db_available = False

        if use_database:
            self._init_database()

    def _init_database(self) -> None:
        if self._client is None:
            from appdiscovery.db.supabase_client import get_supabase

            try:
                self._client = get_supabase()
            except Exception as e:
                logger.warning(f"Error logging: Database init failed ({e}), using file fallback")
                return

        if self._client is None:
            logger.warning("Error logging: Supabase not configured, using file fallback")
            return

        self._db_available = True

    def log_error(
        self,
        component: ErrorComponent,
        stage: str,
        error_type: ErrorType,
        domain: str,
        message: str,
        url: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Log an error record.

        This method never raises exceptions - it falls back to file logging
        if the database write fails.

        Returns:
            True if logged successfully, False otherwise
        """
        try:
            record = ErrorRecord(
                component=component,
                stage=stage,
                error_type=error_type,
                severity=severity,
                domain=domain,
                url=url,
                message=message,
                metadata=metadata or {},
            )
            return self._write(record)
        except Exception as e:
            logger.error(f"Error logger failed: {e} - Original error: {message}")
            return False

    def log_exception(
        self,
        exc: Exception,
        component: ErrorComponent,
        stage: str,
        domain: str,
        url: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        error_type: Optional[ErrorType] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Log an exception with automatic classification.

        Args:
            exc: The exception to log
            component: System component
            stage: Processing stage
            domain: Source domain
            url: Optional specific URL
            severity: Error severity (default: ERROR)
            error_type: Optional explicit error type (auto-detected if None)
            metadata: Additional context

        Returns:
            True if logged successfully, False otherwise
        """
        try:
            record = ErrorRecord.from_exception(
                exc=exc,
                component=component,
                stage=stage,
                domain=domain,
                url=url,
                severity=severity,
                error_type=error_type,
                metadata=metadata,
            )
            return self._write(record)
        except Exception as e:
            logger.error(f"Error logger failed: {e} - Original exception: {type(exc).__name__}")
            return False

    def _write(self, record: ErrorRecord) -> bool:
        if self._db_available and self._client is not None:
            return self._write_to_database(record)
        return self._write_to_file(record)

    def _write_to_database(self, record: ErrorRecord) -> bool:
        try:
            self._client.table(self._table).insert(record.model_dump()).execute()
            return True
        except Exception as e:
            logger.warning(f"Database error write failed: {e}, falling back to file")
            return self._write_to_file(record)

    def _write_to_file(self, record: ErrorRecord) -> bool:
        """Append the record to errors_YYYYMMDD.jsonl (UTC date)."""
        try:
            self._fallback_dir.mkdir(exist_ok=True, parents=True)
            date_str = datetime.now(timezone.utc).strftime("%Y%m%d")
            file_path = self._fallback_dir / f"errors_{date_str}.jsonl"

            with open(file_path, "a", encoding="utf-8") as f:
                json.dump(record.model_dump(), f)
                f.write("\n")

            return True
        except Exception as e:
            logger.error(f"File error write failed: {e}")
            return False

    def recent_errors(
        self,
        domain: str,
        limit: int = 100,
        component: Optional[ErrorComponent] = None,
    ) -> List[Dict[str, Any]]:
        """
        Retrieve recent errors for a domain, newest first.

        Returns an empty list when the database is unavailable.
        """
        if not self._db_available or self._client is None:
            logger.warning("Database not available for error queries")
            return []

        try:
            query = self._client.table(self._table).select("*").eq("domain", domain)
            if component:
                query = query.eq("component", component.value)
            result = query.order("created_at", desc=True).limit(limit).execute()
            return result.data
        except Exception as e:
            logger.error(f"Error query failed: {e}")
            return []


def summarize_errors(errors: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Count error records by severity, component, error type and stage.

    Example:
        >>> summarize_errors([{"severity": "error", "component": "crawler",
        ...                    "error_type": "timeout", "stage": "fetch_listing"}])["by_stage"]
        {'crawler:fetch_listing': 1}
    """
    return {
        "total": len(errors),
        "by_severity": dict(Counter(e.get("severity", "unknown") for e in errors)),
        "by_component": dict(Counter(e.get("component", "unknown") for e in errors).most_common()),
        "by_error_type": dict(Counter(e.get("error_type", "unknown") for e in errors).most_common(10)),
        "by_stage": dict(
            Counter(f"{e.get('component', 'unknown')}:{e.get('stage', 'unknown')}" for e in errors).most_common(20)
        ),
    }


def get_error_logger() -> ErrorLogger:
    """
    Get the global ErrorLogger instance.

    Returns:
        Global ErrorLogger singleton
    """
    global _error_logger
    if _error_logger is None:
        _error_logger = ErrorLogger()
    return _error_logger


def set_error_logger(error_logger: Optional[ErrorLogger]) -> None:
    """Replace the global ErrorLogger (None resets it to lazy creation)."""
    global _error_logger
    _error_logger = error_logger
