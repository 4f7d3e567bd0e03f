"""
Pydantic models for structured error logging.

Error records are validated before they are written so that a malformed
log call can never cause a second failure inside a crawl or a
reconciliation batch.
"""

import json
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator, ConfigDict


class ErrorComponent(str, Enum):
    """System components that can generate errors."""
    CRAWLER = "crawler"
    MATCHING = "matching"
    DATABASE = "db"
    UNKNOWN = "unknown"


class ErrorSeverity(str, Enum):
    """Error severity levels matching logging standards."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorType(str, Enum):
    """Categorized error types for classification."""
    # Validation errors
    VALIDATION_ERROR = "validation_error"

    # Network/API errors
    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    HTTP_ERROR = "http_error"
    RATE_LIMIT = "rate_limit"
    API_ERROR = "api_error"

    # Parsing errors
    PARSE_ERROR = "parse_error"
    JSON_ERROR = "json_error"

    # Database errors
    DB_QUERY_ERROR = "db_query_error"

    UNKNOWN = "unknown"


_EXPECTED_ERRORS = frozenset({
    "FetchError",
    "_TransientFetchError",
    "SearchError",
    "ValidationError",
    "ValueError",
    "KeyError",
})


class ErrorStage:
    """Standardized stage names for error logging."""
    # Crawler stages
    FETCH_LISTING = "fetch_listing"
    FETCH_DETAIL = "fetch_detail"
    EXTRACT_DETAIL = "extract_detail"
    READ_CURSOR = "read_cursor"
    MARK_PAGE = "mark_page"
    IMPORT_ITEM = "import_item"
    UPDATE_SESSION = "update_session"

    # Matching stages
    SEARCH_CANONICAL = "search_canonical"
    RECORD_ATTEMPT = "record_attempt"
    APPLY_MATCH = "apply_match"


class ErrorRecord(BaseModel):
    """
    Structured error record for database insertion.

    Written to the error_logs table, or to the JSONL fallback file when
    the database is unavailable.
    """
    component: ErrorComponent = Field(..., description="System component")
    stage: str = Field(..., min_length=1, max_length=100, description="Processing stage")
    error_type: ErrorType = Field(..., description="Error category")
    severity: ErrorSeverity = Field(default=ErrorSeverity.ERROR, description="Severity level")
    domain: str = Field(..., min_length=1, max_length=255, description="Source or API domain")
    message: str = Field(..., min_length=1, description="Human-readable error message")

    url: Optional[str] = Field(None, max_length=2048, description="Specific URL if applicable")
    exception_type: Optional[str] = Field(None, max_length=255, description="Exception class name")
    stack_trace: Optional[str] = Field(None, description="Stack trace for unexpected errors")

    metadata: Dict[str, Any] = Field(default_factory=dict, description="Additional context")

    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Error timestamp"
    )

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        use_enum_values=True,
    )

    @field_validator("stage")
    @classmethod
    def validate_stage(cls, v: str) -> str:
        """Normalize stage names to snake_case."""
        if not v or not v.strip():
            return "unknown"
        return v.strip().lower().replace(" ", "_")

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        if not v or not v.strip():
            return "No error message provided"
        return v.strip()[:5000]

    @field_validator("metadata")
    @classmethod
    def sanitize_metadata(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """Stringify values that cannot be serialized to JSON."""
        sanitized = {}
        for key, value in v.items():
            try:
                json.dumps(value)
                sanitized[key] = value
            except (TypeError, ValueError):
                sanitized[key] = str(value)
        return sanitized

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        component: ErrorComponent,
        stage: str,
        domain: str,
        url: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        error_type: Optional[ErrorType] = None,
        include_stack_trace: Optional[bool] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ErrorRecord":
        """
        Create ErrorRecord from an exception with automatic classification.

        Args:
            exc: The exception that occurred
            component: System component where error occurred
            stage: Processing stage
            domain: Source domain
            url: Optional specific URL
            severity: Error severity (default: ERROR)
            error_type: Optional explicit error type (auto-detected if None)
            include_stack_trace: Whether to include full stack trace (auto if None)
            metadata: Additional context

        Returns:
            ErrorRecord instance ready for logging

        Example:
            >>> try:
            ...     fetcher.fetch(url)
            ... except FetchError as e:
            ...     record = ErrorRecord.from_exception(
            ...         e,
            ...         component=ErrorComponent.CRAWLER,
            ...         stage=ErrorStage.FETCH_LISTING,
            ...         domain="www.macupdate.com",
            ...         url=url,
            ...     )
        """
        if error_type is None:
            error_type = cls._classify_exception(exc)

        message = str(exc) or f"{type(exc).__name__} occurred"
        exception_type = f"{type(exc).__module__}.{type(exc).__name__}"

        if include_stack_trace is None:
            include_stack_trace = cls._should_include_stack(exc, severity)

        stack_trace = None
        if include_stack_trace:
            stack_trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            # Truncate to 10KB
            if len(stack_trace) > 10000:
                stack_trace = stack_trace[:10000] + "\n... (truncated)"

        return cls(
            component=component,
            stage=stage,
            error_type=error_type,
            severity=severity,
            domain=domain,
            url=url,
            message=message,
            exception_type=exception_type,
            stack_trace=stack_trace,
            metadata=metadata or {},
        )

    @staticmethod
    def _classify_exception(exc: Exception) -> ErrorType:
        """
        Classify an exception into an ErrorType.

        Fetch failures carry a status_code; everything else is matched on
        the exception class name, then on the message.
        """
        status = getattr(exc, "status_code", None)
        if status == 429:
            return ErrorType.RATE_LIMIT
        if status is not None:
            return ErrorType.HTTP_ERROR

        exc_name = type(exc).__name__.lower()
        exc_msg = str(exc).lower()

        if "timeout" in exc_name or "timed out" in exc_msg:
            return ErrorType.TIMEOUT
        if "validation" in exc_name:
            return ErrorType.VALIDATION_ERROR
        if "json" in exc_name:
            return ErrorType.JSON_ERROR
        if "search" in exc_name:
            return ErrorType.API_ERROR
        if "fetch" in exc_name or "connection" in exc_name:
            return ErrorType.CONNECTION_ERROR
        if "postgrest" in exc_name or "apierror" in exc_name or "supabase" in exc_name:
            return ErrorType.DB_QUERY_ERROR
        if "parse" in exc_name:
            return ErrorType.PARSE_ERROR

        return ErrorType.UNKNOWN

    @staticmethod
    def _should_include_stack(exc: Exception, severity: ErrorSeverity) -> bool:
        """Source-site and search failures are expected and logged without a stack."""
        if severity == ErrorSeverity.CRITICAL:
            return True
        if severity != ErrorSeverity.ERROR:
            return False
        return type(exc).__name__ not in _EXPECTED_ERRORS
