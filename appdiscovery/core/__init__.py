"""
Core utilities for the App Discovery backend.

Shared by every component:
- Configuration management
- Structured logging
- Error logging and tracking
- Client-facing exceptions
- Per-item batch outcomes
"""

from appdiscovery.core.logging import get_logger, setup_logging
from appdiscovery.core.config import get_config, validate_config, Config
from appdiscovery.core.error_logger import get_error_logger, ErrorLogger
from appdiscovery.core.error_models import (
    ErrorComponent,
    ErrorSeverity,
    ErrorType,
    ErrorStage,
    ErrorRecord,
)
from appdiscovery.core.outcomes import OutcomeStatus, count_outcomes
from appdiscovery.core.exceptions import (
    CatalogRequestError,
    InvalidRequestError,
    NotFoundError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "get_config",
    "validate_config",
    "Config",
    "get_error_logger",
    "ErrorLogger",
    "ErrorComponent",
    "ErrorSeverity",
    "ErrorType",
    "ErrorStage",
    "ErrorRecord",
    "CatalogRequestError",
    "InvalidRequestError",
    "NotFoundError",
    "OutcomeStatus",
    "count_outcomes",
]
