"""
Shared utility functions.

- Date parsing and timestamps
- Retry logic with exponential backoff
"""

from appdiscovery.utils.date_utils import get_current_timestamp, parse_listing_date, utcnow
from appdiscovery.utils.retry import retry_with_backoff, RetryConfig

__all__ = [
    # Date utilities
    "get_current_timestamp",
    "parse_listing_date",
    "utcnow",
    # Retry utilities
    "retry_with_backoff",
    "RetryConfig",
]
