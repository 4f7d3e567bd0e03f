"""
Date utility functions.
"""

import re
from datetime import datetime, timezone
from typing import Optional
from appdiscovery.core.logging import get_logger

logger = get_logger(__name__)

_MONTH_DAY_YEAR = re.compile(r"\b([a-z]{3})[a-z]*\.?\s+(\d{1,2}),?\s+(\d{4})\b", re.IGNORECASE)
_ISO_DATE = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})(?!\d)")


def get_current_timestamp() -> str:
    """
    Get current timestamp in ISO format with UTC timezone.

    Example:
        >>> ts = get_current_timestamp()
        >>> '+00:00' in ts
        True
    """
    return datetime.now(timezone.utc).isoformat()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_listing_date(text: Optional[str]) -> Optional[datetime]:
    """
    Find a "Mon D YYYY" or ISO "YYYY-MM-DD" date inside free text.

    Full month names and a comma after the day are tolerated
    ("Updated: March 5, 2024"). Returns a UTC datetime or None.

    Example:
        >>> parse_listing_date("Updated Jan 5 2024").day
        5
        >>> parse_listing_date("last week") is None
        True
    """
    if not text or not isinstance(text, str):
        return None

    for match in _MONTH_DAY_YEAR.finditer(text):
        month, day, year = match.groups()
        try:
            parsed = datetime.strptime(f"{month.title()} {day} {year}", "%b %d %Y")
            return parsed.replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    match = _ISO_DATE.search(text)
    if match:
        try:
            parsed = datetime.strptime(match.group(0), "%Y-%m-%d")
            return parsed.replace(tzinfo=timezone.utc)
        except ValueError:
            pass

    logger.debug(f"Could not parse date: {text[:80]}")
    return None
