"""
Field parsers for text scraped from source-site pages.

Each parser takes raw text and returns a normalized value, or None when
the text does not contain one, so extraction chains can fall through to
their next strategy.
"""

import json
import re
from datetime import datetime
from typing import Optional

from appdiscovery.utils.date_utils import parse_listing_date, utcnow

_WS = re.compile(r"\s+")
_DOLLAR_AMOUNT = re.compile(r"\$\s*(\d[\d,]*(?:\.\d+)?)")
_DECIMAL = re.compile(r"\d+(?:\.\d+)?")
_VERSION_PREFIX = re.compile(r"^\s*version\s*:?\s*", re.IGNORECASE)
_DOTTED_NUMERIC = re.compile(r"\d+(?:\.\d+)+")
_FILE_SIZE = re.compile(r"([\d.]+\s*[KMGT]B)\b", re.IGNORECASE)

_INTEL_MARKER = re.compile(r"\bintel\b|\bx86[_-]?64\b|\bx64\b", re.IGNORECASE)
_ARM_MARKER = re.compile(r"apple\s+silicon|\barm64\b|\baarch64\b|\bm[1-4]\b", re.IGNORECASE)
_UNIVERSAL_MARKER = re.compile(r"\buniversal\b", re.IGNORECASE)

_TITLE_SUFFIX = re.compile(r"\s*[-|–]\s*MacUpdate.*$", re.IGNORECASE)


def clean_text(text: Optional[str]) -> str:
    """Collapse whitespace and strip."""
    if not text:
        return ""
    return _WS.sub(" ", text).strip()


def unescape_json_string(raw: str) -> str:
    """
    Decode a JSON string body captured by a regex ("\\u00e9", "\\/", "\\"").

    Example:
        >>> unescape_json_string('\\\\/app\\\\/mac')
        '/app/mac'
    """
    try:
        return json.loads(f'"{raw}"')
    except ValueError:
        return raw.replace("\\/", "/").replace('\\"', '"')


def parse_price(text: Optional[str]) -> Optional[float]:
    """
    Parse a displayed price.

    A "$"-prefixed decimal wins; otherwise any mention of "free" is 0.

    Example:
        >>> parse_price("$19.99")
        19.99
        >>> parse_price("Free")
        0.0
        >>> parse_price("") is None
        True
    """
    if not text:
        return None
    match = _DOLLAR_AMOUNT.search(text)
    if match:
        try:
            return float(match.group(1).replace(",", ""))
        except ValueError:
            return None
    if "free" in text.lower():
        return 0.0
    return None


def parse_cents(value) -> Optional[float]:
    """Embedded JSON carries prices as integer cents."""
    try:
        cents = int(value)
    except (TypeError, ValueError):
        return None
    if cents < 0:
        return None
    return cents / 100


def parse_rating(text) -> Optional[float]:
    """
    First decimal in the text, kept only when it lies in [0, 5].

    Example:
        >>> parse_rating("4.5 out of 5")
        4.5
        >>> parse_rating("7.2") is None
        True
    """
    if text is None:
        return None
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        value = float(text)
    else:
        match = _DECIMAL.search(str(text))
        if not match:
            return None
        value = float(match.group(0))
    if 0.0 <= value <= 5.0:
        return value
    return None


def parse_version(text: Optional[str]) -> Optional[str]:
    """
    Example:
        >>> parse_version("Version 20.1.7 (build 55)")
        '20.1.7'
        >>> parse_version("Version: beta")
        'beta'
    """
    cleaned = clean_text(_VERSION_PREFIX.sub("", text or ""))
    if not cleaned:
        return None
    match = _DOTTED_NUMERIC.search(cleaned)
    if match:
        return match.group(0)
    return cleaned


def parse_updated_date(text: Optional[str]) -> datetime:
    """Date found in the text, or the current UTC time."""
    return parse_listing_date(text) or utcnow()


def parse_file_size(text: Optional[str]) -> Optional[str]:
    """
    Example:
        >>> parse_file_size("Size: 52.3 MB")
        '52.3 MB'
    """
    if not text:
        return None
    match = _FILE_SIZE.search(text)
    if not match:
        return None
    return clean_text(match.group(1)).upper()


def normalize_architecture(text: Optional[str]) -> Optional[str]:
    """
    Map free text onto "Intel 64", "Apple Silicon" or "Universal".

    Both markers, or an explicit "universal" token, give "Universal".

    Example:
        >>> normalize_architecture("Intel 64, Apple Silicon")
        'Universal'
        >>> normalize_architecture("arm64")
        'Apple Silicon'
    """
    if not text:
        return None
    if _UNIVERSAL_MARKER.search(text):
        return "Universal"
    intel = bool(_INTEL_MARKER.search(text))
    arm = bool(_ARM_MARKER.search(text))
    if intel and arm:
        return "Universal"
    if arm:
        return "Apple Silicon"
    if intel:
        return "Intel 64"
    return None


def clean_app_name(text: Optional[str]) -> Optional[str]:
    """
    Strip the site suffix and a "Download " prefix from a page title.

    Example:
        >>> clean_app_name("Download VLC Media Player - MacUpdate")
        'VLC Media Player'
    """
    name = clean_text(_TITLE_SUFFIX.sub("", text or ""))
    if name.lower().startswith("download "):
        name = name[len("download "):].strip()
    return name or None
