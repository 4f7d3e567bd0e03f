"""
URL helpers for the source site.

Classifies candidate links as catalog-item pages or navigation chrome,
derives display names from item URLs, and builds paginated listing URLs.
All functions are pure.
"""

import re
from typing import Optional
from urllib.parse import urlparse, urlunparse

SOURCE_BASE_URL = "https://www.macupdate.com"
SOURCE_HOST_SUFFIX = ".macupdate.com"

# Path fragments that mark navigation, editorial or account pages
EXCLUDED_FRAGMENTS = (
    "/explore/",
    "/categories/",
    "/search",
    "/about",
    "/contact",
    "/best-picks",
    "/reviews",
    "/articles",
    "/help",
    "/terms",
    "/privacy",
    "/cookie",
    "/rss",
    "/developer/",
    "/comparisons",
    "/how-to",
    "/content/",
    "/discontinued-apps",
    "/article/",
    "/find/",
)

# https://<slug>.macupdate.com[/...], the slug being anything but "www"
_SUBDOMAIN_ITEM = re.compile(r"^https://(?!www\.)[a-z0-9-]+\.macupdate\.com(/.*)?$", re.IGNORECASE)
# https://www.macupdate.com/app/<slug>[/...]
_PATH_ITEM = re.compile(r"^https://www\.macupdate\.com/app/[^/?#]+(/.*)?$", re.IGNORECASE)


def is_item_url(url: Optional[str]) -> bool:
    """
    True when url points at a catalog-item page.

    Example:
        >>> is_item_url("https://vlc.macupdate.com/")
        True
        >>> is_item_url("https://www.macupdate.com/app/mac/5758/vlc-media-player")
        True
        >>> is_item_url("https://www.macupdate.com/explore/categories/productivity")
        False
    """
    if not url or not isinstance(url, str):
        return False
    url = url.strip()
    if SOURCE_HOST_SUFFIX not in url:
        return False
    # Fragments are checked after the host so "rss-reader.macupdate.com" survives
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    tail = url[len(f"{parsed.scheme}://{parsed.netloc}"):].lower()
    if any(fragment in tail for fragment in EXCLUDED_FRAGMENTS):
        return False
    return bool(_SUBDOMAIN_ITEM.match(url) or _PATH_ITEM.match(url))


def absolutize(href: str, base_url: str = SOURCE_BASE_URL) -> str:
    """
    Rebase protocol-relative and root-relative links onto the source site.

    Example:
        >>> absolutize("//cdn.macupdate.com/a.png")
        'https://cdn.macupdate.com/a.png'
        >>> absolutize("/app/mac/1/foo")
        'https://www.macupdate.com/app/mac/1/foo'
    """
    href = (href or "").strip()
    if href.startswith("//"):
        return f"https:{href}"
    if href.startswith("/"):
        return f"{base_url.rstrip('/')}{href}"
    return href


def normalize_item_url(url: str) -> str:
    """Drop fragment and query, force https, lowercase the host."""
    parsed = urlparse(url.strip())
    return urlunparse(("https", parsed.netloc.lower(), parsed.path or "/", "", "", ""))


def kebab_to_title(slug: str) -> str:
    """
    Example:
        >>> kebab_to_title("vlc-media-player")
        'Vlc Media Player'
    """
    words = [w for w in re.split(r"[-_]+", slug) if w]
    return " ".join(w[:1].upper() + w[1:].lower() for w in words)


def app_name_from_url(url: str) -> Optional[str]:
    """
    Derive a display name from an item URL.

    The subdomain is used for <slug>.macupdate.com URLs and the last path
    segment for www.macupdate.com/app/... URLs. Returns None when no
    usable slug exists.

    Example:
        >>> app_name_from_url("https://google-chrome.macupdate.com/")
        'Google Chrome'
        >>> app_name_from_url("https://www.macupdate.com/") is None
        True
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return None

    host = (parsed.hostname or "").lower()
    if not host.endswith(SOURCE_HOST_SUFFIX):
        return None

    subdomain = host[: -len(SOURCE_HOST_SUFFIX)]
    if subdomain and subdomain != "www":
        return kebab_to_title(subdomain) or None

    segments = [s for s in parsed.path.split("/") if s]
    if len(segments) >= 2 and segments[0] == "app":
        slug = segments[-1]
        if slug.isdigit():
            return None
        return kebab_to_title(slug) or None
    return None


def category_name_from_url(category_url: str) -> str:
    """
    Human-readable category name from the last path segment of a listing URL.

    Example:
        >>> category_name_from_url("https://www.macupdate.com/explore/categories/music-audio")
        'Music Audio'
    """
    try:
        segments = [s for s in urlparse(category_url).path.split("/") if s]
    except ValueError:
        return "Unknown Category"
    if not segments:
        return "Unknown Category"
    return kebab_to_title(segments[-1]) or "Unknown Category"


def build_page_url(category_url: str, page_number: int) -> str:
    """
    URL of one listing page; page 1 is the bare category URL.

    Example:
        >>> build_page_url("https://www.macupdate.com/explore/categories/games", 3)
        'https://www.macupdate.com/explore/categories/games?page=3'
    """
    if page_number <= 1:
        return category_url
    separator = "&" if "?" in category_url else "?"
    return f"{category_url}{separator}page={page_number}"


def domain_of(url: str) -> str:
    return urlparse(url).netloc.lower() or "unknown"
