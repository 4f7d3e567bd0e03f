"""
Structured record extraction from source-site HTML.

The site's markup changes often and part of its data lives in JSON blobs
inside script tags, so every field is read through an ordered chain of
strategies. A strategy is a plain function Document -> Optional[value];
the first one returning a non-empty value wins. Tiers, in order:

1. embedded JSON (JSON-LD block, then regex over script text)
2. CSS selectors known to target the field
3. label heuristics ("the element after the one reading 'Version'")
4. regex over the whole document as a last resort

Partial extraction is the normal case. A detail record is dropped only
when no strategy yields a name.
"""

import json
import math
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from bs4 import BeautifulSoup
from bs4.element import Tag

from appdiscovery.core.logging import get_logger
from appdiscovery.crawler.categories import infer_category_label
from appdiscovery.crawler.parsers import (
    clean_app_name,
    clean_text,
    normalize_architecture,
    parse_cents,
    parse_file_size,
    parse_price,
    parse_rating,
    parse_updated_date,
    parse_version,
    unescape_json_string,
)
from appdiscovery.crawler.url_utils import (
    SOURCE_BASE_URL,
    absolutize,
    app_name_from_url,
    is_item_url,
    normalize_item_url,
)
from appdiscovery.db.models import ScrapedItem
from appdiscovery.utils.date_utils import parse_listing_date

logger = get_logger(__name__)

T = TypeVar("T")
Strategy = Callable[["Document"], Optional[T]]

# Listing pages embed one JSON object per app with a relative "custom_url"
CUSTOM_URL_PATTERN = re.compile(r'"custom_url"\s*:\s*"((?:[^"\\]|\\.)+)"')
LISTING_OBJECT_PATTERN = re.compile(r'\{[^{}]*"custom_url"[^{}]*\}')
_APP_HREF_PATTERN = re.compile(r'href="(/app/[^"]+)"')
_ABSOLUTE_ITEM_PATTERN = re.compile(r'https?:(?:\\?/){2}[a-z0-9-]+\.macupdate\.com(?:\\?/[^"\'\s<>\\]*)*', re.IGNORECASE)
_STATIC_ASSET = re.compile(r"\.(?:png|jpe?g|gif|svg|webp|ico|js|css|json)(?:\?.*)?$", re.IGNORECASE)

DEVELOPER_JSON = re.compile(r'"developer"\s*:\s*\{\s*"name"\s*:\s*"((?:[^"\\]|\\.)+)"')
PRICE_JSON = re.compile(r'"price"\s*:\s*\{\s*"value"\s*:\s*(\d+)')
RATING_JSON = re.compile(r'"rating"\s*:\s*([\d.]+)')
VERSION_JSON = re.compile(r'"version"\s*:\s*"((?:[^"\\]|\\.)+)"')
CATEGORY_JSON = re.compile(r'"category"\s*:\s*(?:\{\s*"name"\s*:\s*)?"((?:[^"\\]|\\.)+)"')
FILESIZE_JSON = re.compile(r'"filesize"\s*:\s*"((?:[^"\\]|\\.)+)"')
UPDATED_JSON = re.compile(r'"(?:updated_at|last_updated|date_modified)"\s*:\s*"((?:[^"\\]|\\.)+)"')

WEBSITE_ANCHOR = re.compile(r'Website[^>]*href="([^"]+)"', re.IGNORECASE)
WEBSITE_ANCHOR_REVERSED = re.compile(r'href="(https?://[^"]+)"[^>]*>\s*(?:Developer\s+)?Website\s*<', re.IGNORECASE)
SCREENSHOT_SRC = re.compile(r'src="([^"]*(?:screenshot|screen|shot)[^"]*)"', re.IGNORECASE)
OS_REQUIREMENT = re.compile(r"(?:macOS|OS X|Mac OS X)\s+\d+(?:\.\d+)*(?:\s+or\s+later|\s*\+)?", re.IGNORECASE)
ARCH_TOKENS = re.compile(r"\b(?:Intel\s+64|Apple\s+Silicon|Universal|arm64)\b", re.IGNORECASE)

_LABEL_TAGS = ("dt", "th", "td", "span", "div", "p", "li", "strong", "b", "label", "h3", "h4", "h5")


class Document:
    """
    A fetched page prepared for extraction.

    Holds the raw HTML (for regex strategies), the parsed soup (for selector
    strategies), the concatenated script text and any JSON-LD software
    application blocks.
    """

    def __init__(self, html: str, source_url: str = ""):
        self.html = html or ""
        self.source_url = source_url
        self.soup = BeautifulSoup(self.html, "html.parser")
        self.scripts = "\n".join(s.string or "" for s in self.soup.find_all("script"))
        self.json_ld = self._load_json_ld()
        self._text: Optional[str] = None

    @property
    def text(self) -> str:
        if self._text is None:
            self._text = clean_text(self.soup.get_text(" "))
        return self._text

    def _load_json_ld(self) -> List[Dict[str, Any]]:
        blocks: List[Dict[str, Any]] = []
        for tag in self.soup.find_all("script", attrs={"type": "application/ld+json"}):
            try:
                data = json.loads(tag.string or "")
            except ValueError:
                logger.debug("Skipping malformed JSON-LD block")
                continue
            for node in _flatten_ld(data):
                if "Application" in str(node.get("@type", "")):
                    blocks.append(node)
        return blocks

    def ld(self, key: str) -> Any:
        """First non-empty value of key across software-application JSON-LD blocks."""
        for block in self.json_ld:
            value = block.get(key)
            if value not in (None, "", [], {}):
                return value
        return None

    def select_text(self, *selectors: str) -> Optional[str]:
        for selector in selectors:
            node = self.soup.select_one(selector)
            if node is not None:
                text = clean_text(node.get_text(" "))
                if text:
                    return text
        return None

    def select_attr(self, selector: str, attr: str) -> Optional[str]:
        node = self.soup.select_one(selector)
        if node is not None:
            value = node.get(attr)
            if isinstance(value, list):
                value = " ".join(value)
            if value and str(value).strip():
                return str(value).strip()
        return None

    def labelled_value(self, *labels: str) -> Optional[str]:
        """
        Text following an element whose own text is one of labels.

        Handles both <dt>Version</dt><dd>1.2</dd> and inline "Version: 1.2".
        """
        wanted = {label.lower() for label in labels}
        for tag in self.soup.find_all(_LABEL_TAGS):
            text = clean_text(tag.get_text(" "))
            if not text or len(text) > 200:
                continue
            key = text.rstrip(":").strip().lower()
            if key in wanted:
                sibling = tag.find_next_sibling()
                if sibling is None and isinstance(tag.parent, Tag):
                    sibling = tag.parent.find_next_sibling()
                if sibling is not None:
                    value = clean_text(sibling.get_text(" "))
                    if value:
                        return value
                continue
            head, sep, tail = text.partition(":")
            if sep and head.strip().lower() in wanted and tail.strip():
                return tail.strip()
        return None

    def script_match(self, pattern: "re.Pattern") -> Optional[str]:
        match = pattern.search(self.scripts) or pattern.search(self.html)
        if match:
            return unescape_json_string(match.group(1))
        return None


def _flatten_ld(data: Any) -> List[Dict[str, Any]]:
    if isinstance(data, list):
        nodes = []
        for item in data:
            nodes.extend(_flatten_ld(item))
        return nodes
    if isinstance(data, dict):
        if "@graph" in data:
            return _flatten_ld(data["@graph"])
        return [data]
    return []


def first_of(doc: Document, strategies: Sequence[Strategy]) -> Optional[T]:
    """Run strategies left to right; return the first non-empty result."""
    for strategy in strategies:
        try:
            value = strategy(doc)
        except Exception as e:
            # A broken strategy degrades like an empty one
            logger.debug(f"Strategy {getattr(strategy, '__name__', strategy)} failed: {e}")
            continue
        if value not in (None, "", []):
            return value
    return None


def _name_of(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        value = value.get("name")
    if isinstance(value, list) and value:
        return _name_of(value[0])
    return clean_text(str(value)) if value else None


# ----------------------------------------------------------------------
# name
# ----------------------------------------------------------------------

def name_from_json_ld(doc: Document) -> Optional[str]:
    return clean_app_name(_name_of(doc.ld("name")))


def name_from_heading(doc: Document) -> Optional[str]:
    return clean_app_name(doc.select_text("h1", ".app-title", ".product-title"))


def name_from_og_title(doc: Document) -> Optional[str]:
    return clean_app_name(doc.select_attr('meta[property="og:title"]', "content"))


def name_from_title(doc: Document) -> Optional[str]:
    match = re.search(r"<title[^>]*>(.*?)</title>", doc.html, re.IGNORECASE | re.DOTALL)
    return clean_app_name(match.group(1)) if match else None


NAME_STRATEGIES = (name_from_json_ld, name_from_heading, name_from_og_title, name_from_title)


# ----------------------------------------------------------------------
# developer
# ----------------------------------------------------------------------

def developer_from_json(doc: Document) -> Optional[str]:
    return _name_of(doc.ld("author")) or _name_of(doc.ld("publisher")) or doc.script_match(DEVELOPER_JSON)


def developer_from_selector(doc: Document) -> Optional[str]:
    return (
        doc.select_text(".developer-name", ".app-developer")
        or doc.select_attr("[data-developer]", "data-developer")
        or doc.select_text('a[href*="/developer/"]')
    )


def developer_from_label(doc: Document) -> Optional[str]:
    return doc.labelled_value("Developer", "Developed by", "Publisher")


DEVELOPER_STRATEGIES = (developer_from_json, developer_from_selector, developer_from_label)


# ----------------------------------------------------------------------
# price
# ----------------------------------------------------------------------

def price_from_json(doc: Document) -> Optional[float]:
    offers = doc.ld("offers")
    if isinstance(offers, list) and offers:
        offers = offers[0]
    if isinstance(offers, dict) and offers.get("price") is not None:
        try:
            price = float(offers["price"])
        except (TypeError, ValueError):
            price = None
        if price is not None and math.isfinite(price) and price >= 0:
            return price
    match = PRICE_JSON.search(doc.scripts) or PRICE_JSON.search(doc.html)
    return parse_cents(match.group(1)) if match else None


def price_from_selector(doc: Document) -> Optional[float]:
    return parse_price(
        doc.select_text(".price", ".app-price") or doc.select_attr("[data-price]", "data-price")
    )


def price_from_label(doc: Document) -> Optional[float]:
    return parse_price(doc.labelled_value("Price", "Cost"))


PRICE_STRATEGIES = (price_from_json, price_from_selector, price_from_label)


# ----------------------------------------------------------------------
# rating
# ----------------------------------------------------------------------

def rating_from_json(doc: Document) -> Optional[float]:
    aggregate = doc.ld("aggregateRating")
    if isinstance(aggregate, dict):
        rating = parse_rating(aggregate.get("ratingValue"))
        if rating is not None:
            return rating
    return parse_rating(doc.script_match(RATING_JSON))


def rating_from_selector(doc: Document) -> Optional[float]:
    return parse_rating(
        doc.select_text(".rating", ".app-rating") or doc.select_attr("[data-rating]", "data-rating")
    )


def rating_from_label(doc: Document) -> Optional[float]:
    return parse_rating(doc.labelled_value("Rating", "User rating"))


RATING_STRATEGIES = (rating_from_json, rating_from_selector, rating_from_label)


# ----------------------------------------------------------------------
# version
# ----------------------------------------------------------------------

def version_from_json(doc: Document) -> Optional[str]:
    return parse_version(doc.ld("softwareVersion") or doc.script_match(VERSION_JSON))


def version_from_selector(doc: Document) -> Optional[str]:
    return parse_version(doc.select_text(".version") or doc.select_attr("[data-version]", "data-version"))


def version_from_label(doc: Document) -> Optional[str]:
    return parse_version(doc.labelled_value("Version", "Latest version"))


def version_from_text(doc: Document) -> Optional[str]:
    match = re.search(r"\bVersion\s*:?\s*(\d+(?:\.\d+)+)", doc.text, re.IGNORECASE)
    return match.group(1) if match else None


VERSION_STRATEGIES = (version_from_json, version_from_selector, version_from_label, version_from_text)


# ----------------------------------------------------------------------
# category
# ----------------------------------------------------------------------

def category_from_json(doc: Document) -> Optional[str]:
    return clean_text(_name_of(doc.ld("applicationCategory")) or doc.script_match(CATEGORY_JSON)) or None


def category_from_selector(doc: Document) -> Optional[str]:
    return doc.select_text(".category") or doc.select_attr("[data-category]", "data-category")


def category_from_navigation(doc: Document) -> Optional[str]:
    breadcrumb = " ".join(clean_text(n.get_text(" ")) for n in doc.soup.select(".breadcrumb, nav"))
    return infer_category_label(breadcrumb)


CATEGORY_STRATEGIES = (category_from_json, category_from_selector, category_from_navigation)


# ----------------------------------------------------------------------
# description
# ----------------------------------------------------------------------

def description_from_json(doc: Document) -> Optional[str]:
    value = doc.ld("description")
    return clean_text(value) if isinstance(value, str) else None


def description_from_selector(doc: Document) -> Optional[str]:
    return doc.select_text(".description", ".app-description", '[itemprop="description"]')


def description_from_meta(doc: Document) -> Optional[str]:
    return doc.select_attr('meta[name="description"]', "content") or doc.select_attr(
        'meta[property="og:description"]', "content"
    )


DESCRIPTION_STRATEGIES = (description_from_json, description_from_selector, description_from_meta)


# ----------------------------------------------------------------------
# icon
# ----------------------------------------------------------------------

def icon_from_json(doc: Document) -> Optional[str]:
    image = doc.ld("image")
    if isinstance(image, list) and image:
        image = image[0]
    if isinstance(image, dict):
        image = image.get("url")
    return absolutize(image) if isinstance(image, str) and image else None


def icon_from_selector(doc: Document) -> Optional[str]:
    for selector in ("img.main_logo", ".app-icon img", ".icon img"):
        src = doc.select_attr(selector, "src")
        if src:
            return absolutize(src)
    return None


def icon_from_meta(doc: Document) -> Optional[str]:
    src = doc.select_attr('meta[property="og:image"]', "content")
    return absolutize(src) if src else None


ICON_STRATEGIES = (icon_from_json, icon_from_selector, icon_from_meta)


# ----------------------------------------------------------------------
# screenshots
# ----------------------------------------------------------------------

def _first_srcset_url(srcset: str) -> Optional[str]:
    first = srcset.split(",")[0].strip()
    return first.split()[0] if first else None


def screenshots_from_json(doc: Document) -> List[str]:
    shots = doc.ld("screenshot")
    if isinstance(shots, (str, dict)):
        shots = [shots]
    urls = []
    for shot in shots or []:
        if isinstance(shot, dict):
            shot = shot.get("url") or shot.get("contentUrl")
        if isinstance(shot, str) and shot:
            urls.append(shot)
    return urls


def screenshots_from_gallery(doc: Document) -> List[str]:
    urls = []
    for picture in doc.soup.select(".mu_app_gallery picture"):
        source = picture.find("source", srcset=True)
        img = picture.find("img")
        url = None
        if source is not None:
            url = _first_srcset_url(source["srcset"])
        if not url and img is not None:
            url = img.get("src") or (img.get("srcset") and _first_srcset_url(img["srcset"]))
        if url:
            urls.append(url)
    if not urls:
        for img in doc.soup.select(".mu_app_gallery img, .screenshots img"):
            if img.get("src"):
                urls.append(img["src"])
    return urls


def screenshots_from_text(doc: Document) -> List[str]:
    return [m.group(1) for m in SCREENSHOT_SRC.finditer(doc.html)]


SCREENSHOT_STRATEGIES = (screenshots_from_json, screenshots_from_gallery, screenshots_from_text)


def normalize_screenshots(urls: Optional[Sequence[str]]) -> List[str]:
    """Rebase relative URLs and drop exact duplicates, keeping first-seen order."""
    seen = set()
    result = []
    for url in urls or []:
        full = absolutize(url)
        if full and full not in seen:
            seen.add(full)
            result.append(full)
    return result


# ----------------------------------------------------------------------
# file size
# ----------------------------------------------------------------------

def file_size_from_json(doc: Document) -> Optional[str]:
    return parse_file_size(doc.ld("fileSize") or doc.script_match(FILESIZE_JSON))


def file_size_from_selector(doc: Document) -> Optional[str]:
    return parse_file_size(doc.select_text(".file-size", ".filesize"))


def file_size_from_label(doc: Document) -> Optional[str]:
    return parse_file_size(doc.labelled_value("Size", "File size", "File Size"))


def file_size_from_text(doc: Document) -> Optional[str]:
    return parse_file_size(doc.text)


FILE_SIZE_STRATEGIES = (file_size_from_json, file_size_from_selector, file_size_from_label, file_size_from_text)


# ----------------------------------------------------------------------
# requirements
# ----------------------------------------------------------------------

def requirements_from_json(doc: Document) -> List[str]:
    value = doc.ld("operatingSystem")
    if isinstance(value, list):
        return [clean_text(str(v)) for v in value if v]
    return [clean_text(value)] if isinstance(value, str) and value.strip() else []


def requirements_from_selector(doc: Document) -> List[str]:
    items = [clean_text(li.get_text(" ")) for li in doc.soup.select(".system-requirements li, .requirements li")]
    items = [i for i in items if i]
    if items:
        return items
    text = doc.select_text(".requirements", ".system-requirements")
    return [text] if text else []


def requirements_from_label(doc: Document) -> List[str]:
    text = doc.labelled_value("Requirements", "System requirements", "Compatibility", "OS")
    return [text] if text else []


def requirements_from_text(doc: Document) -> List[str]:
    match = OS_REQUIREMENT.search(doc.text)
    return [clean_text(match.group(0))] if match else []


REQUIREMENT_STRATEGIES = (
    requirements_from_json,
    requirements_from_selector,
    requirements_from_label,
    requirements_from_text,
)


# ----------------------------------------------------------------------
# architecture
# ----------------------------------------------------------------------

def architecture_from_json(doc: Document) -> Optional[str]:
    return normalize_architecture(doc.ld("processorRequirements"))


def architecture_from_selector(doc: Document) -> Optional[str]:
    return normalize_architecture(doc.select_text(".architecture"))


def architecture_from_label(doc: Document) -> Optional[str]:
    return normalize_architecture(doc.labelled_value("Architecture", "Processor"))


def architecture_from_text(doc: Document) -> Optional[str]:
    return normalize_architecture(" ".join(ARCH_TOKENS.findall(doc.text)))


ARCHITECTURE_STRATEGIES = (
    architecture_from_json,
    architecture_from_selector,
    architecture_from_label,
    architecture_from_text,
)


# ----------------------------------------------------------------------
# developer website
# ----------------------------------------------------------------------

def website_from_json(doc: Document) -> Optional[str]:
    for key in ("author", "publisher"):
        value = doc.ld(key)
        if isinstance(value, dict) and isinstance(value.get("url"), str):
            return value["url"]
    return None


def website_from_selector(doc: Document) -> Optional[str]:
    return doc.select_attr(".developer-website a", "href") or doc.select_attr(
        'a[data-testid="developer-website"]', "href"
    )


def website_from_label(doc: Document) -> Optional[str]:
    for anchor in doc.soup.find_all("a", href=True):
        text = clean_text(anchor.get_text(" ")).lower()
        if text in ("website", "developer website", "visit website", "homepage"):
            return anchor["href"]
    return None


def website_from_text(doc: Document) -> Optional[str]:
    match = WEBSITE_ANCHOR.search(doc.html) or WEBSITE_ANCHOR_REVERSED.search(doc.html)
    return match.group(1) if match else None


WEBSITE_STRATEGIES = (website_from_json, website_from_selector, website_from_label, website_from_text)


# ----------------------------------------------------------------------
# last updated
# ----------------------------------------------------------------------

def updated_from_json(doc: Document):
    for key in ("dateModified", "datePublished"):
        value = doc.ld(key)
        if isinstance(value, str):
            parsed = parse_listing_date(value)
            if parsed:
                return parsed
    return parse_listing_date(doc.script_match(UPDATED_JSON))


def updated_from_selector(doc: Document):
    return parse_listing_date(doc.select_attr("time[datetime]", "datetime")) or parse_listing_date(
        doc.select_text(".last-updated", ".updated")
    )


def updated_from_label(doc: Document):
    return parse_listing_date(doc.labelled_value("Updated", "Last updated", "Updated on", "Date"))


def updated_from_text(doc: Document):
    match = re.search(r"Updated(?:\s+on)?\s*:?\s*([^|<]{4,40})", doc.text, re.IGNORECASE)
    return parse_listing_date(match.group(1)) if match else None


UPDATED_STRATEGIES = (updated_from_json, updated_from_selector, updated_from_label, updated_from_text)


# ----------------------------------------------------------------------
# public API
# ----------------------------------------------------------------------

def extract_detail(html: str, source_url: str) -> Optional[ScrapedItem]:
    """
    Build a ScrapedItem from an item detail page.

    Args:
        html: Raw page HTML
        source_url: URL the page was fetched from

    Returns:
        The record, or None when no strategy finds a name
    """
    doc = Document(html, source_url)

    name = first_of(doc, NAME_STRATEGIES)
    if not name:
        logger.warning(f"No name found, discarding detail page {source_url}")
        return None

    website = first_of(doc, WEBSITE_STRATEGIES)
    updated = first_of(doc, UPDATED_STRATEGIES)

    item = ScrapedItem(
        name=name,
        developer=first_of(doc, DEVELOPER_STRATEGIES),
        version=first_of(doc, VERSION_STRATEGIES),
        price=first_of(doc, PRICE_STRATEGIES),
        rating=first_of(doc, RATING_STRATEGIES),
        description=first_of(doc, DESCRIPTION_STRATEGIES),
        category=first_of(doc, CATEGORY_STRATEGIES),
        requirements=first_of(doc, REQUIREMENT_STRATEGIES) or [],
        screenshots=normalize_screenshots(first_of(doc, SCREENSHOT_STRATEGIES)),
        icon_url=first_of(doc, ICON_STRATEGIES),
        source_url=source_url,
        developer_website_url=absolutize(website) if website else None,
        last_updated=updated or parse_updated_date(None),
        file_size=first_of(doc, FILE_SIZE_STRATEGIES),
        architecture=first_of(doc, ARCHITECTURE_STRATEGIES),
    )
    logger.debug(f"Extracted {item.name!r} (developer={item.developer!r}, version={item.version!r})")
    return item


def extract_listing_urls(html: str, want: int = 20) -> List[str]:
    """
    Discover item URLs on a listing page, in page order, without duplicates.

    The embedded "custom_url" JSON pattern is tried first. When it yields
    fewer than want URLs, /app/ anchors and then absolute item URLs inside
    scripts are added.
    """
    urls: List[str] = []
    seen = set()

    def add(raw: str) -> None:
        url = absolutize(unescape_json_string(raw) if "\\" in raw else raw, SOURCE_BASE_URL)
        if not is_item_url(url) or _STATIC_ASSET.search(url):
            return
        url = normalize_item_url(url)
        if url not in seen:
            seen.add(url)
            urls.append(url)

    for match in CUSTOM_URL_PATTERN.finditer(html or ""):
        add(match.group(1))

    if len(urls) < want:
        for match in _APP_HREF_PATTERN.finditer(html or ""):
            add(match.group(1))
        doc = Document(html)
        for anchor in doc.soup.find_all("a", href=True):
            add(anchor["href"])
        if len(urls) < want:
            for match in _ABSOLUTE_ITEM_PATTERN.finditer(doc.scripts):
                add(match.group(0))

    return urls


def _json_field(blob: str, key: str) -> Optional[str]:
    match = re.search(rf'"{key}"\s*:\s*"((?:[^"\\]|\\.)*)"', blob)
    if match:
        return unescape_json_string(match.group(1))
    return None


def _json_number(blob: str, key: str) -> Optional[str]:
    match = re.search(rf'"{key}"\s*:\s*([\d.]+)', blob)
    return match.group(1) if match else None


def extract_listing(html: str) -> List[ScrapedItem]:
    """
    Records for every app listed on a category page.

    Uses the per-app JSON objects embedded in the page (title, developer,
    price in cents, rating, file size, logo, short description). When the
    page carries no such objects, falls back to item URLs with names
    derived from the URL.
    """
    items: List[ScrapedItem] = []
    seen = set()

    for match in LISTING_OBJECT_PATTERN.finditer(html or ""):
        blob = match.group(0)
        raw_url = _json_field(blob, "custom_url")
        if not raw_url:
            continue
        url = absolutize(raw_url)
        if url in seen or not is_item_url(url):
            continue
        name = clean_app_name(_json_field(blob, "title")) or app_name_from_url(url)
        if not name:
            continue
        seen.add(url)
        logo = _json_field(blob, "logo")
        items.append(
            ScrapedItem(
                name=name,
                developer=_json_field(blob, "developer"),
                price=parse_cents(_json_number(blob, "price")),
                rating=parse_rating(_json_number(blob, "rating")),
                description=_json_field(blob, "short_description"),
                file_size=parse_file_size(_json_field(blob, "filesize")),
                icon_url=absolutize(logo) if logo else None,
                source_url=url,
            )
        )

    if items:
        return items

    for url in extract_listing_urls(html):
        name = app_name_from_url(url)
        if name:
            items.append(ScrapedItem(name=name, source_url=url))
    return items
