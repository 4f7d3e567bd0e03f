"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all tests in the test suite.
"""

import copy
import json
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pytest

import appdiscovery.core.config as config_module
from appdiscovery.core.config import Config
from appdiscovery.core.error_logger import ErrorLogger, set_error_logger
from appdiscovery.db.models import CanonicalCandidate
from appdiscovery.db.repository import CatalogRepository


# ============================================================================
# In-memory Supabase
# ============================================================================

class FakeSupabaseError(Exception):
    """Raised by FakeSupabase when a table/operation is set to fail."""


class FakeResult:
    def __init__(self, data: List[Dict[str, Any]]):
        self.data = data


def _same(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is b
    return a == b or str(a) == str(b)


def _like_regex(pattern: str, flags: int = 0) -> "re.Pattern":
    parts = [re.escape(p) for p in pattern.split("%")]
    return re.compile("^" + ".*".join(parts) + "$", flags | re.DOTALL)


class FakeQuery:
    """The slice of the supabase-py query builder the repository uses."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.op = "select"
        self.payload: Any = None
        self.filters = []
        self._order = None
        self._limit: Optional[int] = None

    # operations
    def select(self, *columns):
        return self

    def insert(self, rows):
        self.op, self.payload = "insert", rows
        return self

    def update(self, fields):
        self.op, self.payload = "update", fields
        return self

    def delete(self):
        self.op = "delete"
        return self

    # filters
    def eq(self, column, value):
        self.filters.append(lambda row: _same(row.get(column), value))
        return self

    def ilike(self, column, pattern):
        regex = _like_regex(pattern, re.IGNORECASE)
        self.filters.append(lambda row: row.get(column) is not None and bool(regex.match(str(row[column]))))
        return self

    def like(self, column, pattern):
        regex = _like_regex(pattern)
        self.filters.append(lambda row: row.get(column) is not None and bool(regex.match(str(row[column]))))
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: any(_same(row.get(column), v) for v in values))
        return self

    def is_(self, column, value):
        if value in (None, "null"):
            self.filters.append(lambda row: row.get(column) is None)
        else:
            self.filters.append(lambda row: _same(row.get(column), value))
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def _matches(self, row) -> bool:
        return all(f(row) for f in self.filters)

    def execute(self) -> FakeResult:
        self.db.calls.append((self.table_name, self.op))
        if self.table_name in self.db.failing or (self.table_name, self.op) in self.db.failing:
            raise FakeSupabaseError(f"{self.op} on {self.table_name} failed")

        rows = self.db.tables.setdefault(self.table_name, [])

        if self.op == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = [self.db._stamp(dict(row)) for row in payload]
            rows.extend(inserted)
            return FakeResult(copy.deepcopy(inserted))

        if self.op == "update":
            touched = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    touched.append(copy.deepcopy(row))
            return FakeResult(touched)

        if self.op == "delete":
            removed = [row for row in rows if self._matches(row)]
            self.db.tables[self.table_name] = [row for row in rows if not self._matches(row)]
            return FakeResult(copy.deepcopy(removed))

        selected = [row for row in rows if self._matches(row)]
        if self._order:
            column, desc = self._order
            selected = sorted(selected, key=lambda r: str(r.get(column) or ""), reverse=desc)
        if self._limit is not None:
            selected = selected[: self._limit]
        return FakeResult(copy.deepcopy(selected))


class FakeSupabase:
    """
    In-memory stand-in for the Supabase client.

    Rows get an integer id and a strictly increasing created_at on insert.
    Add a table name, or a (table, op) pair, to failing to make execute() raise.
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.failing = set()
        self.calls = []
        self._next_id = 1
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def _stamp(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if row.get("id") is None:
            row["id"] = self._next_id
            self._next_id += 1
        if not row.get("created_at"):
            self._clock += timedelta(seconds=1)
            row["created_at"] = self._clock.isoformat()
        return row

    def seed(self, table: str, *rows: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self.table(table).insert(list(rows)).execute().data

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.get(table, [])


# ============================================================================
# Configuration, error logging, repository
# ============================================================================

@pytest.fixture
def test_config(tmp_path: Path, monkeypatch) -> Config:
    """Config with zero delays and no retries, installed as the global config."""
    config = Config(env_path=tmp_path / "missing.env")
    config.supabase_enabled = False
    config.crawl_delay_ms = 0
    config.match_delay_ms = 0
    config.fetch_max_retries = 0
    config.min_page_yield = 5
    config.per_page_limit = 20
    config.page_count = 1
    config.match_threshold = 0.8
    config.auto_apply_threshold = 0.8
    config.log_dir = tmp_path / "logs"
    config.error_log_fallback_dir = tmp_path / "errors"
    monkeypatch.setattr(config_module, "_config", config)
    return config


@pytest.fixture(autouse=True)
def file_error_logger(tmp_path: Path, test_config):
    """Structured errors go to a temporary JSONL file."""
    error_logger = ErrorLogger(use_database=False, fallback_dir=tmp_path / "errors")
    set_error_logger(error_logger)
    yield error_logger
    set_error_logger(None)


@pytest.fixture
def error_records(tmp_path: Path):
    """Callable returning the structured error records written so far."""

    def _read() -> List[Dict[str, Any]]:
        records = []
        for path in sorted((tmp_path / "errors").glob("errors_*.jsonl")):
            with open(path, encoding="utf-8") as f:
                records.extend(json.loads(line) for line in f if line.strip())
        return records

    return _read


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def repository(fake_db: FakeSupabase, test_config: Config) -> CatalogRepository:
    return CatalogRepository(client=fake_db, config=test_config)


# ============================================================================
# HTTP and search fakes
# ============================================================================

class FakeFetcher:
    """
    PageFetcher stand-in serving canned pages.

    Unknown URLs raise FetchError(404); a page mapped to an exception raises it.
    """

    def __init__(self, pages: Optional[Dict[str, Union[str, Exception]]] = None, rate_limiter=None):
        self.pages = pages or {}
        self.rate_limiter = rate_limiter
        self.requested: List[str] = []

    def fetch(self, url: str, timeout: Optional[float] = None) -> str:
        from appdiscovery.crawler.http import FetchError

        if self.rate_limiter is not None:
            self.rate_limiter.wait()
        self.requested.append(url)
        page = self.pages.get(url)
        if page is None:
            raise FetchError(url, "HTTP 404", 404)
        if isinstance(page, Exception):
            raise page
        return page

    def fetch_detail(self, url: str) -> str:
        return self.fetch(url)


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def fetcher_factory(fake_fetcher: FakeFetcher):
    """Factory for CategoryCrawler that hands out fake_fetcher and remembers each limiter."""
    limiters = []

    def _factory(limiter):
        limiters.append(limiter)
        fake_fetcher.rate_limiter = limiter
        return fake_fetcher

    _factory.limiters = limiters
    return _factory


class FakeSearchClient:
    """ItunesSearchClient stand-in returning canned results (or raising)."""

    def __init__(self, results: Optional[List[Dict[str, Any]]] = None, error: Optional[Exception] = None):
        self.results = results or []
        self.error = error
        self.terms: List[str] = []

    def search(self, term: str) -> List[CanonicalCandidate]:
        self.terms.append(term)
        if self.error is not None:
            raise self.error
        return [CanonicalCandidate.model_validate(r) for r in self.results]


@pytest.fixture
def fake_search_client() -> FakeSearchClient:
    return FakeSearchClient()


def itunes_result(track_id: int, name: str, artist: str, **extra) -> Dict[str, Any]:
    result = {
        "trackId": track_id,
        "trackName": name,
        "artistName": artist,
        "trackViewUrl": f"https://apps.apple.com/us/app/id{track_id}?mt=12",
        "artworkUrl100": f"https://is1-ssl.mzstatic.com/{track_id}/100x100bb.jpg",
        "price": 0.0,
    }
    result.update(extra)
    return result


class FakeClock:
    """Manual clock; sleep() advances it and records the duration."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# HTML fixtures
# ============================================================================

CATEGORY_URL = "https://www.macupdate.com/explore/categories/productivity"


def listing_html(item_urls: List[str], extra_links: Optional[List[str]] = None) -> str:
    """A listing page whose anchors point at item_urls plus navigation links."""
    links = "\n".join(f'<a href="{u}" class="app-link">app</a>' for u in item_urls)
    nav = "\n".join(f'<a href="{u}">nav</a>' for u in (extra_links or []))
    return f"""
    <html>
        <head><title>Productivity - MacUpdate</title></head>
        <body>
            <nav>{nav}</nav>
            <main>{links}</main>
        </body>
    </html>
    """


def item_urls(count: int, start: int = 0) -> List[str]:
    return [f"https://app-{i}.macupdate.com/" for i in range(start, start + count)]


@pytest.fixture
def detail_html() -> str:
    """A fully populated detail page."""
    return """
    <html>
        <head>
            <title>Download Notion - MacUpdate</title>
            <meta property="og:image" content="https://static.macupdate.com/products/notion/icon.png">
            <meta name="description" content="All-in-one workspace for notes and docs.">
        </head>
        <body>
            <nav class="breadcrumb">Home &gt; Productivity &gt; Notion</nav>
            <h1>Notion</h1>
            <a class="developer-name" href="/developer/notion-labs">Notion Labs, Inc.</a>
            <dl>
                <dt>Version</dt><dd>Version 2.4.1 (build 77)</dd>
                <dt>Price</dt><dd>Free</dd>
                <dt>Rating</dt><dd>4.5 out of 5</dd>
                <dt>Size</dt><dd>112.4 MB</dd>
                <dt>Architecture</dt><dd>Intel 64, Apple Silicon</dd>
                <dt>Requirements</dt><dd>macOS 11.0 or later</dd>
                <dt>Updated</dt><dd>Apr 23 2025</dd>
            </dl>
            <div class="developer-website"><a href="https://www.notion.so">Website</a></div>
            <div class="mu_app_gallery">
                <picture><source srcset="/img/notion/shot1.webp 1x, /img/notion/shot1@2x.webp 2x"><img src="/img/notion/shot1.png"></picture>
                <picture><img src="https://static.macupdate.com/img/notion/shot2.png"></picture>
                <picture><source srcset="/img/notion/shot1.webp 1x"></picture>
            </div>
        </body>
    </html>
    """


@pytest.fixture
def minimal_detail_html() -> str:
    """A detail page with nothing but a name."""
    return "<html><body><h1>Bare App</h1></body></html>"


# ============================================================================
# requests.Session fakes
# ============================================================================

class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", payload: Any = None):
        self.status_code = status_code
        self.text = text
        self._payload = payload

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Replays queued responses (or raises queued exceptions) from get()."""

    def __init__(self, *responses: Union[FakeResponse, Exception]):
        self.headers: Dict[str, str] = {}
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def get(self, url: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


# ============================================================================
# Test Markers
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
