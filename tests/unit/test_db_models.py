"""
Unit tests for database Pydantic models.

Tests validation, defaults and row serialization.
"""

import pytest
from pydantic import ValidationError

from appdiscovery.db.models import (
    CanonicalCandidate,
    CatalogEntry,
    CrawlSession,
    MatchAttempt,
    MatchStatus,
    PageStatus,
    ScrapedItem,
    SourceType,
)


class TestScrapedItem:
    """Tests for ScrapedItem model."""

    def test_defaults(self):
        """Only the name is required; the rest degrades to defaults."""
        item = ScrapedItem(name="Bare App")
        assert item.developer == "Unknown"
        assert item.version == "Unknown"
        assert item.category == "Unknown"
        assert item.description == "No description available"
        assert item.price is None
        assert item.rating is None
        assert item.requirements == []
        assert item.screenshots == []
        assert item.last_updated.tzinfo is not None

    def test_none_values_take_defaults(self):
        item = ScrapedItem(name="App", developer=None, version="  ", description=None)
        assert item.developer == "Unknown"
        assert item.version == "Unknown"
        assert item.description == "No description available"

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            ScrapedItem(name="   ")

    def test_rating_bounds(self):
        with pytest.raises(ValidationError):
            ScrapedItem(name="App", rating=5.5)

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            ScrapedItem(name="App", price=-1)

    def test_is_free(self):
        assert ScrapedItem(name="App", price=0).is_free is True
        assert ScrapedItem(name="App", price=9.99).is_free is False
        assert ScrapedItem(name="App").is_free is False


class TestCrawlSession:
    """Tests for CrawlSession model."""

    def test_structured_page_number(self):
        session = CrawlSession(session_name="Productivity - Page 3", category_url="u", page_number=7)
        assert session.resolved_page_number == 7

    def test_legacy_name_fallback(self):
        session = CrawlSession(session_name="Productivity - Page 3", category_url="u")
        assert session.resolved_page_number == 3

    def test_page_word_in_category_name(self):
        """Only the trailing label counts, not "Page" inside the category name."""
        session = CrawlSession(session_name="Page Layout - Page 12", category_url="u")
        assert session.resolved_page_number == 12

    def test_unnumbered(self):
        session = CrawlSession(session_name="Bulk import", category_url="u")
        assert session.resolved_page_number is None

    def test_to_row_excludes_server_columns(self):
        session = CrawlSession(
            id=5,
            session_name="Games - Page 1",
            category_url="u",
            page_status=PageStatus.SCRAPED,
            page_number=1,
            created_at="2025-01-01T00:00:00+00:00",
        )
        row = session.to_row()
        assert "id" not in row
        assert "created_at" not in row
        assert row["page_status"] == "scraped"
        assert row["source_type"] == SourceType.BULK_PAGE.value

    def test_page_number_positive(self):
        with pytest.raises(ValidationError):
            CrawlSession(session_name="x", category_url="u", page_number=0)


class TestMatchAttempt:
    """Tests for MatchAttempt model."""

    def test_to_row(self):
        attempt = MatchAttempt(
            app_id=1,
            search_term="Notion",
            confidence_score=0.95,
            status=MatchStatus.FOUND,
            mas_id="1232780281",
        )
        row = attempt.to_row()
        assert row["status"] == "found"
        assert row["confidence_score"] == 0.95
        assert "id" not in row

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            MatchAttempt(app_id=1, search_term="x", confidence_score=1.5, status=MatchStatus.FAILED)


class TestCatalogEntry:
    """Tests for CatalogEntry model."""

    def test_needs_canonical(self):
        assert CatalogEntry(id=1, name="A").needs_canonical is True
        assert CatalogEntry(id=1, name="A", mas_id="1", mas_url=None).needs_canonical is True
        assert CatalogEntry(id=1, name="A", mas_id="1", mas_url="https://apps.apple.com/x").needs_canonical is False

    def test_numeric_mas_id_coerced(self):
        assert CatalogEntry(id=1, name="A", mas_id=123).mas_id == "123"
        assert CatalogEntry(id=1, name="A", mas_id="").mas_id is None

    def test_extra_columns_ignored(self):
        entry = CatalogEntry(id=1, name="A", price=9.99, status="ACTIVE")
        assert not hasattr(entry, "price")


class TestCanonicalCandidate:
    """Tests for CanonicalCandidate model."""

    def test_aliases(self):
        candidate = CanonicalCandidate.model_validate(
            {"trackId": 42, "trackName": "Notion", "artistName": "Notion Labs, Inc.", "kind": "mac-software"}
        )
        assert candidate.track_id == 42
        assert candidate.track_name == "Notion"
        assert candidate.artist_name == "Notion Labs, Inc."

    def test_raw_preserves_api_keys(self):
        payload = {"trackId": 42, "trackName": "Notion", "artistName": "Notion Labs", "kind": "mac-software"}
        raw = CanonicalCandidate.model_validate(payload).raw()
        assert raw["trackId"] == 42
        assert raw["kind"] == "mac-software"

    def test_track_id_required(self):
        with pytest.raises(ValidationError):
            CanonicalCandidate.model_validate({"trackName": "Notion"})
