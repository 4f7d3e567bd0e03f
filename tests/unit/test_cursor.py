"""
Unit tests for the page cursor derived from the crawl-session log.
"""

from appdiscovery.crawler.cursor import PageCursorTracker, session_name_for
from appdiscovery.db.models import PageStatus
from tests.conftest import CATEGORY_URL

OTHER_CATEGORY = "https://www.macupdate.com/explore/categories/games"


class TestNextPage:
    """Tests for next_page / mark_processed."""

    def test_fresh_category_starts_at_one(self, repository):
        assert PageCursorTracker(repository).next_page(CATEGORY_URL) == 1

    def test_advances_after_mark(self, repository):
        tracker = PageCursorTracker(repository)
        tracker.mark_processed(CATEGORY_URL, 1, "Productivity")
        assert tracker.next_page(CATEGORY_URL) == 2
        tracker.mark_processed(CATEGORY_URL, 2, "Productivity")
        assert tracker.next_page(CATEGORY_URL) == 3

    def test_never_decreases(self, repository):
        """Re-marking an earlier page leaves the cursor where it was."""
        tracker = PageCursorTracker(repository)
        tracker.mark_processed(CATEGORY_URL, 3)
        tracker.mark_processed(CATEGORY_URL, 1)
        assert tracker.next_page(CATEGORY_URL) == 4

    def test_categories_are_independent(self, repository):
        tracker = PageCursorTracker(repository)
        tracker.mark_processed(OTHER_CATEGORY, 5)
        assert tracker.next_page(CATEGORY_URL) == 1
        assert tracker.next_page(OTHER_CATEGORY) == 6

    def test_legacy_session_names(self, repository, fake_db):
        fake_db.seed(
            "import_sessions",
            {"session_name": "Productivity - Page 3", "category_url": CATEGORY_URL, "source_type": "BULK_PAGE"},
            {"session_name": "Productivity - Page 2", "category_url": CATEGORY_URL, "source_type": "BULK_PAGE"},
        )
        assert PageCursorTracker(repository).next_page(CATEGORY_URL) == 4

    def test_unnumbered_and_other_sessions_ignored(self, repository, fake_db):
        fake_db.seed(
            "import_sessions",
            {"session_name": "Manual batch", "category_url": CATEGORY_URL, "source_type": "BULK_PAGE"},
            {"session_name": "Productivity - Page 9", "category_url": CATEGORY_URL, "source_type": "MANUAL"},
        )
        assert PageCursorTracker(repository).next_page(CATEGORY_URL) == 1

    def test_mark_writes_session_row(self, repository, fake_db):
        stored = PageCursorTracker(repository).mark_processed(CATEGORY_URL, 1, "Productivity")
        assert stored.id is not None
        row = fake_db.rows("import_sessions")[0]
        assert row["session_name"] == session_name_for("Productivity", 1) == "Productivity - Page 1"
        assert row["page_number"] == 1
        assert row["page_status"] == "scraped"
        assert row["source_type"] == "BULK_PAGE"

    def test_category_name_defaults_from_url(self, repository, fake_db):
        PageCursorTracker(repository).mark_processed(CATEGORY_URL, 1)
        assert fake_db.rows("import_sessions")[0]["session_name"] == "Productivity - Page 1"

    def test_mark_failure_is_swallowed(self, repository, fake_db, error_records):
        fake_db.failing.add(("import_sessions", "insert"))
        assert PageCursorTracker(repository).mark_processed(CATEGORY_URL, 1) is None
        records = error_records()
        assert records[-1]["stage"] == "mark_page"
        assert records[-1]["metadata"] == {"page_number": 1}


class TestProgress:
    """Tests for progress and reset."""

    def test_progress(self, repository):
        tracker = PageCursorTracker(repository)
        first = tracker.mark_processed(CATEGORY_URL, 1, "Productivity")
        tracker.mark_processed(CATEGORY_URL, 2, "Productivity")
        repository.update_session(first.id, {"page_status": "imported", "apps_imported": 4, "apps_skipped": 1})

        progress = tracker.progress(CATEGORY_URL)
        assert progress.category_name == "Productivity"
        assert [p.page_number for p in progress.pages] == [1, 2]
        assert progress.pages[0].status == PageStatus.IMPORTED
        assert progress.pages[0].apps_imported == 4
        assert progress.pages_scraped == 2
        assert progress.pages_imported == 1
        assert progress.pages_pending == 1
        assert progress.pages_failed == 0
        assert progress.last_scraped_page == 2
        assert progress.last_imported_page == 1
        assert progress.scrape_progress_percent == 100
        assert progress.import_progress_percent == 50
        assert progress.next_page_to_scrape == 3
        assert progress.next_page_to_import == 2

    def test_progress_of_fresh_category(self, repository):
        progress = PageCursorTracker(repository).progress(CATEGORY_URL)
        assert progress.pages == []
        assert progress.category_name == "Productivity"
        assert progress.next_page_to_scrape == 1
        assert progress.next_page_to_import is None
        assert progress.import_progress_percent == 0

    def test_reset(self, repository):
        tracker = PageCursorTracker(repository)
        tracker.mark_processed(CATEGORY_URL, 1)
        tracker.mark_processed(CATEGORY_URL, 2)
        tracker.mark_processed(OTHER_CATEGORY, 1)

        assert tracker.reset(CATEGORY_URL) == 2
        assert tracker.next_page(CATEGORY_URL) == 1
        assert tracker.next_page(OTHER_CATEGORY) == 2
