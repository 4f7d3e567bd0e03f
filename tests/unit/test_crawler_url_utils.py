"""
Unit tests for crawler URL utilities.

Tests item-URL classification, name derivation and page URL building.
"""

import pytest

from appdiscovery.crawler.url_utils import (
    absolutize,
    app_name_from_url,
    build_page_url,
    category_name_from_url,
    domain_of,
    is_item_url,
    kebab_to_title,
    normalize_item_url,
)


ITEM_URL_TABLE = [
    # subdomain items
    ("https://vlc.macupdate.com/", True),
    ("https://google-chrome.macupdate.com", True),
    ("https://rss-reader.macupdate.com/", True),
    ("https://notion.macupdate.com/download", True),
    # path items
    ("https://www.macupdate.com/app/mac/5758/vlc-media-player", True),
    ("https://www.macupdate.com/app/mac/61346/notion", True),
    # category index
    ("https://www.macupdate.com/explore/categories/productivity", False),
    ("https://www.macupdate.com/categories/games", False),
    # search
    ("https://www.macupdate.com/search?keywords=vlc", False),
    ("https://www.macupdate.com/find/mac/vlc", False),
    # site chrome and legal
    ("https://www.macupdate.com/about", False),
    ("https://www.macupdate.com/contact", False),
    ("https://www.macupdate.com/help", False),
    ("https://www.macupdate.com/terms", False),
    ("https://www.macupdate.com/privacy", False),
    ("https://www.macupdate.com/cookie-policy", False),
    # developer profile
    ("https://www.macupdate.com/developer/123/videolan", False),
    ("https://vlc.macupdate.com/developer/videolan", False),
    # articles and editorial
    ("https://www.macupdate.com/articles/best-vpn", False),
    ("https://www.macupdate.com/article/123/some-story", False),
    ("https://www.macupdate.com/how-to/clean-mac", False),
    ("https://www.macupdate.com/best-picks", False),
    ("https://www.macupdate.com/reviews", False),
    # home and foreign hosts
    ("https://www.macupdate.com/", False),
    ("https://www.macupdate.com", False),
    ("https://example.com/app/vlc", False),
    ("https://apps.apple.com/us/app/notion/id1232780281", False),
    # junk
    ("", False),
    (None, False),
    ("not a url", False),
]


class TestIsItemUrl:
    """Tests for is_item_url predicate."""

    @pytest.mark.parametrize("url,expected", ITEM_URL_TABLE)
    def test_classification_table(self, url, expected):
        """Every URL in the table is classified as expected."""
        assert is_item_url(url) is expected

    def test_http_scheme_rejected(self):
        """Only https item URLs qualify."""
        assert is_item_url("http://vlc.macupdate.com/") is False

    def test_surrounding_whitespace_ignored(self):
        """Whitespace around the URL does not change the verdict."""
        assert is_item_url("  https://vlc.macupdate.com/  ") is True


class TestAbsolutize:
    """Tests for absolutize function."""

    def test_root_relative(self):
        assert absolutize("/app/mac/1/foo") == "https://www.macupdate.com/app/mac/1/foo"

    def test_protocol_relative(self):
        assert absolutize("//static.macupdate.com/a.png") == "https://static.macupdate.com/a.png"

    def test_absolute_unchanged(self):
        assert absolutize("https://vlc.macupdate.com/") == "https://vlc.macupdate.com/"

    def test_custom_base(self):
        assert absolutize("/x", "https://example.com/") == "https://example.com/x"


class TestNormalizeItemUrl:
    """Tests for normalize_item_url function."""

    def test_drops_query_and_fragment(self):
        url = "https://VLC.macupdate.com/download?ref=home#top"
        assert normalize_item_url(url) == "https://vlc.macupdate.com/download"

    def test_adds_root_path(self):
        assert normalize_item_url("http://vlc.macupdate.com") == "https://vlc.macupdate.com/"


class TestAppNameFromUrl:
    """Tests for display-name derivation."""

    def test_kebab_to_title(self):
        assert kebab_to_title("vlc-media-player") == "Vlc Media Player"

    def test_subdomain_name(self):
        assert app_name_from_url("https://google-chrome.macupdate.com/") == "Google Chrome"

    def test_path_name(self):
        assert app_name_from_url("https://www.macupdate.com/app/mac/5758/vlc-media-player") == "Vlc Media Player"

    def test_numeric_slug_has_no_name(self):
        assert app_name_from_url("https://www.macupdate.com/app/mac/5758") is None

    def test_home_page_has_no_name(self):
        assert app_name_from_url("https://www.macupdate.com/") is None

    def test_foreign_host_has_no_name(self):
        assert app_name_from_url("https://vlc.example.com/") is None


class TestCategoryAndPages:
    """Tests for category naming and listing page URLs."""

    def test_category_name(self):
        url = "https://www.macupdate.com/explore/categories/music-audio"
        assert category_name_from_url(url) == "Music Audio"

    def test_category_name_fallback(self):
        assert category_name_from_url("https://www.macupdate.com/") == "Unknown Category"

    def test_first_page_is_bare_url(self):
        url = "https://www.macupdate.com/explore/categories/games"
        assert build_page_url(url, 1) == url

    def test_later_pages_add_query(self):
        url = "https://www.macupdate.com/explore/categories/games"
        assert build_page_url(url, 3) == f"{url}?page=3"

    def test_existing_query_extended(self):
        url = "https://www.macupdate.com/explore/categories/games?sort=new"
        assert build_page_url(url, 2) == f"{url}&page=2"

    def test_domain_of(self):
        assert domain_of("https://VLC.macupdate.com/x") == "vlc.macupdate.com"
        assert domain_of("not a url") == "unknown"
