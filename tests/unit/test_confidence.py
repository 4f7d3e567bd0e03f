"""
Unit tests for confidence scoring and canonical matching.
"""

import pytest

from appdiscovery.matching.confidence import (
    NO_CONFIDENT_MATCH,
    NO_RESULTS,
    ConfidenceMatcher,
    clean_name,
    score,
    similarity,
    strip_platform_suffix,
)
from appdiscovery.matching.itunes_client import ItunesSearchClient, SearchError
from tests.conftest import FakeResponse, FakeSearchClient, FakeSession, itunes_result


class TestSimilarity:
    """Tests for the name similarity function."""

    def test_identical(self):
        assert similarity("Notion", "notion") == 1.0

    def test_punctuation_ignored(self):
        assert similarity("Notion Labs, Inc.", "notion labs inc") == 1.0

    def test_containment(self):
        assert similarity("Notion Labs, Inc.", "Notion Labs") == 0.95
        assert similarity("Notion", "Notion Labs") == 0.95

    def test_word_overlap_boosted(self):
        result = similarity("adobe photoshop elements", "photoshop express elements")
        assert result == pytest.approx(2 / 3 + 0.2)

    def test_word_overlap_below_half_not_boosted(self):
        result = similarity("alpha beta gamma", "alpha delta epsilon")
        assert result == pytest.approx(1 / 3)

    def test_disjoint(self):
        assert similarity("Alpha", "Beta") == 0.0

    def test_empty(self):
        assert similarity("", "Notion") == 0.0
        assert similarity("Notion", None) == 0.0
        assert similarity("!!!", "Notion") == 0.0


class TestScore:
    """Tests for candidate scoring."""

    def test_exact_name_and_developer(self):
        assert score("Notion", "Notion Labs", "Notion", "Notion Labs") == 1.0

    def test_clamped_to_one(self):
        assert score("Notion", "Notion Labs, Inc.", "Notion", "Notion Labs") == 1.0

    def test_without_developer_name_fills_developer_weight(self):
        # 0.7 * 0.95 + 0.3 * 0.95, no exact-name bonus
        assert score("Notion Calendar", "Notion Labs", "Notion") == 0.95

    def test_weighted(self):
        # 0.7 * 0.95 + 0.3 * 0.0
        assert score("Notion Calendar", "Someone", "Notion", "Notion Labs") == pytest.approx(0.665)

    def test_disjoint(self):
        assert score("Alpha", "Dev", "Beta", "Other") == 0.0

    def test_rounded(self):
        value = score("adobe photoshop elements", "x", "photoshop express elements", "y")
        assert value == round(value, 4)


class TestCleaning:
    def test_clean_name(self):
        assert clean_name("  Notion   Labs, Inc. ") == "notion labs inc"
        assert clean_name(None) == ""

    def test_strip_platform_suffix(self):
        assert strip_platform_suffix("Notion for Mac") == "Notion"
        assert strip_platform_suffix("Things 3 for macOS") == "Things 3"
        assert strip_platform_suffix("Office Mac Version") == "Office"
        assert strip_platform_suffix("Mac Cleaner") == "Mac Cleaner"


class TestConfidenceMatcher:
    """Tests for ConfidenceMatcher.search_app."""

    def test_platform_suffix_stripped_before_search(self, test_config):
        """A "for Mac" suffix is dropped and the exact-name result matches."""
        client = FakeSearchClient([itunes_result(1232780281, "Notion", "Notion Labs, Inc.")])
        result = ConfidenceMatcher(client=client, config=test_config).search_app("Notion for Mac", "Notion Labs")

        assert client.terms == ["Notion"]
        assert result.found is True
        assert result.confidence >= 0.8
        assert result.canonical_id == "1232780281"
        assert result.canonical_url == "https://apps.apple.com/us/app/id1232780281?mt=12"
        assert result.raw_result["trackName"] == "Notion"
        assert result.error is None

    def test_best_candidate_wins(self, test_config):
        client = FakeSearchClient(
            [
                itunes_result(1, "Notion Calendar", "Notion Labs, Inc."),
                itunes_result(2, "Notion", "Notion Labs, Inc."),
            ]
        )
        result = ConfidenceMatcher(client=client, config=test_config).search_app("Notion", "Notion Labs")
        assert result.canonical_id == "2"

    def test_no_results(self, test_config):
        result = ConfidenceMatcher(client=FakeSearchClient([]), config=test_config).search_app("Nothing")
        assert result.found is False
        assert result.error == NO_RESULTS
        assert result.request_failed is False

    def test_threshold_boundary(self, test_config):
        scores = {"Just Below": 0.79, "At Threshold": 0.80}

        def scorer(candidate_name, candidate_developer, name, developer):
            return scores[candidate_name]

        below = ConfidenceMatcher(
            client=FakeSearchClient([itunes_result(1, "Just Below", "x")]), config=test_config, scorer=scorer
        ).search_app("query")
        assert below.found is False
        assert below.confidence == 0.79
        assert below.error == NO_CONFIDENT_MATCH
        assert below.canonical_id is None

        at = ConfidenceMatcher(
            client=FakeSearchClient([itunes_result(2, "At Threshold", "x")]), config=test_config, scorer=scorer
        ).search_app("query")
        assert at.found is True
        assert at.confidence == 0.80

    def test_ties_keep_first(self, test_config):
        matcher = ConfidenceMatcher(
            client=FakeSearchClient([itunes_result(1, "A", "x"), itunes_result(2, "B", "x")]),
            config=test_config,
            scorer=lambda *args: 0.9,
        )
        assert matcher.search_app("query").canonical_id == "1"

    def test_threshold_override(self, test_config):
        client = FakeSearchClient([itunes_result(1, "Notion Calendar", "Someone")])
        matcher = ConfidenceMatcher(client=client, config=test_config, threshold=0.5)
        assert matcher.search_app("Notion", "Notion Labs").found is True

    def test_search_failure(self, test_config, error_records):
        client = FakeSearchClient(error=SearchError("iTunes API error: 503"))
        result = ConfidenceMatcher(client=client, config=test_config).search_app("Notion")

        assert result.found is False
        assert result.request_failed is True
        assert result.error == "iTunes API error: 503"
        assert error_records()[-1]["stage"] == "search_canonical"

    def test_unexpected_body_reported_not_raised(self, test_config):
        session = FakeSession(FakeResponse(200, payload=[{"trackId": 1}]))
        client = ItunesSearchClient(session=session, config=test_config)
        result = ConfidenceMatcher(client=client, config=test_config).search_app("Notion")

        assert result.found is False
        assert result.request_failed is True
        assert result.error == "iTunes API returned an unexpected body"
