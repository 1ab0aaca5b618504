"""
Tests for the edit-distance similarity engine (similarity.py).
"""
from __future__ import annotations

import pytest

from brand_drift.similarity import (
    calculate_similarity,
    levenshtein_distance,
    round_half_up,
)


# =============================================================================
# Test Levenshtein Distance
# =============================================================================


class TestLevenshteinDistance:
    """Test the levenshtein_distance function."""

    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ("kitten", "sitting", 3),
            ("flaw", "lawn", 2),
            ("", "abc", 3),
            ("abc", "", 3),
            ("", "", 0),
            ("same", "same", 0),
            ("abcXdef", "abcYYdef", 2),
            ("good", "terrible", 8),
        ],
    )
    def test_known_distances(self, a, b, expected):
        """Verify distances for textbook pairs."""
        assert levenshtein_distance(a, b) == expected

    def test_symmetric(self):
        """Distance does not depend on argument order."""
        a = "Acme is the best CRM for startups"
        b = "Globex is a solid CRM for enterprises"
        assert levenshtein_distance(a, b) == levenshtein_distance(b, a)

    def test_case_sensitive(self):
        """Case differences count as substitutions."""
        assert levenshtein_distance("Acme", "acme") == 1

    def test_shared_prefix_and_suffix(self):
        """Common prefix and suffix do not inflate the distance."""
        prefix = "x" * 200
        suffix = "y" * 200
        assert levenshtein_distance(prefix + "abc" + suffix, prefix + "abd" + suffix) == 1

    def test_overlapping_prefix_suffix(self):
        """Repeated characters where prefix and suffix could overlap."""
        assert levenshtein_distance("aaa", "aaaa") == 1
        assert levenshtein_distance("abab", "ab") == 2


# =============================================================================
# Test Similarity Percentage
# =============================================================================


class TestCalculateSimilarity:
    """Test the calculate_similarity function."""

    def test_identical_is_100(self):
        assert calculate_similarity("Acme is the best CRM", "Acme is the best CRM") == 100

    def test_both_empty_is_100(self):
        """Two empty texts are defined as identical."""
        assert calculate_similarity("", "") == 100

    def test_one_empty_is_0(self):
        assert calculate_similarity("", "hello") == 0
        assert calculate_similarity("hello", "") == 0

    def test_rounding(self):
        """kitten -> sitting: (7 - 3) / 7 = 57.14% rounds to 57."""
        assert calculate_similarity("kitten", "sitting") == 57

    def test_disjoint_characters(self):
        """No shared characters at equal length means zero similarity."""
        assert calculate_similarity("AcmeRocks", "123456789") == 0

    def test_symmetric(self):
        a = "Acme is a good choice"
        b = "Acme is a terrible choice"
        assert calculate_similarity(a, b) == calculate_similarity(b, a) == 68

    def test_returns_int_in_range(self):
        value = calculate_similarity("some answer text", "another answer")
        assert isinstance(value, int)
        assert 0 <= value <= 100


class TestRoundHalfUp:
    """Test half-up rounding used for stored percentages."""

    @pytest.mark.parametrize(
        "value, expected",
        [(0.5, 1), (1.5, 2), (2.5, 3), (57.5, 58), (57.49, 57), (0.0, 0), (99.9, 100)],
    )
    def test_half_up(self, value, expected):
        """Ties round up, unlike Python's banker's rounding."""
        assert round_half_up(value) == expected
