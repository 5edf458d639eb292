"""Tests for text utilities."""

from __future__ import annotations

import pytest

from docrank.utils.text import (
    content_fingerprint,
    count_occurrences,
    levenshtein_distance,
    normalize_whitespace,
    sha256_text,
    string_similarity,
    word_count,
)


class TestNormalizeWhitespace:
    """Test normalize_whitespace function."""

    def test_strips_and_joins_lines(self) -> None:
        """Should strip each line and drop empty ones."""
        assert normalize_whitespace(["  a  ", "", "   ", "b"]) == "a\nb"

    def test_empty_input(self) -> None:
        """Should return empty string for no lines."""
        assert normalize_whitespace([]) == ""


class TestCountOccurrences:
    """Test count_occurrences function."""

    def test_counts_non_overlapping(self) -> None:
        """Should count non-overlapping matches."""
        assert count_occurrences("aaaa", "aa") == 2
        assert count_occurrences("spring boot spring", "spring") == 2

    def test_missing_inputs(self) -> None:
        """Should return 0 for empty text or term."""
        assert count_occurrences(None, "x") == 0
        assert count_occurrences("text", "") == 0
        assert count_occurrences("", "x") == 0


class TestFingerprint:
    """Test content_fingerprint function."""

    def test_known_values(self) -> None:
        """Should match the 32-bit base-31 string hash."""
        assert content_fingerprint("") == "00000000"
        assert content_fingerprint("a") == "00000097"
        assert content_fingerprint("hello") == "99162322"

    def test_deterministic(self) -> None:
        """Same content always gives the same fingerprint."""
        text = "Spring Boot auto-configuration " * 20
        assert content_fingerprint(text) == content_fingerprint(text)

    def test_not_collision_resistant(self) -> None:
        """Known colliding pair shares a fingerprint."""
        assert content_fingerprint("Aa") == content_fingerprint("BB")

    def test_non_negative_digits(self) -> None:
        """Fingerprint is always a non-negative decimal string of 8+ digits."""
        value = content_fingerprint("some long documentation text " * 50)
        assert value.isdigit()
        assert len(value) >= 8


class TestLevenshtein:
    """Test edit distance helpers."""

    @pytest.mark.parametrize(
        "left,right,expected",
        [
            ("kitten", "sitting", 3),
            ("controler", "controller", 1),
            ("", "abc", 3),
            ("abc", "", 3),
            ("same", "same", 0),
        ],
    )
    def test_distance(self, left: str, right: str, expected: int) -> None:
        """Should compute classic edit distance."""
        assert levenshtein_distance(left, right) == expected

    def test_similarity(self) -> None:
        """Should normalise distance by the longer length."""
        assert string_similarity("controler", "controller") == pytest.approx(0.9)
        assert string_similarity("", "") == 1.0
        assert string_similarity("abc", "xyz") == 0.0


class TestMisc:
    """Test small helpers."""

    def test_word_count(self) -> None:
        """Should split on any whitespace."""
        assert word_count("one  two\nthree") == 3

    def test_sha256_text(self) -> None:
        """Should hash UTF-8 bytes to hex."""
        assert sha256_text("") == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )
