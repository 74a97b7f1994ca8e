"""Tests for text utility functions."""

from __future__ import annotations

import math

import pytest

from libassist.utils.text import chunk_text, collapse_whitespace, normalize_whitespace, truncate


class TestChunkText:
    """Test chunk_text function."""

    def test_chunk_short_text(self) -> None:
        """Should return single chunk for short text."""
        chunks = list(chunk_text("Short text", max_chars=100, overlap=10))

        assert chunks == ["Short text"]

    def test_chunk_exactly_max_chars(self) -> None:
        """Text of exactly max_chars is a single chunk."""
        text = "x" * 100
        assert list(chunk_text(text, max_chars=100, overlap=20)) == [text]

    def test_chunk_empty_text(self) -> None:
        """Empty text yields one empty chunk."""
        assert list(chunk_text("", max_chars=100, overlap=10)) == [""]

    def test_chunk_long_text_count(self) -> None:
        """Chunk count follows the window arithmetic."""
        text = "a" * 2500
        chunks = list(chunk_text(text, max_chars=1000, overlap=200))

        assert len(chunks) == math.ceil((2500 - 200) / 800)
        assert len(chunks) == 3
        assert all(len(chunk) <= 1000 for chunk in chunks)

    def test_chunk_overlap(self) -> None:
        """Consecutive chunks share exactly the overlap."""
        text = "".join(chr(ord("a") + i % 26) for i in range(260))
        chunks = list(chunk_text(text, max_chars=100, overlap=20))

        for previous, current in zip(chunks, chunks[1:]):
            assert previous[-20:] == current[:20]

    def test_chunk_covers_whole_text(self) -> None:
        """Joining the chunks without their overlap restores the text."""
        text = "".join(str(i % 10) for i in range(1234))
        chunks = list(chunk_text(text, max_chars=300, overlap=50))

        rebuilt = chunks[0] + "".join(chunk[50:] for chunk in chunks[1:])
        assert rebuilt == text
        assert chunks[-1].endswith(text[-10:])

    def test_chunk_no_trailing_window(self) -> None:
        """No chunk lies wholly inside the previous one."""
        text = "b" * 1800
        chunks = list(chunk_text(text, max_chars=1000, overlap=200))

        assert len(chunks) == 2
        assert len(chunks[-1]) == 1000

    def test_overlap_clamped(self) -> None:
        """Overlap at or above max_chars still terminates."""
        chunks = list(chunk_text("abcdef", max_chars=3, overlap=10))

        assert chunks[0] == "abc"
        assert chunks[-1].endswith("f")
        assert len(chunks) == 4

    def test_negative_overlap_treated_as_zero(self) -> None:
        """Negative overlap behaves like no overlap."""
        assert list(chunk_text("abcdef", max_chars=3, overlap=-5)) == ["abc", "def"]

    def test_invalid_max_chars(self) -> None:
        """max_chars must be positive."""
        with pytest.raises(ValueError):
            list(chunk_text("text", max_chars=0))


class TestNormalizeWhitespace:
    """Test normalize_whitespace function."""

    def test_normalize_simple(self) -> None:
        """Should join and strip lines."""
        lines = ["  Line 1  ", "  Line 2  ", "  Line 3  "]
        assert normalize_whitespace(lines) == "Line 1\nLine 2\nLine 3"

    def test_normalize_empty_lines(self) -> None:
        """Should skip empty lines."""
        lines = ["Line 1", "", "  ", "Line 2", "\n", "Line 3"]
        assert normalize_whitespace(lines) == "Line 1\nLine 2\nLine 3"

    def test_normalize_all_empty(self) -> None:
        """Should return empty string for all empty lines."""
        assert normalize_whitespace(["", "  ", "\n", "\t"]) == ""


class TestCollapseWhitespace:
    """Test collapse_whitespace function."""

    def test_collapses_runs(self) -> None:
        assert collapse_whitespace("  Електронний\n\t каталог  ") == "Електронний каталог"

    def test_blank(self) -> None:
        assert collapse_whitespace(" \n ") == ""


class TestTruncate:
    """Test truncate function."""

    def test_short_text_unchanged(self) -> None:
        assert truncate("hello", 10) == "hello"

    def test_long_text_cut(self) -> None:
        result = truncate("x" * 50, 10)
        assert len(result) <= 13
        assert result.startswith("x" * 10)
