"""Tests for file utility functions."""

from __future__ import annotations

from pathlib import Path

from libassist.utils.files import iter_document_paths


class TestIterDocumentPaths:
    """Test iter_document_paths function."""

    def test_single_file(self, tmp_path: Path) -> None:
        """Should yield a single supported file."""
        pdf = tmp_path / "rules.pdf"
        pdf.write_text("dummy")

        assert list(iter_document_paths([pdf])) == [pdf]

    def test_directory_filters_suffixes(self, tmp_path: Path) -> None:
        """Should keep only supported document types."""
        (tmp_path / "a.pdf").write_text("a")
        (tmp_path / "b.txt").write_text("b")
        (tmp_path / "c.md").write_text("c")
        (tmp_path / "d.html").write_text("d")
        (tmp_path / "table.xlsx").write_text("x")

        names = [p.name for p in iter_document_paths([tmp_path])]

        assert names == ["a.pdf", "b.txt", "c.md", "d.html"]

    def test_nested_directories(self, tmp_path: Path) -> None:
        subdir = tmp_path / "subdir"
        subdir.mkdir()
        (tmp_path / "root.pdf").write_text("root")
        (subdir / "nested.txt").write_text("nested")

        names = {p.name for p in iter_document_paths([tmp_path])}

        assert names == {"root.pdf", "nested.txt"}

    def test_uppercase_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "REPORT.PDF"
        path.write_text("dummy")

        assert list(iter_document_paths([path])) == [path]

    def test_custom_suffixes(self, tmp_path: Path) -> None:
        (tmp_path / "a.pdf").write_text("a")
        (tmp_path / "b.txt").write_text("b")

        paths = list(iter_document_paths([tmp_path], suffixes={".txt"}))

        assert [p.name for p in paths] == ["b.txt"]

    def test_empty_directory(self, tmp_path: Path) -> None:
        assert list(iter_document_paths([tmp_path])) == []

    def test_nonexistent_file(self, tmp_path: Path) -> None:
        """Should skip nonexistent files."""
        assert list(iter_document_paths([tmp_path / "missing.pdf"])) == []
