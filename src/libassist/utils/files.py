"""Utility helpers for working with files."""

from __future__ import annotations

from pathlib import Path
from typing import Collection, Iterable, Iterator

DOCUMENT_SUFFIXES = frozenset({".pdf", ".txt", ".md", ".html", ".htm"})


def iter_document_paths(
    inputs: Iterable[Path], suffixes: Collection[str] = DOCUMENT_SUFFIXES
) -> Iterator[Path]:
    """Yield ingestible document paths, descending into directories in sorted order."""
    for item in inputs:
        if item.is_dir():
            yield from iter_document_paths(
                sorted(child for child in item.rglob("*") if child.is_file()), suffixes
            )
        elif item.is_file() and item.suffix.lower() in suffixes:
            yield item
