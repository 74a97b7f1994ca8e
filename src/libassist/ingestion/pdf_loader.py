"""Document text extraction for ingestion.

Uses PyMuPDF (fitz) for PDF text extraction; anything else is read as UTF-8 text.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Tuple

import fitz  # PyMuPDF

from libassist.utils.text import normalize_whitespace

LOGGER = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".md", ".html", ".htm"}


def iter_text_parts(path: Path) -> Iterator[str]:
    """Yield normalized text content from a PDF file page by page."""
    try:
        doc = fitz.open(path)
    except Exception as exc:
        LOGGER.error("Failed to open PDF %s: %s", path, exc)
        return

    try:
        for index in range(len(doc)):
            try:
                page = doc[index]
                text = page.get_text() or ""
                normalized = normalize_whitespace(text.splitlines())
                if normalized:
                    yield normalized + "\n"
            except Exception as exc:  # pragma: no cover
                LOGGER.warning("Failed to read page %s in %s: %s", index, path, exc)
    finally:
        doc.close()


def get_pdf_title(path: Path) -> str:
    """Return the PDF's embedded title, or the file stem."""
    doc = fitz.open(path)
    try:
        metadata = doc.metadata or {}
        return metadata.get("title") or path.stem
    finally:
        doc.close()


def load_document_text(path: Path) -> Tuple[str, str]:
    """Return ``(text, title)`` for a PDF or plain-text document."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".pdf":
        try:
            title = get_pdf_title(path)
        except Exception as exc:
            LOGGER.warning("Failed to read metadata for %s: %s", path, exc)
            title = path.stem
        return "".join(iter_text_parts(path)), title
    if suffix in TEXT_SUFFIXES:
        return path.read_text(encoding="utf-8"), path.stem
    raise ValueError(f"Unsupported document type: {path.suffix or path.name}")
