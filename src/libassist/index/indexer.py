"""Document processing pipeline: chunk, embed and persist."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from libassist.index.storage import LibraryStore
from libassist.ingestion.pdf_loader import load_document_text
from libassist.models import (
    SOURCE_TYPES,
    SUPPORTED_LANGUAGES,
    DocumentChunk,
    DocumentMetadata,
    ProcessResult,
)
from libassist.utils.text import chunk_text

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ChunkOutcome:
    """Result of embedding and storing one chunk."""

    chunk_index: int
    ok: bool
    error: Optional[str] = None


class DocumentProcessor:
    """Coordinates chunking, embedding and persistence of one document."""

    def __init__(
        self,
        embedder,
        store: LibraryStore,
        *,
        chunk_chars: int = 1000,
        overlap: int = 200,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.chunk_chars = chunk_chars
        self.overlap = overlap

    def process_document(
        self,
        document_id: str,
        title: str,
        content: str,
        source_type: str,
        language: str = "uk",
        url: Optional[str] = None,
        author: Optional[str] = None,
        published_date: Optional[datetime] = None,
    ) -> ProcessResult:
        """Chunk ``content``, embed every chunk and record the outcome.

        A chunk whose embedding fails is logged and skipped; the document is then
        marked as partially processed. Invalid arguments raise ``ValueError``
        before anything is written.
        """
        if not document_id:
            raise ValueError("document_id is required")
        if not content or not content.strip():
            raise ValueError(f"Document {document_id} has no content")
        if source_type not in SOURCE_TYPES:
            raise ValueError(f"Unknown source type: {source_type}")
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")

        chunks = list(chunk_text(content, max_chars=self.chunk_chars, overlap=self.overlap))

        if self.store.get_document_metadata(document_id) is not None:
            LOGGER.info("Reprocessing %s, removing previous chunks", document_id)
            self.store.delete_document(document_id)

        self.store.create_document_metadata(
            DocumentMetadata(
                document_id=document_id,
                title=title,
                source_type=source_type,
                language=language,
                total_chunks=len(chunks),
                is_processed=False,
                url=url,
                author=author,
                published_date=published_date,
            )
        )

        try:
            outcomes: List[ChunkOutcome] = []
            for index, text in enumerate(chunks):
                outcome = self._process_chunk(
                    index,
                    text,
                    document_id=document_id,
                    title=title,
                    url=url,
                    source_type=source_type,
                    language=language,
                )
                if not outcome.ok:
                    LOGGER.error(
                        "Failed to process chunk %s of %s: %s", index, document_id, outcome.error
                    )
                outcomes.append(outcome)

            created = sum(1 for outcome in outcomes if outcome.ok)
            complete = created == len(chunks)
            self.store.update_document_metadata(
                document_id,
                is_processed=complete,
                processing_error=None
                if complete
                else f"Partial processing completed ({created}/{len(chunks)} chunks)",
            )
            LOGGER.info("Processed %s: %s/%s chunks", document_id, created, len(chunks))
            return ProcessResult(success=complete, chunks_created=created)

        except Exception as exc:
            LOGGER.exception("Processing of %s failed", document_id)
            message = str(exc) or exc.__class__.__name__
            self.store.update_document_metadata(
                document_id, is_processed=False, processing_error=message
            )
            return ProcessResult(success=False, chunks_created=0, error=message)

    def _process_chunk(
        self,
        index: int,
        text: str,
        *,
        document_id: str,
        title: str,
        url: Optional[str],
        source_type: str,
        language: str,
    ) -> ChunkOutcome:
        try:
            embedding = self.embedder.embed_query(text)
            self.store.create_document_chunk(
                DocumentChunk(
                    document_id=document_id,
                    document_title=title,
                    document_url=url,
                    chunk_index=index,
                    content=text,
                    embedding=embedding,
                    source_type=source_type,
                    language=language,
                )
            )
        except Exception as exc:  # one bad chunk must not abort the batch
            return ChunkOutcome(chunk_index=index, ok=False, error=str(exc) or exc.__class__.__name__)
        return ChunkOutcome(chunk_index=index, ok=True)

    def ingest_path(
        self,
        path: Path,
        *,
        source_type: str = "other",
        language: str = "uk",
        document_id: Optional[str] = None,
        title: Optional[str] = None,
        url: Optional[str] = None,
    ) -> ProcessResult:
        """Load a PDF or text file and process its contents."""
        text, detected_title = load_document_text(path)
        return self.process_document(
            document_id or path.stem,
            title or detected_title,
            text,
            source_type,
            language,
            url=url,
        )
