"""Semantic search over stored document chunks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from libassist.index.storage import LibraryStore
from libassist.models import DocumentChunk

DEFAULT_SIMILARITY_THRESHOLD = 0.5

RAG_CONTEXT_HEADINGS = {
    "uk": "Релевантна інформація з документів:",
    "ru": "Релевантная информация из документов:",
    "en": "Relevant information from documents:",
}


def cosine_similarity(a: Optional[Sequence[float]], b: Optional[Sequence[float]]) -> float:
    """Cosine of the angle between two vectors.

    Vectors of different length, empty vectors and zero vectors score 0.0: a
    mismatch means a stale embedding, which should simply fail to rank.
    """
    if a is None or b is None:
        return 0.0
    left = np.asarray(a, dtype="float64").ravel()
    right = np.asarray(b, dtype="float64").ravel()
    if left.size == 0 or left.shape != right.shape:
        return 0.0
    norm = float(np.linalg.norm(left) * np.linalg.norm(right))
    if norm == 0.0:
        return 0.0
    return float(np.dot(left, right) / norm)


@dataclass(slots=True)
class ScoredChunk:
    chunk: DocumentChunk
    score: float


class Searcher:
    """High-level API to query the chunk store."""

    def __init__(self, embedder, store: LibraryStore) -> None:
        self.embedder = embedder
        self.store = store

    def semantic_search(
        self,
        query: str,
        language: str = "uk",
        *,
        top_k: int = 5,
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> List[ScoredChunk]:
        """Rank chunks in ``language`` by cosine similarity to ``query``.

        Embedding errors propagate to the caller. Ties keep the store's order.
        """
        query_embedding = self.embedder.embed_query(query)
        chunks = self.store.get_document_chunks(language)
        if not chunks:
            return []

        scored = [
            ScoredChunk(chunk=chunk, score=cosine_similarity(query_embedding, chunk.embedding))
            for chunk in chunks
        ]
        kept = [item for item in scored if item.score >= threshold]
        kept.sort(key=lambda item: item.score, reverse=True)
        return kept[: max(top_k, 0)]

    def rag_context(
        self,
        query: str,
        language: str = "uk",
        *,
        top_k: int = 3,
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> str:
        """Format the best matching chunks as a prompt section, or "" when none match."""
        results = self.semantic_search(query, language, top_k=top_k, threshold=threshold)
        if not results:
            return ""

        blocks = [
            f"**{item.chunk.document_title or 'Unknown'}:**\n{item.chunk.content}"
            for item in results
        ]
        heading = RAG_CONTEXT_HEADINGS.get(language, RAG_CONTEXT_HEADINGS["en"])
        return f"\n\n## {heading}\n\n" + "\n\n---\n\n".join(blocks)
