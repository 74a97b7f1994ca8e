"""Tests for semantic search interface."""

from __future__ import annotations

from unittest.mock import MagicMock

import numpy as np
import pytest

from libassist.index.memory import InMemoryLibraryStore
from libassist.index.search import ScoredChunk, Searcher, cosine_similarity
from libassist.models import DocumentChunk


def _chunk(title: str, embedding, language: str = "uk", index: int = 0) -> DocumentChunk:
    return DocumentChunk(
        document_id=title.lower(),
        document_title=title,
        chunk_index=index,
        content=f"{title} content",
        source_type="other",
        language=language,
        embedding=None if embedding is None else np.asarray(embedding, dtype="float32"),
    )


class TestCosineSimilarity:
    """Test cosine_similarity function."""

    def test_identical_vectors(self) -> None:
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors(self) -> None:
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_zero_vector(self) -> None:
        """Zero norm scores 0 instead of dividing by zero."""
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0

    def test_length_mismatch(self) -> None:
        assert cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0]) == 0.0

    def test_empty_and_missing(self) -> None:
        assert cosine_similarity([], []) == 0.0
        assert cosine_similarity(None, [1.0]) == 0.0


class TestSearcher:
    """Test Searcher class."""

    @pytest.fixture
    def store(self) -> InMemoryLibraryStore:
        store = InMemoryLibraryStore()
        store.create_document_chunk(_chunk("Best", [1.0, 0.0]))
        store.create_document_chunk(_chunk("Good", [0.8, 0.6]))
        store.create_document_chunk(_chunk("Weak", [0.0, 1.0]))
        store.create_document_chunk(_chunk("English", [1.0, 0.0], language="en"))
        return store

    @pytest.fixture
    def embedder(self) -> MagicMock:
        embedder = MagicMock()
        embedder.embed_query.return_value = np.array([1.0, 0.0], dtype="float32")
        return embedder

    def test_results_sorted_and_thresholded(self, embedder, store) -> None:
        """Scores are non-increasing and all above the threshold."""
        searcher = Searcher(embedder, store)
        results = searcher.semantic_search("запит", "uk", top_k=5, threshold=0.5)

        assert [item.chunk.document_title for item in results] == ["Best", "Good"]
        assert results[0].score == pytest.approx(1.0)
        assert results[1].score == pytest.approx(0.8)
        embedder.embed_query.assert_called_once_with("запит")

    def test_language_filter(self, embedder, store) -> None:
        """Only chunks in the requested language are ranked."""
        results = Searcher(embedder, store).semantic_search("query", "en", threshold=0.0)

        assert [item.chunk.document_title for item in results] == ["English"]

    def test_top_k(self, embedder, store) -> None:
        results = Searcher(embedder, store).semantic_search("q", "uk", top_k=1, threshold=-1.0)

        assert len(results) == 1
        assert results[0].chunk.document_title == "Best"

    def test_ties_keep_store_order(self, embedder) -> None:
        store = InMemoryLibraryStore()
        store.create_document_chunk(_chunk("First", [2.0, 0.0]))
        store.create_document_chunk(_chunk("Second", [1.0, 0.0]))

        results = Searcher(embedder, store).semantic_search("q", "uk")

        assert [item.chunk.document_title for item in results] == ["First", "Second"]

    def test_missing_embedding_scores_zero(self, embedder) -> None:
        store = InMemoryLibraryStore()
        store.create_document_chunk(_chunk("Bare", None))

        assert Searcher(embedder, store).semantic_search("q", "uk", threshold=0.5) == []
        results = Searcher(embedder, store).semantic_search("q", "uk", threshold=0.0)
        assert results[0].score == 0.0

    def test_empty_store(self, embedder) -> None:
        assert Searcher(embedder, InMemoryLibraryStore()).semantic_search("q") == []

    def test_embedding_failure_propagates(self, store) -> None:
        embedder = MagicMock()
        embedder.embed_query.side_effect = RuntimeError("embedding service down")

        with pytest.raises(RuntimeError, match="embedding service down"):
            Searcher(embedder, store).semantic_search("q")


class TestRagContext:
    """Test Searcher.rag_context formatting."""

    def test_empty_when_nothing_matches(self) -> None:
        embedder = MagicMock()
        embedder.embed_query.return_value = np.array([0.0, 1.0])
        store = InMemoryLibraryStore()
        store.create_document_chunk(_chunk("Best", [1.0, 0.0]))

        assert Searcher(embedder, store).rag_context("q", "uk") == ""

    def test_formats_blocks(self) -> None:
        embedder = MagicMock()
        embedder.embed_query.return_value = np.array([1.0, 0.0])
        store = InMemoryLibraryStore()
        store.create_document_chunk(_chunk("Alpha", [1.0, 0.0]))
        store.create_document_chunk(_chunk("Beta", [0.9, 0.1]))

        context = Searcher(embedder, store).rag_context("q", "uk", top_k=3)

        assert context.startswith("\n\n## Релевантна інформація з документів:\n\n")
        assert "**Alpha:**\nAlpha content" in context
        assert "\n\n---\n\n**Beta:**\nBeta content" in context

    def test_scored_chunk_fields(self) -> None:
        chunk = _chunk("Alpha", [1.0])
        scored = ScoredChunk(chunk=chunk, score=0.7)
        assert scored.chunk is chunk
        assert scored.score == 0.7
