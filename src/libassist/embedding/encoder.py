"""Embedding model management."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Literal, Sequence

import numpy as np
import openai
from sentence_transformers import SentenceTransformer

DEFAULT_MODEL = "sentence-transformers/paraphrase-multilingual-MiniLM-L12-v2"
DEFAULT_OPENAI_MODEL = "text-embedding-3-small"

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class EmbeddingConfig:
    backend: Literal["sentence-transformers", "openai"] = "sentence-transformers"
    model_name: str = DEFAULT_MODEL
    batch_size: int = 16
    normalize: bool = True
    device: str | None = None
    timeout: float = 30.0
    api_key: str | None = None
    base_url: str | None = None


class EmbeddingModel:
    """Thin wrapper around `SentenceTransformer` for query and document embeddings."""

    def __init__(self, config: EmbeddingConfig | None = None) -> None:
        self.config = config or EmbeddingConfig()
        self._model = SentenceTransformer(self.config.model_name, device=self.config.device)
        self.dimension = int(self._model.get_sentence_embedding_dimension())
        LOGGER.info(
            "Loaded embedding model %s (dimension=%s)", self.config.model_name, self.dimension
        )

    def embed(self, texts: Sequence[str] | Iterable[str]) -> np.ndarray:
        """Return float32 embeddings for input texts."""
        sentences = list(texts)
        embeddings = self._model.encode(
            sentences,
            batch_size=self.config.batch_size,
            show_progress_bar=False,
            convert_to_numpy=True,
            normalize_embeddings=self.config.normalize,
        )
        return embeddings.astype("float32", copy=False)

    def embed_query(self, text: str) -> np.ndarray:
        """Convenience wrapper for single-query embedding."""
        return self.embed([text])[0]


class OpenAIEmbeddingModel:
    """Hosted embeddings through the OpenAI API.

    Every request is bounded by ``config.timeout``; errors raised by the client
    (timeouts, non-success responses) propagate unchanged.
    """

    def __init__(self, config: EmbeddingConfig | None = None, client: openai.OpenAI | None = None) -> None:
        self.config = config or EmbeddingConfig(backend="openai", model_name=DEFAULT_OPENAI_MODEL)
        self._client = client or openai.OpenAI(
            api_key=self.config.api_key,
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            max_retries=0,
        )
        self.dimension: int | None = None

    def embed(self, texts: Sequence[str] | Iterable[str]) -> np.ndarray:
        inputs = list(texts)
        response = self._client.embeddings.create(model=self.config.model_name, input=inputs)
        vectors = np.asarray([item.embedding for item in response.data], dtype="float32")
        if vectors.ndim == 2:
            self.dimension = int(vectors.shape[1])
        return vectors

    def embed_query(self, text: str) -> np.ndarray:
        return self.embed([text])[0]


def create_embedder(config: EmbeddingConfig) -> EmbeddingModel | OpenAIEmbeddingModel:
    """Instantiate the configured embedding backend."""
    if config.backend == "openai":
        return OpenAIEmbeddingModel(config)
    if config.backend == "sentence-transformers":
        return EmbeddingModel(config)
    raise ValueError(f"Unknown embedding backend: {config.backend}")
