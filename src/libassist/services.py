"""Wiring of the store, models and pipelines from an ``AppConfig``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from libassist.config import AppConfig
from libassist.embedding.encoder import (
    DEFAULT_MODEL,
    DEFAULT_OPENAI_MODEL,
    EmbeddingConfig,
    create_embedder,
)
from libassist.index.indexer import DocumentProcessor
from libassist.index.memory import InMemoryLibraryStore
from libassist.index.search import Searcher
from libassist.index.storage import LibraryStore, SQLiteLibraryStore
from libassist.pipeline.chat import ChatService
from libassist.pipeline.completion import CompletionClient
from libassist.pipeline.language import LanguageDetector
from libassist.pipeline.reply import ReplyGenerator
from libassist.sync.catalog import CatalogSync
from libassist.sync.scheduler import SyncScheduler

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class Services:
    config: AppConfig
    store: LibraryStore
    embedder: object
    searcher: Searcher
    processor: DocumentProcessor
    completion: CompletionClient
    generator: ReplyGenerator
    chat: ChatService
    sync: CatalogSync
    scheduler: SyncScheduler

    def close(self) -> None:
        self.scheduler.stop(timeout=5.0)
        self.store.close()


def create_store(config: AppConfig, base_dir: Path | None = None) -> LibraryStore:
    """Instantiate the configured store backend."""
    if config.store_backend == "memory":
        return InMemoryLibraryStore()
    db_path = config.resolve_db_path(base_dir or Path.cwd())
    db_path.parent.mkdir(parents=True, exist_ok=True)
    LOGGER.debug("Opening SQLite store at %s", db_path)
    return SQLiteLibraryStore(db_path)


def embedding_config(config: AppConfig) -> EmbeddingConfig:
    model_name = config.model_name
    if config.embedding_backend == "openai" and model_name == DEFAULT_MODEL:
        model_name = DEFAULT_OPENAI_MODEL
    return EmbeddingConfig(
        backend=config.embedding_backend,
        model_name=model_name,
        timeout=config.request_timeout,
    )


def build_services(config: AppConfig | None = None) -> Services:
    config = config or AppConfig.from_env()
    store = create_store(config)
    embedder = create_embedder(embedding_config(config))
    searcher = Searcher(embedder, store)
    processor = DocumentProcessor(
        embedder, store, chunk_chars=config.chunk_chars, overlap=config.overlap
    )
    completion = CompletionClient(config.chat_model, timeout=config.request_timeout)
    generator = ReplyGenerator(
        store,
        searcher,
        completion,
        history_limit=config.history_limit,
        rag_top_k=config.rag_top_k,
        similarity_threshold=config.similarity_threshold,
    )
    chat = ChatService(
        store,
        generator,
        LanguageDetector(cyrillic_default=config.default_language),
        default_language=config.default_language,
    )
    sync = CatalogSync(store, url=config.catalog_url, timeout=config.catalog_timeout)
    scheduler = SyncScheduler(sync, interval=config.sync_interval)
    return Services(
        config=config,
        store=store,
        embedder=embedder,
        searcher=searcher,
        processor=processor,
        completion=completion,
        generator=generator,
        chat=chat,
        sync=sync,
        scheduler=scheduler,
    )
