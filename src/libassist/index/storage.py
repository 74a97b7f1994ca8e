"""Persistence for document chunks, resources and conversations."""

from __future__ import annotations

import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence

import numpy as np

from libassist.models import (
    Conversation,
    DocumentChunk,
    DocumentMetadata,
    LibraryResource,
    Message,
    UserQuery,
)

METADATA_FIELDS = ("is_processed", "processing_error", "title", "total_chunks", "url", "author")
RESOURCE_FIELDS = (
    "name_en",
    "name_uk",
    "name_ru",
    "description_en",
    "description_uk",
    "description_ru",
    "type",
    "url",
    "keywords",
)


class LibraryStore(ABC):
    """Storage contract shared by the SQLite and in-memory backends."""

    # Documents
    @abstractmethod
    def create_document_metadata(self, metadata: DocumentMetadata) -> DocumentMetadata: ...

    @abstractmethod
    def update_document_metadata(self, document_id: str, **updates: Any) -> Optional[DocumentMetadata]: ...

    @abstractmethod
    def get_document_metadata(self, document_id: str) -> Optional[DocumentMetadata]: ...

    @abstractmethod
    def list_document_metadata(self) -> List[DocumentMetadata]: ...

    @abstractmethod
    def create_document_chunk(self, chunk: DocumentChunk) -> DocumentChunk: ...

    @abstractmethod
    def get_document_chunks(self, language: Optional[str] = None) -> List[DocumentChunk]:
        """Return chunks in insertion order, optionally restricted to one language."""

    @abstractmethod
    def get_document_chunks_by_document(self, document_id: str) -> List[DocumentChunk]: ...

    @abstractmethod
    def delete_document_chunks(self, document_id: str) -> int: ...

    @abstractmethod
    def delete_document(self, document_id: str) -> bool:
        """Remove a document's metadata and all of its chunks."""

    # Resources
    @abstractmethod
    def create_resource(self, resource: LibraryResource) -> LibraryResource: ...

    @abstractmethod
    def update_resource(self, resource_id: int, **updates: Any) -> Optional[LibraryResource]: ...

    @abstractmethod
    def delete_resource(self, resource_id: int) -> bool: ...

    @abstractmethod
    def get_resource_by_url(self, url: str) -> Optional[LibraryResource]: ...

    @abstractmethod
    def list_resources(self, type: Optional[str] = None) -> List[LibraryResource]: ...

    @abstractmethod
    def search_resources(self, query: str) -> List[LibraryResource]:
        """Case-insensitive substring match over every name and description field."""

    # Analytics and conversations
    @abstractmethod
    def log_user_query(self, query: UserQuery) -> UserQuery: ...

    @abstractmethod
    def list_user_queries(self) -> List[UserQuery]: ...

    @abstractmethod
    def create_conversation(self, conversation: Conversation) -> Conversation: ...

    @abstractmethod
    def get_conversation(self, conversation_id: int) -> Optional[Conversation]: ...

    @abstractmethod
    def list_conversations(self, user_id: int) -> List[Conversation]: ...

    @abstractmethod
    def delete_conversation(self, conversation_id: int) -> bool:
        """Remove a conversation together with its messages."""

    @abstractmethod
    def create_message(self, message: Message) -> Message: ...

    @abstractmethod
    def get_messages(self, conversation_id: int) -> List[Message]: ...

    def close(self) -> None:
        """Release backend resources."""


def _encode_embedding(embedding: Optional[Sequence[float]]) -> Optional[bytes]:
    if embedding is None:
        return None
    return sqlite3.Binary(np.asarray(embedding, dtype="float32").tobytes())


def _decode_embedding(blob: Optional[bytes]) -> Optional[np.ndarray]:
    if blob is None:
        return None
    return np.frombuffer(blob, dtype="float32")


def _encode_date(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _decode_date(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SQLiteLibraryStore(LibraryStore):
    """SQLite backend; embeddings are stored as float32 blobs."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    id INTEGER PRIMARY KEY,
                    document_id TEXT NOT NULL UNIQUE,
                    title TEXT NOT NULL,
                    source_type TEXT NOT NULL,
                    language TEXT NOT NULL,
                    total_chunks INTEGER NOT NULL DEFAULT 0,
                    is_processed INTEGER NOT NULL DEFAULT 0,
                    processing_error TEXT,
                    url TEXT,
                    author TEXT,
                    published_date TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE TRIGGER IF NOT EXISTS documents_updated
                AFTER UPDATE ON documents
                BEGIN
                    UPDATE documents SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
                END;
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chunks (
                    id INTEGER PRIMARY KEY,
                    document_id TEXT NOT NULL,
                    document_title TEXT NOT NULL,
                    document_url TEXT,
                    chunk_index INTEGER NOT NULL,
                    content TEXT NOT NULL,
                    embedding BLOB,
                    source_type TEXT NOT NULL,
                    language TEXT NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """CREATE INDEX IF NOT EXISTS idx_chunks_document_id
                    ON chunks(document_id)
                """
            )
            conn.execute(
                """CREATE INDEX IF NOT EXISTS idx_chunks_language
                    ON chunks(language)
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS resources (
                    id INTEGER PRIMARY KEY,
                    name_en TEXT NOT NULL,
                    name_uk TEXT NOT NULL,
                    name_ru TEXT NOT NULL,
                    description_en TEXT,
                    description_uk TEXT,
                    description_ru TEXT,
                    type TEXT NOT NULL,
                    url TEXT,
                    keywords TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """CREATE INDEX IF NOT EXISTS idx_resources_url
                    ON resources(url)
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS user_queries (
                    id INTEGER PRIMARY KEY,
                    user_id INTEGER,
                    conversation_id INTEGER,
                    query TEXT NOT NULL,
                    language TEXT NOT NULL,
                    resources_returned TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS conversations (
                    id INTEGER PRIMARY KEY,
                    user_id INTEGER NOT NULL,
                    title TEXT NOT NULL,
                    language TEXT NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS messages (
                    id INTEGER PRIMARY KEY,
                    conversation_id INTEGER NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    FOREIGN KEY(conversation_id) REFERENCES conversations(id) ON DELETE CASCADE
                )
                """
            )

    # -- documents -----------------------------------------------------------

    @staticmethod
    def _row_to_metadata(row: sqlite3.Row) -> DocumentMetadata:
        return DocumentMetadata(
            document_id=row["document_id"],
            title=row["title"],
            source_type=row["source_type"],
            language=row["language"],
            total_chunks=row["total_chunks"],
            is_processed=bool(row["is_processed"]),
            processing_error=row["processing_error"],
            url=row["url"],
            author=row["author"],
            published_date=_decode_date(row["published_date"]),
        )

    @staticmethod
    def _row_to_chunk(row: sqlite3.Row) -> DocumentChunk:
        return DocumentChunk(
            id=row["id"],
            document_id=row["document_id"],
            document_title=row["document_title"],
            document_url=row["document_url"],
            chunk_index=row["chunk_index"],
            content=row["content"],
            embedding=_decode_embedding(row["embedding"]),
            source_type=row["source_type"],
            language=row["language"],
        )

    def create_document_metadata(self, metadata: DocumentMetadata) -> DocumentMetadata:
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO documents(
                    document_id, title, source_type, language, total_chunks,
                    is_processed, processing_error, url, author, published_date
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    metadata.document_id,
                    metadata.title,
                    metadata.source_type,
                    metadata.language,
                    metadata.total_chunks,
                    int(metadata.is_processed),
                    metadata.processing_error,
                    metadata.url,
                    metadata.author,
                    _encode_date(metadata.published_date),
                ),
            )
        return metadata

    def update_document_metadata(self, document_id: str, **updates: Any) -> Optional[DocumentMetadata]:
        unknown = set(updates) - set(METADATA_FIELDS)
        if unknown:
            raise ValueError(f"Unknown metadata fields: {sorted(unknown)}")
        if updates:
            values = [int(v) if k == "is_processed" else v for k, v in updates.items()]
            assignments = ", ".join(f"{key} = ?" for key in updates)
            with self.transaction() as conn:
                conn.execute(
                    f"UPDATE documents SET {assignments} WHERE document_id = ?",
                    (*values, document_id),
                )
        return self.get_document_metadata(document_id)

    def get_document_metadata(self, document_id: str) -> Optional[DocumentMetadata]:
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM documents WHERE document_id = ?", (document_id,)
            ).fetchone()
        return self._row_to_metadata(row) if row else None

    def list_document_metadata(self) -> List[DocumentMetadata]:
        with self._lock:
            rows = self._conn.execute("SELECT * FROM documents ORDER BY id").fetchall()
        return [self._row_to_metadata(row) for row in rows]

    def create_document_chunk(self, chunk: DocumentChunk) -> DocumentChunk:
        with self.transaction() as conn:
            chunk.id = conn.execute(
                """
                INSERT INTO chunks(
                    document_id, document_title, document_url, chunk_index,
                    content, embedding, source_type, language
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    chunk.document_id,
                    chunk.document_title,
                    chunk.document_url,
                    chunk.chunk_index,
                    chunk.content,
                    _encode_embedding(chunk.embedding),
                    chunk.source_type,
                    chunk.language,
                ),
            ).lastrowid
        return chunk

    def get_document_chunks(self, language: Optional[str] = None) -> List[DocumentChunk]:
        with self._lock:
            if language is None:
                rows = self._conn.execute("SELECT * FROM chunks ORDER BY id").fetchall()
            else:
                rows = self._conn.execute(
                    "SELECT * FROM chunks WHERE language = ? ORDER BY id", (language,)
                ).fetchall()
        return [self._row_to_chunk(row) for row in rows]

    def get_document_chunks_by_document(self, document_id: str) -> List[DocumentChunk]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM chunks WHERE document_id = ? ORDER BY chunk_index",
                (document_id,),
            ).fetchall()
        return [self._row_to_chunk(row) for row in rows]

    def delete_document_chunks(self, document_id: str) -> int:
        with self.transaction() as conn:
            cursor = conn.execute("DELETE FROM chunks WHERE document_id = ?", (document_id,))
        return cursor.rowcount

    def delete_document(self, document_id: str) -> bool:
        with self.transaction() as conn:
            conn.execute("DELETE FROM chunks WHERE document_id = ?", (document_id,))
            cursor = conn.execute("DELETE FROM documents WHERE document_id = ?", (document_id,))
        return cursor.rowcount > 0

    # -- resources -----------------------------------------------------------

    @staticmethod
    def _row_to_resource(row: sqlite3.Row) -> LibraryResource:
        return LibraryResource(
            id=row["id"],
            name_en=row["name_en"],
            name_uk=row["name_uk"],
            name_ru=row["name_ru"],
            description_en=row["description_en"],
            description_uk=row["description_uk"],
            description_ru=row["description_ru"],
            type=row["type"],
            url=row["url"],
            keywords=json.loads(row["keywords"]) if row["keywords"] else [],
        )

    def create_resource(self, resource: LibraryResource) -> LibraryResource:
        with self.transaction() as conn:
            resource.id = conn.execute(
                """
                INSERT INTO resources(
                    name_en, name_uk, name_ru, description_en, description_uk,
                    description_ru, type, url, keywords
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    resource.name_en,
                    resource.name_uk,
                    resource.name_ru,
                    resource.description_en,
                    resource.description_uk,
                    resource.description_ru,
                    resource.type,
                    resource.url,
                    json.dumps(resource.keywords, ensure_ascii=False),
                ),
            ).lastrowid
        return resource

    def update_resource(self, resource_id: int, **updates: Any) -> Optional[LibraryResource]:
        unknown = set(updates) - set(RESOURCE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown resource fields: {sorted(unknown)}")
        if updates:
            values = [
                json.dumps(v, ensure_ascii=False) if k == "keywords" else v
                for k, v in updates.items()
            ]
            assignments = ", ".join(f"{key} = ?" for key in updates)
            with self.transaction() as conn:
                conn.execute(
                    f"UPDATE resources SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*values, resource_id),
                )
        with self._lock:
            row = self._conn.execute("SELECT * FROM resources WHERE id = ?", (resource_id,)).fetchone()
        return self._row_to_resource(row) if row else None

    def delete_resource(self, resource_id: int) -> bool:
        with self.transaction() as conn:
            cursor = conn.execute("DELETE FROM resources WHERE id = ?", (resource_id,))
        return cursor.rowcount > 0

    def get_resource_by_url(self, url: str) -> Optional[LibraryResource]:
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM resources WHERE url = ? ORDER BY id LIMIT 1", (url,)
            ).fetchone()
        return self._row_to_resource(row) if row else None

    def list_resources(self, type: Optional[str] = None) -> List[LibraryResource]:
        with self._lock:
            if type is None:
                rows = self._conn.execute("SELECT * FROM resources ORDER BY id").fetchall()
            else:
                rows = self._conn.execute(
                    "SELECT * FROM resources WHERE type = ? ORDER BY id", (type,)
                ).fetchall()
        return [self._row_to_resource(row) for row in rows]

    def search_resources(self, query: str) -> List[LibraryResource]:
        # SQLite's LIKE only folds ASCII case, so Cyrillic matching happens in Python.
        needle = query.strip().casefold()
        if not needle:
            return []
        return [
            resource
            for resource in self.list_resources()
            if any(needle in value.casefold() for value in resource.searchable_fields())
        ]

    # -- analytics and conversations ----------------------------------------

    def log_user_query(self, query: UserQuery) -> UserQuery:
        with self.transaction() as conn:
            query.id = conn.execute(
                """
                INSERT INTO user_queries(user_id, conversation_id, query, language, resources_returned)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    query.user_id,
                    query.conversation_id,
                    query.query,
                    query.language,
                    json.dumps(list(query.resources_returned)),
                ),
            ).lastrowid
        return query

    def list_user_queries(self) -> List[UserQuery]:
        with self._lock:
            rows = self._conn.execute("SELECT * FROM user_queries ORDER BY id").fetchall()
        return [
            UserQuery(
                id=row["id"],
                user_id=row["user_id"],
                conversation_id=row["conversation_id"],
                query=row["query"],
                language=row["language"],
                resources_returned=json.loads(row["resources_returned"] or "[]"),
            )
            for row in rows
        ]

    def create_conversation(self, conversation: Conversation) -> Conversation:
        with self.transaction() as conn:
            conversation.id = conn.execute(
                "INSERT INTO conversations(user_id, title, language) VALUES (?, ?, ?)",
                (conversation.user_id, conversation.title, conversation.language),
            ).lastrowid
        return conversation

    def get_conversation(self, conversation_id: int) -> Optional[Conversation]:
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM conversations WHERE id = ?", (conversation_id,)
            ).fetchone()
        return self._row_to_conversation(row) if row else None

    @staticmethod
    def _row_to_conversation(row: sqlite3.Row) -> Conversation:
        return Conversation(
            id=row["id"], user_id=row["user_id"], title=row["title"], language=row["language"]
        )

    def list_conversations(self, user_id: int) -> List[Conversation]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM conversations WHERE user_id = ? ORDER BY id", (user_id,)
            ).fetchall()
        return [self._row_to_conversation(row) for row in rows]

    def delete_conversation(self, conversation_id: int) -> bool:
        # foreign_keys is off by default, so the cascade is done by hand.
        with self.transaction() as conn:
            conn.execute("DELETE FROM messages WHERE conversation_id = ?", (conversation_id,))
            cursor = conn.execute("DELETE FROM conversations WHERE id = ?", (conversation_id,))
        return cursor.rowcount > 0

    def create_message(self, message: Message) -> Message:
        with self.transaction() as conn:
            message.id = conn.execute(
                "INSERT INTO messages(conversation_id, role, content) VALUES (?, ?, ?)",
                (message.conversation_id, message.role, message.content),
            ).lastrowid
        return message

    def get_messages(self, conversation_id: int) -> List[Message]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM messages WHERE conversation_id = ? ORDER BY id",
                (conversation_id,),
            ).fetchall()
        return [
            Message(
                id=row["id"],
                conversation_id=row["conversation_id"],
                role=row["role"],
                content=row["content"],
            )
            for row in rows
        ]
