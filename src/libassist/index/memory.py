"""In-memory store used for tests and database-less development."""

from __future__ import annotations

import copy
import threading
from dataclasses import replace
from typing import Any, Dict, List, Optional

import numpy as np

from libassist.index.storage import METADATA_FIELDS, RESOURCE_FIELDS, LibraryStore
from libassist.models import (
    Conversation,
    DocumentChunk,
    DocumentMetadata,
    LibraryResource,
    Message,
    UserQuery,
)


class InMemoryLibraryStore(LibraryStore):
    """Keeps every record in instance-level lists; nothing survives the process."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._documents: Dict[str, DocumentMetadata] = {}
        self._chunks: List[DocumentChunk] = []
        self._resources: List[LibraryResource] = []
        self._queries: List[UserQuery] = []
        self._conversations: Dict[int, Conversation] = {}
        self._messages: List[Message] = []
        self._next_id = 1

    def _allocate_id(self) -> int:
        next_id = self._next_id
        self._next_id += 1
        return next_id

    # -- documents -----------------------------------------------------------

    def create_document_metadata(self, metadata: DocumentMetadata) -> DocumentMetadata:
        with self._lock:
            if metadata.document_id in self._documents:
                raise ValueError(f"Document already exists: {metadata.document_id}")
            self._documents[metadata.document_id] = replace(metadata)
        return metadata

    def update_document_metadata(self, document_id: str, **updates: Any) -> Optional[DocumentMetadata]:
        unknown = set(updates) - set(METADATA_FIELDS)
        if unknown:
            raise ValueError(f"Unknown metadata fields: {sorted(unknown)}")
        with self._lock:
            current = self._documents.get(document_id)
            if current is None:
                return None
            updated = replace(current, **updates)
            self._documents[document_id] = updated
            return replace(updated)

    def get_document_metadata(self, document_id: str) -> Optional[DocumentMetadata]:
        with self._lock:
            current = self._documents.get(document_id)
            return replace(current) if current else None

    def list_document_metadata(self) -> List[DocumentMetadata]:
        with self._lock:
            return [replace(item) for item in self._documents.values()]

    def create_document_chunk(self, chunk: DocumentChunk) -> DocumentChunk:
        with self._lock:
            chunk.id = self._allocate_id()
            embedding = None
            if chunk.embedding is not None:
                embedding = np.asarray(chunk.embedding, dtype="float32").copy()
            self._chunks.append(replace(chunk, embedding=embedding))
        return chunk

    def get_document_chunks(self, language: Optional[str] = None) -> List[DocumentChunk]:
        with self._lock:
            return [
                replace(chunk)
                for chunk in self._chunks
                if language is None or chunk.language == language
            ]

    def get_document_chunks_by_document(self, document_id: str) -> List[DocumentChunk]:
        with self._lock:
            chunks = [replace(chunk) for chunk in self._chunks if chunk.document_id == document_id]
        return sorted(chunks, key=lambda chunk: chunk.chunk_index)

    def delete_document_chunks(self, document_id: str) -> int:
        with self._lock:
            kept = [chunk for chunk in self._chunks if chunk.document_id != document_id]
            removed = len(self._chunks) - len(kept)
            self._chunks = kept
        return removed

    def delete_document(self, document_id: str) -> bool:
        with self._lock:
            self.delete_document_chunks(document_id)
            return self._documents.pop(document_id, None) is not None

    # -- resources -----------------------------------------------------------

    def create_resource(self, resource: LibraryResource) -> LibraryResource:
        with self._lock:
            resource.id = self._allocate_id()
            self._resources.append(copy.deepcopy(resource))
        return resource

    def update_resource(self, resource_id: int, **updates: Any) -> Optional[LibraryResource]:
        unknown = set(updates) - set(RESOURCE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown resource fields: {sorted(unknown)}")
        with self._lock:
            for position, resource in enumerate(self._resources):
                if resource.id == resource_id:
                    updated = replace(resource, **updates)
                    self._resources[position] = updated
                    return copy.deepcopy(updated)
        return None

    def delete_resource(self, resource_id: int) -> bool:
        with self._lock:
            kept = [resource for resource in self._resources if resource.id != resource_id]
            deleted = len(kept) != len(self._resources)
            self._resources = kept
        return deleted

    def get_resource_by_url(self, url: str) -> Optional[LibraryResource]:
        with self._lock:
            for resource in self._resources:
                if resource.url == url:
                    return copy.deepcopy(resource)
        return None

    def list_resources(self, type: Optional[str] = None) -> List[LibraryResource]:
        with self._lock:
            return [
                copy.deepcopy(resource)
                for resource in self._resources
                if type is None or resource.type == type
            ]

    def search_resources(self, query: str) -> List[LibraryResource]:
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
        with self._lock:
            query.id = self._allocate_id()
            self._queries.append(copy.deepcopy(query))
        return query

    def list_user_queries(self) -> List[UserQuery]:
        with self._lock:
            return copy.deepcopy(self._queries)

    def create_conversation(self, conversation: Conversation) -> Conversation:
        with self._lock:
            conversation.id = self._allocate_id()
            self._conversations[conversation.id] = replace(conversation)
        return conversation

    def get_conversation(self, conversation_id: int) -> Optional[Conversation]:
        with self._lock:
            current = self._conversations.get(conversation_id)
            return replace(current) if current else None

    def list_conversations(self, user_id: int) -> List[Conversation]:
        with self._lock:
            return [replace(c) for c in self._conversations.values() if c.user_id == user_id]

    def delete_conversation(self, conversation_id: int) -> bool:
        with self._lock:
            if self._conversations.pop(conversation_id, None) is None:
                return False
            self._messages = [m for m in self._messages if m.conversation_id != conversation_id]
        return True

    def create_message(self, message: Message) -> Message:
        with self._lock:
            message.id = self._allocate_id()
            self._messages.append(replace(message))
        return message

    def get_messages(self, conversation_id: int) -> List[Message]:
        with self._lock:
            return [replace(m) for m in self._messages if m.conversation_id == conversation_id]
