"""Core libassist data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

SUPPORTED_LANGUAGES = ("uk", "ru", "en")
SOURCE_TYPES = ("catalog", "repository", "database", "other")
RESOURCE_TYPES = ("electronic_library", "repository", "catalog", "database", "other")
MESSAGE_ROLES = ("user", "assistant")


@dataclass(slots=True)
class DocumentChunk:
    """Retrievable span of a source document."""

    document_id: str
    document_title: str
    chunk_index: int
    content: str
    source_type: str
    language: str
    document_url: Optional[str] = None
    embedding: Optional[Sequence[float]] = None
    id: Optional[int] = None


@dataclass(slots=True)
class DocumentMetadata:
    """Processing record kept once per source document."""

    document_id: str
    title: str
    source_type: str
    language: str
    total_chunks: int
    is_processed: bool = False
    processing_error: Optional[str] = None
    url: Optional[str] = None
    author: Optional[str] = None
    published_date: Optional[datetime] = None


@dataclass(slots=True)
class LibraryResource:
    """Catalog entry with names and descriptions in every supported language."""

    name_en: str
    name_uk: str
    name_ru: str
    type: str
    url: Optional[str] = None
    description_en: Optional[str] = None
    description_uk: Optional[str] = None
    description_ru: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    id: Optional[int] = None

    def name_for(self, language: str) -> str:
        name = getattr(self, f"name_{language}", None)
        return name or self.name_en or ""

    def description_for(self, language: str) -> str:
        description = getattr(self, f"description_{language}", None)
        return description or self.description_en or ""

    def searchable_fields(self) -> List[str]:
        return [
            value
            for value in (
                self.name_en,
                self.name_uk,
                self.name_ru,
                self.description_en,
                self.description_uk,
                self.description_ru,
            )
            if value
        ]


@dataclass(slots=True)
class UserQuery:
    """Analytics record of a question and the resources surfaced for it."""

    query: str
    language: str
    user_id: Optional[int] = None
    conversation_id: Optional[int] = None
    resources_returned: List[int] = field(default_factory=list)
    id: Optional[int] = None


@dataclass(slots=True)
class Conversation:
    user_id: int
    title: str
    language: str
    id: Optional[int] = None


@dataclass(slots=True)
class Message:
    conversation_id: int
    role: str
    content: str
    id: Optional[int] = None


@dataclass(slots=True)
class ProcessResult:
    """Outcome of processing a single document."""

    success: bool
    chunks_created: int
    error: Optional[str] = None


@dataclass(slots=True)
class SyncResult:
    """Outcome of one catalog synchronisation run."""

    synced: int = 0
    errors: List[str] = field(default_factory=list)
