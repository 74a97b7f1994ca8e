"""FastAPI application exposing the library assistant."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import asdict
from typing import Any, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from libassist.config import AppConfig
from libassist.models import RESOURCE_TYPES, LibraryResource
from libassist.services import Services, build_services

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="Library Assistant", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_services: Optional[Services] = None
_services_lock = threading.Lock()


class ConversationPayload(BaseModel):
    user_id: int
    title: str
    language: str | None = None


class MessagePayload(BaseModel):
    user_id: int
    content: str


class DocumentPayload(BaseModel):
    document_id: str
    title: str
    content: str
    source_type: str = "other"
    language: str = "uk"
    url: str | None = None
    author: str | None = None


class ResourcePayload(BaseModel):
    name_en: str
    name_uk: str
    name_ru: str
    type: str
    url: str | None = None
    description_en: str | None = None
    description_uk: str | None = None
    description_ru: str | None = None
    keywords: List[str] = []


class ResourceUpdatePayload(BaseModel):
    name_en: str | None = None
    name_uk: str | None = None
    name_ru: str | None = None
    type: str | None = None
    url: str | None = None
    description_en: str | None = None
    description_uk: str | None = None
    description_ru: str | None = None
    keywords: List[str] | None = None


def _check_resource_type(value: str | None) -> None:
    if value is not None and value not in RESOURCE_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown resource type: {value}")


class SearchPayload(BaseModel):
    query: str
    language: str = "uk"
    top_k: int = 5


def get_services() -> Services:
    """Build the shared services on first use."""
    global _services
    with _services_lock:
        if _services is None:
            _services = build_services(AppConfig.from_env())
        return _services


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    config = AppConfig.from_env()
    if config.sync_on_startup:
        services = get_services()
        services.scheduler.start(run_immediately=True)


@app.on_event("shutdown")
async def shutdown_event() -> None:
    global _services
    with _services_lock:
        if _services is not None:
            _services.close()
            _services = None


@app.post("/conversations")
async def create_conversation(
    payload: ConversationPayload, services: Services = Depends(get_services)
) -> dict[str, Any]:
    try:
        conversation = services.chat.create_conversation(
            payload.user_id, payload.title, payload.language
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return asdict(conversation)


@app.get("/conversations")
async def list_conversations(
    user_id: int, services: Services = Depends(get_services)
) -> dict[str, List[dict[str, Any]]]:
    conversations = services.store.list_conversations(user_id)
    return {"conversations": [asdict(conversation) for conversation in conversations]}


@app.delete("/conversations/{conversation_id}")
async def delete_conversation(
    conversation_id: int, services: Services = Depends(get_services)
) -> dict[str, Any]:
    if not services.store.delete_conversation(conversation_id):
        raise HTTPException(status_code=404, detail=f"Conversation {conversation_id} not found")
    return {"status": "ok", "deleted_id": conversation_id}


@app.get("/conversations/{conversation_id}/messages")
async def list_messages(
    conversation_id: int, services: Services = Depends(get_services)
) -> dict[str, List[dict[str, Any]]]:
    if services.store.get_conversation(conversation_id) is None:
        raise HTTPException(status_code=404, detail=f"Conversation {conversation_id} not found")
    messages = services.store.get_messages(conversation_id)
    return {"messages": [asdict(message) for message in messages]}


@app.post("/conversations/{conversation_id}/messages")
async def send_message(
    conversation_id: int, payload: MessagePayload, services: Services = Depends(get_services)
) -> dict[str, Any]:
    try:
        reply = await asyncio.to_thread(
            services.chat.send_message, conversation_id, payload.user_id, payload.content
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return asdict(reply)


@app.get("/resources")
async def list_resources(
    q: str | None = None, type: str | None = None, services: Services = Depends(get_services)
) -> dict[str, List[dict[str, Any]]]:
    if q is not None and q.strip():
        resources = services.store.search_resources(q)
        if type is not None:
            resources = [resource for resource in resources if resource.type == type]
    else:
        resources = services.store.list_resources(type)
    return {"resources": [asdict(resource) for resource in resources]}


@app.post("/resources")
async def create_resource(
    payload: ResourcePayload, services: Services = Depends(get_services)
) -> dict[str, Any]:
    _check_resource_type(payload.type)
    resource = services.store.create_resource(LibraryResource(**payload.model_dump()))
    return asdict(resource)


@app.patch("/resources/{resource_id}")
async def update_resource(
    resource_id: int, payload: ResourceUpdatePayload, services: Services = Depends(get_services)
) -> dict[str, Any]:
    """Apply an admin edit; only non-null fields sent in the body change."""
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    _check_resource_type(updates.get("type"))
    resource = services.store.update_resource(resource_id, **updates)
    if resource is None:
        raise HTTPException(status_code=404, detail=f"Resource {resource_id} not found")
    return asdict(resource)


@app.delete("/resources/{resource_id}")
async def delete_resource(
    resource_id: int, services: Services = Depends(get_services)
) -> dict[str, Any]:
    if not services.store.delete_resource(resource_id):
        raise HTTPException(status_code=404, detail=f"Resource {resource_id} not found")
    return {"status": "ok", "deleted_id": resource_id}


@app.post("/documents")
async def ingest_document(
    payload: DocumentPayload, services: Services = Depends(get_services)
) -> dict[str, Any]:
    try:
        result = await asyncio.to_thread(
            services.processor.process_document,
            payload.document_id,
            payload.title,
            payload.content,
            payload.source_type,
            payload.language,
            payload.url,
            payload.author,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"document_id": payload.document_id, **asdict(result)}


@app.get("/documents")
async def list_documents(services: Services = Depends(get_services)) -> dict[str, Any]:
    """List every processed or partially processed document."""
    documents = services.store.list_document_metadata()
    return {"documents": [asdict(document) for document in documents]}


@app.delete("/documents/{document_id}")
async def delete_document(
    document_id: str, services: Services = Depends(get_services)
) -> dict[str, Any]:
    if not services.store.delete_document(document_id):
        raise HTTPException(status_code=404, detail=f"Document {document_id} not found")
    return {"status": "ok", "deleted_id": document_id}


@app.post("/search")
async def search_documents(
    payload: SearchPayload, services: Services = Depends(get_services)
) -> dict[str, List[dict[str, Any]]]:
    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Empty query")

    top_k = max(1, min(payload.top_k, 50))
    try:
        results = await asyncio.to_thread(
            services.searcher.semantic_search,
            query,
            payload.language,
            top_k=top_k,
            threshold=services.config.similarity_threshold,
        )
    except Exception as exc:
        LOGGER.exception("Search failed: %s", exc)
        raise HTTPException(status_code=502, detail="Search backend unavailable") from exc

    return {
        "results": [
            {
                "document_id": item.chunk.document_id,
                "title": item.chunk.document_title,
                "url": item.chunk.document_url,
                "chunk_index": item.chunk.chunk_index,
                "content": item.chunk.content,
                "score": item.score,
            }
            for item in results
        ]
    }


@app.post("/admin/sync")
async def run_sync(services: Services = Depends(get_services)) -> dict[str, Any]:
    result = await asyncio.to_thread(services.sync.run_sync)
    return asdict(result)


@app.get("/admin/query-stats")
async def query_stats(
    limit: int = Query(20, ge=1, le=100), services: Services = Depends(get_services)
) -> dict[str, Any]:
    """Most recent logged queries, newest first, plus per-language totals."""
    queries = services.store.list_user_queries()
    by_language: dict[str, int] = {}
    for query in queries:
        by_language[query.language] = by_language.get(query.language, 0) + 1
    return {
        "total": len(queries),
        "by_language": by_language,
        "recent": [asdict(query) for query in reversed(queries[-limit:])],
    }
