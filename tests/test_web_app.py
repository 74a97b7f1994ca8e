"""Tests for the FastAPI web application."""

from __future__ import annotations

from unittest.mock import MagicMock

import numpy as np
import pytest
from fastapi.testclient import TestClient

from libassist.config import AppConfig
from libassist.index.indexer import DocumentProcessor
from libassist.index.memory import InMemoryLibraryStore
from libassist.index.search import Searcher
from libassist.models import LibraryResource, UserQuery
from libassist.pipeline.chat import ChatService
from libassist.pipeline.completion import Completion
from libassist.pipeline.reply import LOCALIZED_ERROR_MESSAGES, ReplyGenerator
from libassist.services import Services
from libassist.sync.catalog import CatalogSync
from libassist.sync.scheduler import SyncScheduler
from libassist.web.app import app, get_services

CATALOG_HTML = '<a href="https://www.scopus.com/">Scopus</a>'


@pytest.fixture
def services() -> Services:
    store = InMemoryLibraryStore()
    embedder = MagicMock()
    embedder.embed_query.return_value = np.array([1.0, 0.0], dtype="float32")
    completion = MagicMock()
    completion.complete.return_value = Completion(text="Ось відповідь")
    searcher = Searcher(embedder, store)
    generator = ReplyGenerator(store, searcher, completion)
    sync = CatalogSync(store, fetch=lambda url, timeout: CATALOG_HTML)
    return Services(
        config=AppConfig(store_backend="memory"),
        store=store,
        embedder=embedder,
        searcher=searcher,
        processor=DocumentProcessor(embedder, store, chunk_chars=100, overlap=20),
        completion=completion,
        generator=generator,
        chat=ChatService(store, generator),
        sync=sync,
        scheduler=SyncScheduler(sync),
    )


@pytest.fixture
def client(services: Services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestConversationEndpoints:
    """Tests for /conversations endpoints."""

    def test_create_conversation(self, client: TestClient) -> None:
        response = client.post(
            "/conversations", json={"user_id": 1, "title": "Пошук", "language": "uk"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] is not None
        assert data["language"] == "uk"

    def test_create_conversation_empty_title(self, client: TestClient) -> None:
        response = client.post("/conversations", json={"user_id": 1, "title": "  "})
        assert response.status_code == 400

    def test_send_and_list_messages(self, client: TestClient) -> None:
        conversation = client.post("/conversations", json={"user_id": 1, "title": "Chat"}).json()

        reply = client.post(
            f"/conversations/{conversation['id']}/messages",
            json={"user_id": 1, "content": "Де каталог?"},
        )
        listing = client.get(f"/conversations/{conversation['id']}/messages")

        assert reply.status_code == 200
        assert reply.json()["role"] == "assistant"
        assert reply.json()["content"] == "Ось відповідь"
        assert [m["role"] for m in listing.json()["messages"]] == ["user", "assistant"]

    def test_send_message_pipeline_failure(self, client: TestClient, services: Services) -> None:
        services.completion.complete.side_effect = TimeoutError("slow")
        conversation = client.post("/conversations", json={"user_id": 1, "title": "Chat"}).json()

        reply = client.post(
            f"/conversations/{conversation['id']}/messages",
            json={"user_id": 1, "content": "Where is the catalog?"},
        )

        assert reply.status_code == 200
        assert reply.json()["content"] == LOCALIZED_ERROR_MESSAGES["en"]

    def test_send_message_unknown_conversation(self, client: TestClient) -> None:
        response = client.post("/conversations/999/messages", json={"user_id": 1, "content": "hi"})
        assert response.status_code == 404

    def test_send_empty_message(self, client: TestClient) -> None:
        conversation = client.post("/conversations", json={"user_id": 1, "title": "Chat"}).json()

        response = client.post(
            f"/conversations/{conversation['id']}/messages", json={"user_id": 1, "content": " "}
        )

        assert response.status_code == 400

    def test_list_messages_unknown_conversation(self, client: TestClient) -> None:
        assert client.get("/conversations/999/messages").status_code == 404


class TestResourceEndpoints:
    """Tests for /resources and /admin/sync."""

    def test_search_resources(self, client: TestClient, services: Services) -> None:
        services.store.create_resource(
            LibraryResource(
                name_en="Catalog",
                name_uk="Каталог",
                name_ru="Каталог",
                type="catalog",
                url="https://example.org/catalog",
            )
        )

        found = client.get("/resources", params={"q": "каталог"}).json()["resources"]
        missing = client.get("/resources", params={"q": "scopus"}).json()["resources"]

        assert [item["name_en"] for item in found] == ["Catalog"]
        assert missing == []

    def test_admin_sync(self, client: TestClient) -> None:
        response = client.post("/admin/sync")

        assert response.status_code == 200
        assert response.json() == {"synced": 1, "errors": []}
        resources = client.get("/resources", params={"type": "database"}).json()["resources"]
        assert [item["url"] for item in resources] == ["https://www.scopus.com/"]


class TestDocumentEndpoints:
    """Tests for /documents and /search."""

    def test_ingest_list_delete(self, client: TestClient) -> None:
        created = client.post(
            "/documents",
            json={"document_id": "rules", "title": "Правила", "content": "Текст правил."},
        )
        listing = client.get("/documents").json()["documents"]
        deleted = client.delete("/documents/rules")
        missing = client.delete("/documents/rules")

        assert created.status_code == 200
        assert created.json() == {
            "document_id": "rules",
            "success": True,
            "chunks_created": 1,
            "error": None,
        }
        assert [doc["document_id"] for doc in listing] == ["rules"]
        assert deleted.status_code == 200
        assert missing.status_code == 404

    def test_ingest_invalid_source_type(self, client: TestClient) -> None:
        response = client.post(
            "/documents",
            json={"document_id": "x", "title": "X", "content": "c", "source_type": "blog"},
        )
        assert response.status_code == 400

    def test_search(self, client: TestClient) -> None:
        client.post(
            "/documents",
            json={"document_id": "rules", "title": "Правила", "content": "Текст правил."},
        )

        response = client.post("/search", json={"query": "правила", "language": "uk"})

        assert response.status_code == 200
        results = response.json()["results"]
        assert results[0]["document_id"] == "rules"
        assert results[0]["score"] == pytest.approx(1.0)

    def test_search_empty_query(self, client: TestClient) -> None:
        """Returns 400 for whitespace-only query."""
        response = client.post("/search", json={"query": "   "})
        assert response.status_code == 400
        assert "Empty query" in response.json()["detail"]

    def test_search_backend_failure(self, client: TestClient, services: Services) -> None:
        services.embedder.embed_query.side_effect = RuntimeError("model unavailable")

        response = client.post("/search", json={"query": "test"})

        assert response.status_code == 502


class TestConversationManagement:
    """Tests for listing and deleting conversations."""

    def test_list_conversations_for_user(self, client: TestClient) -> None:
        client.post("/conversations", json={"user_id": 1, "title": "Перша"})
        client.post("/conversations", json={"user_id": 2, "title": "Other user"})

        response = client.get("/conversations", params={"user_id": 1})

        assert response.status_code == 200
        assert [c["title"] for c in response.json()["conversations"]] == ["Перша"]

    def test_delete_conversation(self, client: TestClient) -> None:
        conversation = client.post("/conversations", json={"user_id": 1, "title": "Chat"}).json()
        client.post(
            f"/conversations/{conversation['id']}/messages",
            json={"user_id": 1, "content": "Привіт"},
        )

        deleted = client.delete(f"/conversations/{conversation['id']}")

        assert deleted.status_code == 200
        assert client.get(f"/conversations/{conversation['id']}/messages").status_code == 404
        assert client.delete(f"/conversations/{conversation['id']}").status_code == 404


class TestResourceAdministration:
    """Tests for resource create, edit and delete."""

    RESOURCE = {
        "name_en": "Electronic catalog",
        "name_uk": "Електронний каталог",
        "name_ru": "Электронный каталог",
        "type": "catalog",
        "url": "https://library.example.org/catalog",
    }

    def test_create_resource(self, client: TestClient) -> None:
        response = client.post("/resources", json=self.RESOURCE)

        assert response.status_code == 200
        assert response.json()["id"] is not None
        assert response.json()["keywords"] == []
        found = client.get("/resources", params={"q": "електронний"}).json()["resources"]
        assert [item["url"] for item in found] == [self.RESOURCE["url"]]

    def test_create_resource_unknown_type(self, client: TestClient) -> None:
        response = client.post("/resources", json={**self.RESOURCE, "type": "blog"})
        assert response.status_code == 400

    def test_update_resource_changes_only_sent_fields(self, client: TestClient) -> None:
        created = client.post("/resources", json=self.RESOURCE).json()

        response = client.patch(
            f"/resources/{created['id']}",
            json={"description_uk": "Пошук книг у фонді", "keywords": ["книги"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["description_uk"] == "Пошук книг у фонді"
        assert data["keywords"] == ["книги"]
        assert data["name_en"] == "Electronic catalog"

    def test_update_missing_resource(self, client: TestClient) -> None:
        assert client.patch("/resources/999", json={"name_en": "X"}).status_code == 404

    def test_update_resource_unknown_type(self, client: TestClient) -> None:
        created = client.post("/resources", json=self.RESOURCE).json()
        response = client.patch(f"/resources/{created['id']}", json={"type": "blog"})
        assert response.status_code == 400

    def test_delete_resource(self, client: TestClient) -> None:
        created = client.post("/resources", json=self.RESOURCE).json()

        assert client.delete(f"/resources/{created['id']}").status_code == 200
        assert client.delete(f"/resources/{created['id']}").status_code == 404
        assert client.get("/resources").json()["resources"] == []


class TestQueryStats:
    """Tests for /admin/query-stats."""

    def test_query_stats(self, client: TestClient, services: Services) -> None:
        for text, language in [("де каталог", "uk"), ("where", "en"), ("графік", "uk")]:
            services.store.log_user_query(UserQuery(query=text, language=language))

        response = client.get("/admin/query-stats", params={"limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["by_language"] == {"uk": 2, "en": 1}
        assert [q["query"] for q in data["recent"]] == ["графік", "where"]

    def test_query_stats_limit_bounds(self, client: TestClient) -> None:
        assert client.get("/admin/query-stats", params={"limit": 0}).status_code == 422
        assert client.get("/admin/query-stats", params={"limit": 101}).status_code == 422
