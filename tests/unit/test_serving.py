"""Unit tests for the serving layer."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from conftest import CharTokenizer, KeywordEmbeddings, RecordingBlobStore, ScriptedChatModel, tool_call_message
from doc_rag.agent.graph import ChatOrchestrator
from doc_rag.agent.tools import build_search_tool
from doc_rag.errors import FetchError
from doc_rag.ingestion.fetch import FetchedPage
from doc_rag.ingestion.pipeline import IngestionPipeline
from doc_rag.retrieval.memory_store import InMemoryKnowledgeStore
from doc_rag.retrieval.retriever import SemanticRetriever
from doc_rag.serving import app as app_module

GUIDE = ("Rate limit headers tell you how many requests remain in the current window. " * 20).encode()
PAGE = "<html><head><title>Email API</title></head><body>" + "<p>Send email with the send endpoint.</p>" * 10 + "</body></html>"


def _fetch(url: str, *, timeout: float = 30.0) -> FetchedPage:
    if url != "https://docs.example.com/email":
        raise FetchError("Failed to fetch URL: Not Found")
    return FetchedPage(url=url, status_code=200, content_type="text/html", text=PAGE)


@pytest.fixture()
def shared_store() -> InMemoryKnowledgeStore:
    return InMemoryKnowledgeStore()


@pytest.fixture()
def client(shared_store: InMemoryKnowledgeStore) -> Iterator[TestClient]:
    pipeline = IngestionPipeline(
        shared_store,
        RecordingBlobStore(),
        KeywordEmbeddings(),
        CharTokenizer(4),
        fetcher=_fetch,
    )
    app_module.app.dependency_overrides[app_module.get_pipeline] = lambda: pipeline
    app_module.app.dependency_overrides[app_module.get_store] = lambda: shared_store
    yield TestClient(app_module.app)
    app_module.app.dependency_overrides.clear()


def _override_chat(store: InMemoryKnowledgeStore, responses: list) -> None:
    retriever = SemanticRetriever(store, KeywordEmbeddings())
    orchestrator = ChatOrchestrator(ScriptedChatModel(responses), [build_search_tool(retriever)])
    app_module.app.dependency_overrides[app_module.get_orchestrator] = lambda: orchestrator


def test_health_endpoint(client: TestClient) -> None:
    """GET /health should return 200 with status ok."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_health_reports_unreachable_store(client: TestClient) -> None:
    class DownStore(InMemoryKnowledgeStore):
        def health_check(self) -> bool:
            return False

    app_module.app.dependency_overrides[app_module.get_store] = lambda: DownStore()

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json() == {"status": "unavailable"}


class TestDocuments:
    def test_upload_file(self, client: TestClient) -> None:
        response = client.post("/documents/file", files={"file": ("limits.txt", GUIDE, "text/plain")})

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["document"]["title"] == "limits.txt"
        assert body["document"]["status"] == "completed"
        assert body["document"]["kind"] == "file"
        assert body["chunk_count"] == 1

    def test_upload_without_file(self, client: TestClient) -> None:
        response = client.post("/documents/file")

        assert response.status_code == 400
        assert response.json()["error"] == "No file provided"

    def test_upload_unreadable_file(self, client: TestClient) -> None:
        response = client.post("/documents/file", files={"file": ("empty.txt", b"   ", "text/plain")})

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_links_partial_success(self, client: TestClient) -> None:
        response = client.post(
            "/documents/links",
            json={"urls": ["https://docs.example.com/email", "https://docs.example.com/gone"]},
        )

        assert response.status_code == 201
        body = response.json()
        assert [r["success"] for r in body["results"]] == [True, False]
        assert body["results"][0]["document"]["title"] == "Email API"
        assert body["results"][1]["error"] == "Failed to fetch URL: Not Found"

    def test_links_all_failed(self, client: TestClient) -> None:
        response = client.post("/documents/links", json={"urls": ["https://docs.example.com/gone"]})
        assert response.status_code == 400

    def test_links_empty(self, client: TestClient) -> None:
        response = client.post("/documents/links", json={"urls": []})

        assert response.status_code == 400
        assert response.json()["error"] == "No URLs provided"

    def test_list_and_delete(self, client: TestClient, shared_store: InMemoryKnowledgeStore) -> None:
        created = client.post("/documents/file", files={"file": ("limits.txt", GUIDE, "text/plain")}).json()
        document_id = created["document"]["id"]

        listed = client.get("/documents").json()
        assert [d["id"] for d in listed["documents"]] == [document_id]

        assert client.delete(f"/documents/{document_id}").status_code == 200
        assert shared_store.count_chunks() == 0
        assert client.get("/documents").json()["documents"] == []

    def test_delete_unknown(self, client: TestClient) -> None:
        response = client.delete("/documents/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "Document missing not found"


class TestChat:
    def test_answer_with_search(self, client: TestClient, shared_store: InMemoryKnowledgeStore) -> None:
        client.post("/documents/file", files={"file": ("limits.txt", GUIDE, "text/plain")})
        _override_chat(
            shared_store,
            [tool_call_message("rate limit"), AIMessage(content="Check the rate limit headers.")],
        )

        response = client.post("/chat", json={"messages": [{"role": "user", "content": "Am I rate limited?"}]})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "answered"
        assert body["answer"] == "Check the rate limit headers."
        assert body["steps"] == 2
        assert body["tool_queries"] == ["rate limit"]

    def test_step_limit_reported(self, client: TestClient, shared_store: InMemoryKnowledgeStore) -> None:
        _override_chat(shared_store, [tool_call_message(f"q{i}", call_id=f"c{i}") for i in range(5)])

        body = client.post("/chat", json={"messages": [{"role": "user", "content": "?"}]}).json()

        assert body["status"] == "step_limit_exceeded"
        assert body["answer"] == ""
        assert body["error"]

    def test_malformed_request(self, client: TestClient, shared_store: InMemoryKnowledgeStore) -> None:
        _override_chat(shared_store, [])

        response = client.post("/chat", json={"messages": "hello"})
        assert response.status_code == 422
