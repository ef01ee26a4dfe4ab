"""Shared pytest configuration, fakes, and fixtures."""

from __future__ import annotations

import math
import re
from typing import Any

import pytest
from langchain_core.embeddings import Embeddings
from langchain_core.messages import AIMessage

from doc_rag.ingestion.blob_store import BlobStoreBase, StoredBlob
from doc_rag.ingestion.pipeline import IngestionPipeline
from doc_rag.retrieval.memory_store import InMemoryKnowledgeStore
from doc_rag.retrieval.retriever import SemanticRetriever


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


class CharTokenizer:
    """One token per *chars_per_token* characters."""

    def __init__(self, chars_per_token: int = 1) -> None:
        self.chars_per_token = chars_per_token
        self.calls = 0

    def count(self, text: str) -> int:
        self.calls += 1
        return math.ceil(len(text) / self.chars_per_token)


class KeywordEmbeddings(Embeddings):
    """Bag-of-keywords vectors: one component per vocabulary word.

    Texts sharing keywords with a query score high; texts sharing none score
    zero.  Every call is recorded.
    """

    VOCABULARY = ("auth", "token", "email", "send", "webhook", "rate", "limit", "python")

    def __init__(self, fail_on_batch: int | None = None) -> None:
        self.fail_on_batch = fail_on_batch
        self.document_batches: list[list[str]] = []
        self.queries: list[str] = []

    def _vector(self, text: str) -> list[float]:
        words = re.findall(r"[a-z]+", text.lower())
        return [float(words.count(term)) for term in self.VOCABULARY]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_batches.append(list(texts))
        if self.fail_on_batch is not None and len(self.document_batches) == self.fail_on_batch:
            raise RuntimeError("embedding service unavailable")
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.queries.append(text)
        return self._vector(text)


class RecordingBlobStore(BlobStoreBase):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.puts: list[tuple[str, bytes, str | None]] = []

    def put(self, name: str, data: bytes, content_type: str | None = None) -> StoredBlob:
        if self.fail:
            from doc_rag.errors import StorageError

            raise StorageError("blob store offline")
        self.puts.append((name, data, content_type))
        key = f"{len(self.puts)}-{name}"
        return StoredBlob(key=key, url=f"https://blobs.example.com/{key}")


class ScriptedChatModel:
    """Returns pre-scripted ``AIMessage`` objects in order.

    ``bind_tools`` records the tools and returns the same instance so the
    orchestrator can bind it like a real chat model.
    """

    def __init__(self, responses: list[AIMessage | Exception]) -> None:
        self._responses = list(responses)
        self.bound_tools: list[Any] = []
        self.calls: list[list[Any]] = []

    def bind_tools(self, tools: list[Any], **kwargs: Any) -> ScriptedChatModel:
        self.bound_tools = list(tools)
        return self

    def invoke(self, messages: list[Any], *args: Any, **kwargs: Any) -> AIMessage:
        self.calls.append(list(messages))
        if not self._responses:
            raise AssertionError("ScriptedChatModel ran out of responses")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def tool_call_message(query: str, call_id: str = "call-1", content: str = "") -> AIMessage:
    return AIMessage(
        content=content,
        tool_calls=[{"name": "searchDocuments", "args": {"query": query}, "id": call_id}],
    )


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def store() -> InMemoryKnowledgeStore:
    return InMemoryKnowledgeStore()


@pytest.fixture()
def embeddings() -> KeywordEmbeddings:
    return KeywordEmbeddings()


@pytest.fixture()
def blob_store() -> RecordingBlobStore:
    return RecordingBlobStore()


@pytest.fixture()
def pipeline(
    store: InMemoryKnowledgeStore,
    blob_store: RecordingBlobStore,
    embeddings: KeywordEmbeddings,
) -> IngestionPipeline:
    return IngestionPipeline(store, blob_store, embeddings, CharTokenizer(chars_per_token=4))


@pytest.fixture()
def retriever(store: InMemoryKnowledgeStore, embeddings: KeywordEmbeddings) -> SemanticRetriever:
    return SemanticRetriever(store, embeddings, match_count=3, match_threshold=0.5)
