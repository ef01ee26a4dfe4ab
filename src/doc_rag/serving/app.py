"""FastAPI application exposing document ingestion and chat as a REST API."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, File, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from doc_rag.config import settings
from doc_rag.ingestion.pipeline import (
    BulkIngestionResult,
    DocumentListResult,
    IngestionPipeline,
    IngestionResult,
    OperationResult,
)
from doc_rag.retrieval.base import KnowledgeStoreBase

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Doc RAG API",
    version="0.1.0",
    description="Upload documentation and ask questions about it.",
)


# ── Dependencies (overridable in tests) ───────────────────────────────
@lru_cache
def get_store() -> KnowledgeStoreBase:
    from doc_rag.retrieval import get_store as build_store

    return build_store()


@lru_cache
def get_embeddings() -> Any:
    from doc_rag.ingestion.embedder import get_embedding_function

    return get_embedding_function()


def get_pipeline(
    store: KnowledgeStoreBase = Depends(get_store),
    embeddings: Any = Depends(get_embeddings),
) -> IngestionPipeline:
    from doc_rag.ingestion.pipeline import get_pipeline as build_pipeline

    return build_pipeline(store, embeddings)


def get_orchestrator(
    store: KnowledgeStoreBase = Depends(get_store),
    embeddings: Any = Depends(get_embeddings),
) -> Any:
    from doc_rag.agent.graph import get_orchestrator as build_orchestrator
    from doc_rag.retrieval.retriever import SemanticRetriever

    retriever = SemanticRetriever(
        store,
        embeddings,
        match_count=settings.match_count,
        match_threshold=settings.match_threshold,
    )
    return build_orchestrator(retriever)


# ── Request / Response schemas ────────────────────────────────────────
class LinksRequest(BaseModel):
    """One or more URLs to ingest."""

    urls: list[str]


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    """Conversation so far, oldest message first."""

    messages: list[ChatMessage]


class ChatResponse(BaseModel):
    """How the chat run ended, with the answer when there is one."""

    status: str
    answer: str = ""
    error: str | None = None
    steps: int = 0
    tool_queries: list[str] = []


def _respond(result: BaseModel, ok_status: int = 200, error_status: int = 400) -> JSONResponse:
    status = ok_status if getattr(result, "success", False) else error_status
    return JSONResponse(status_code=status, content=result.model_dump(mode="json"))


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
def health(store: KnowledgeStoreBase = Depends(get_store)) -> JSONResponse:
    """Readiness probe: 503 while the knowledge store is unreachable."""
    if not store.health_check():
        logger.warning("Knowledge store %r is not ready", store.collection_name)
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return JSONResponse(status_code=200, content={"status": "ok"})


@app.get("/documents", response_model=DocumentListResult)
def list_documents(pipeline: IngestionPipeline = Depends(get_pipeline)) -> JSONResponse:
    return _respond(pipeline.list_documents(), error_status=500)


@app.post("/documents/file", response_model=IngestionResult)
def upload_file(
    file: UploadFile | None = File(default=None),
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """Store and index an uploaded file."""
    if file is None:
        result = pipeline.ingest_file(None, None)
    else:
        result = pipeline.ingest_file(file.file.read(), file.filename, file.content_type)
    return _respond(result, ok_status=201)


@app.post("/documents/links", response_model=BulkIngestionResult)
def upload_links(
    request: LinksRequest,
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """Fetch and index each URL in turn."""
    result = pipeline.ingest_links(request.urls)
    if result.results and result.succeeded:
        # partial success is still a created resource
        return JSONResponse(status_code=201, content=result.model_dump(mode="json"))
    return _respond(result, ok_status=201)


@app.delete("/documents/{document_id}", response_model=OperationResult)
def delete_document(
    document_id: str,
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> JSONResponse:
    result = pipeline.delete_document(document_id)
    return _respond(result, error_status=404)


@app.post("/chat", response_model=ChatResponse)
def chat(request: ChatRequest, orchestrator: Any = Depends(get_orchestrator)) -> ChatResponse:
    """Answer the last user message, searching the documentation as needed."""
    outcome = orchestrator.run([m.model_dump() for m in request.messages])
    return ChatResponse(
        status=outcome.status.value,
        answer=outcome.answer,
        error=outcome.error,
        steps=outcome.steps,
        tool_queries=[str(c.tool_input.get("query", "")) for c in outcome.tool_calls],
    )
