"""
Retrieval — knowledge storage, similarity search, and citation assembly.

This module wraps the document/embedding store behind a clean interface
so that the ingestion pipeline and the agent never need to know which DB
is backing retrieval.

Public surface
--------------
- :class:`SemanticRetriever` — thresholded top-K search with citations.
- :class:`KnowledgeStoreBase` — abstract backend (subclass for pgvector, etc.).
- :class:`InMemoryKnowledgeStore` — in-process backend.
- :class:`ChromaKnowledgeStore` — Chroma backend.
- :class:`Document`, :class:`ChunkEmbedding`, :class:`SearchResult`,
  :class:`Citation` — data models.
- :func:`get_store` — backend factory driven by settings.
"""

from doc_rag.retrieval.base import KnowledgeStoreBase
from doc_rag.retrieval.memory_store import InMemoryKnowledgeStore
from doc_rag.retrieval.models import (
    ChunkEmbedding,
    Citation,
    Document,
    DocumentKind,
    DocumentStatus,
    SearchResult,
)
from doc_rag.retrieval.retriever import SemanticRetriever, format_citations

__all__ = [
    "ChromaKnowledgeStore",
    "ChunkEmbedding",
    "Citation",
    "Document",
    "DocumentKind",
    "DocumentStatus",
    "InMemoryKnowledgeStore",
    "KnowledgeStoreBase",
    "SearchResult",
    "SemanticRetriever",
    "format_citations",
    "get_store",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaKnowledgeStore to avoid pulling in chromadb at import time."""
    if name == "ChromaKnowledgeStore":
        from doc_rag.retrieval.chroma_store import ChromaKnowledgeStore

        return ChromaKnowledgeStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def get_store(backend: str | None = None) -> KnowledgeStoreBase:
    """Build the configured knowledge store (``memory`` or ``chroma``)."""
    from doc_rag.config import settings

    backend = backend or settings.store_backend
    if backend == "memory":
        return InMemoryKnowledgeStore()
    if backend == "chroma":
        from doc_rag.retrieval.chroma_store import ChromaKnowledgeStore

        return ChromaKnowledgeStore()
    raise ValueError(f"Unsupported store backend: {backend!r}")
