"""Semantic retriever — thresholded similarity search with citation assembly.

This module is the **primary public interface** for retrieval.  It is
decoupled from LangChain tool abstractions so that non-agent callers
(scripts, notebooks, tests) can use it directly; the agent wraps
:meth:`SemanticRetriever.retrieve` as its ``searchDocuments`` tool.

Usage::

    from doc_rag.retrieval.retriever import SemanticRetriever

    retriever = SemanticRetriever(store, embeddings)
    print(retriever.retrieve("How do I authenticate?"))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from doc_rag.retrieval.base import KnowledgeStoreBase
from doc_rag.retrieval.models import Citation, SearchResult

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)

NO_DOCUMENTS_MESSAGE = (
    "No documents have been processed yet. Please upload some documents first, "
    "and wait for them to be processed."
)
NO_RESULTS_MESSAGE = (
    "No relevant documents found for your query. Try rephrasing your question "
    "or upload more documents."
)
SECTION_DIVIDER = "\n---\n\n"


class SemanticRetriever:
    """High-level retriever over any :class:`KnowledgeStoreBase`.

    Parameters
    ----------
    store:
        The knowledge store written by the ingestion pipeline.
    embeddings:
        Embedding model.  Must be the one used at ingestion time so query
        and chunk vectors live in the same space.
    match_count:
        Maximum number of hits returned (top-K).
    match_threshold:
        Minimum cosine similarity; weaker hits are discarded.
    """

    def __init__(
        self,
        store: KnowledgeStoreBase,
        embeddings: Embeddings,
        *,
        match_count: int = 3,
        match_threshold: float = 0.5,
    ) -> None:
        self._store = store
        self._embeddings = embeddings
        self.match_count = match_count
        self.match_threshold = match_threshold

    # -- public API -----------------------------------------------------------

    def search(self, query: str) -> list[SearchResult]:
        """Embed *query* and return the qualifying hits, best first."""
        query_embedding = self._embeddings.embed_query(query)
        hits = self._store.match(
            query_embedding,
            threshold=self.match_threshold,
            limit=self.match_count,
        )
        logger.info("search %r returned %d hit(s)", query, len(hits))
        return hits

    def cite(self, hits: list[SearchResult]) -> list[Citation]:
        """Resolve each hit's owning document title."""
        titles = self._store.get_titles(h.document_id for h in hits)
        return [
            Citation(
                source=titles.get(h.document_id) or "Untitled",
                similarity=h.similarity,
                content=h.content,
            )
            for h in hits
        ]

    def retrieve(self, query: str) -> str:
        """Return model-readable context for *query*.

        An empty store and a search with no qualifying hits are not errors:
        both produce an informational message instead of citations.
        """
        if self._store.count_chunks() == 0:
            logger.info("Knowledge store is empty; skipping search for %r", query)
            return NO_DOCUMENTS_MESSAGE

        hits = self.search(query)
        if not hits:
            return NO_RESULTS_MESSAGE
        return format_citations(self.cite(hits))


def format_citations(citations: list[Citation]) -> str:
    """Numbered, citation-style text block handed to the chat model."""
    header = f"I found {len(citations)} relevant sections from the documentation:\n\n"
    body = SECTION_DIVIDER.join(c.render(i) for i, c in enumerate(citations, 1))
    return header + body
