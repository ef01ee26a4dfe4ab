"""In-process implementation of the knowledge-store abstraction.

Used for local development and tests.  Similarity search is a brute-force
cosine scan, which is fine for a few thousand chunks.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Sequence
from datetime import datetime, timezone

from doc_rag.errors import StorageError
from doc_rag.retrieval.base import KnowledgeStoreBase
from doc_rag.retrieval.models import (
    ChunkEmbedding,
    Document,
    DocumentStatus,
    SearchResult,
)

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors (0.0 for zero vectors)."""
    if len(a) != len(b):
        raise ValueError(f"Vector length mismatch: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryKnowledgeStore(KnowledgeStoreBase):
    """Dict-backed store guarded by a lock.

    Reads and writes from concurrent ingestion runs are serialised per call,
    not per ingestion run, so a query may miss chunks that are still being
    written.
    """

    def __init__(self, collection_name: str = "memory") -> None:
        super().__init__(collection_name)
        self._lock = threading.Lock()
        self._documents: dict[str, Document] = {}
        self._chunks: dict[str, ChunkEmbedding] = {}
        self._dimension: int | None = None

    # -- documents ------------------------------------------------------------

    def create_document(self, document: Document) -> Document:
        with self._lock:
            if document.id in self._documents:
                raise StorageError(f"Document {document.id} already exists")
            self._documents[document.id] = document.model_copy()
            return document.model_copy()

    def get_document(self, document_id: str) -> Document | None:
        with self._lock:
            document = self._documents.get(document_id)
            return document.model_copy() if document else None

    def list_documents(self) -> list[Document]:
        with self._lock:
            documents = [d.model_copy() for d in reversed(self._documents.values())]
        return sorted(documents, key=lambda d: d.created_at, reverse=True)

    def update_document_status(self, document_id: str, status: DocumentStatus) -> Document:
        with self._lock:
            document = self._documents.get(document_id)
            if document is None:
                raise StorageError(f"Document {document_id} not found")
            updated = document.model_copy(
                update={"status": status, "updated_at": datetime.now(timezone.utc)}
            )
            self._documents[document_id] = updated
            return updated.model_copy()

    def delete_document(self, document_id: str) -> bool:
        with self._lock:
            if self._documents.pop(document_id, None) is None:
                return False
            orphaned = [cid for cid, c in self._chunks.items() if c.document_id == document_id]
            for chunk_id in orphaned:
                del self._chunks[chunk_id]
            if not self._chunks:
                self._dimension = None
        logger.info("Deleted document %s and %d chunk(s)", document_id, len(orphaned))
        return True

    # -- chunks ---------------------------------------------------------------

    def add_chunks(self, chunks: Sequence[ChunkEmbedding]) -> None:
        if not chunks:
            return
        with self._lock:
            dimension = self._dimension
            # validate the whole batch before touching state
            for chunk in chunks:
                if chunk.document_id not in self._documents:
                    raise StorageError(
                        f"Chunk {chunk.id} references unknown document {chunk.document_id}"
                    )
                if dimension is None:
                    dimension = len(chunk.embedding)
                elif len(chunk.embedding) != dimension:
                    raise StorageError(
                        f"Embedding dimension {len(chunk.embedding)} does not match "
                        f"store dimension {dimension}"
                    )
            self._dimension = dimension
            for chunk in chunks:
                self._chunks[chunk.id] = chunk.model_copy()

    def count_chunks(self, document_id: str | None = None) -> int:
        with self._lock:
            if document_id is None:
                return len(self._chunks)
            return sum(1 for c in self._chunks.values() if c.document_id == document_id)

    def match(
        self,
        query_embedding: list[float],
        *,
        threshold: float,
        limit: int,
    ) -> list[SearchResult]:
        with self._lock:
            if self._dimension is not None and len(query_embedding) != self._dimension:
                raise StorageError(
                    f"Query dimension {len(query_embedding)} does not match "
                    f"store dimension {self._dimension}"
                )
            chunks = list(self._chunks.values())

        scored: list[tuple[float, ChunkEmbedding]] = []
        for chunk in chunks:
            similarity = cosine_similarity(query_embedding, chunk.embedding)
            if similarity >= threshold:
                scored.append((similarity, chunk))
        scored.sort(key=lambda pair: pair[0], reverse=True)

        return [
            SearchResult(
                id=chunk.id,
                document_id=chunk.document_id,
                content=chunk.content,
                similarity=min(max(similarity, 0.0), 1.0),
                metadata=dict(chunk.metadata),
            )
            for similarity, chunk in scored[:limit]
        ]
