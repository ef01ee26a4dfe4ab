"""Chroma implementation of the knowledge-store abstraction.

Two collections back one store:

* ``<name>_chunks`` — chunk vectors in cosine space, the chunk text as the
  Chroma document and a flat metadata dict carrying ``document_id``.
* ``<name>_documents`` — one record per :class:`Document`, serialised as
  JSON.  This collection is never queried by similarity, so its records
  carry a one-component placeholder vector.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import chromadb

from doc_rag.config import settings
from doc_rag.errors import StorageError
from doc_rag.retrieval.base import KnowledgeStoreBase
from doc_rag.retrieval.models import (
    ChunkEmbedding,
    Document,
    DocumentStatus,
    SearchResult,
)

logger = logging.getLogger(__name__)

_PLACEHOLDER_VECTOR = [0.0]


def _chunk_metadata(chunk: ChunkEmbedding) -> dict[str, Any]:
    """Flatten chunk metadata for Chroma (values must be str/int/float/bool)."""
    meta: dict[str, Any] = {"document_id": chunk.document_id}
    for key, value in chunk.metadata.items():
        if isinstance(value, (str, int, float, bool)):
            meta[key] = value
    return meta


class ChromaKnowledgeStore(KnowledgeStoreBase):
    """Chroma-backed knowledge store.

    Parameters
    ----------
    collection_name:
        Prefix of the two Chroma collections.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    client:
        Pre-built Chroma client; when given, *host* and *port* are ignored.
    """

    def __init__(
        self,
        collection_name: str | None = None,
        *,
        host: str | None = None,
        port: int | None = None,
        client: Any = None,
    ) -> None:
        collection_name = collection_name or settings.chroma_collection
        super().__init__(collection_name)
        if client is None:
            client = chromadb.HttpClient(host=host or settings.chroma_host, port=port or settings.chroma_port)
        self._client = client
        self._chunks = self._client.get_or_create_collection(
            f"{collection_name}_chunks",
            metadata={"hnsw:space": "cosine"},
            embedding_function=None,
        )
        self._documents = self._client.get_or_create_collection(
            f"{collection_name}_documents",
            embedding_function=None,
        )

    # -- documents ------------------------------------------------------------

    def _write_document(self, document: Document) -> None:
        self._documents.upsert(
            ids=[document.id],
            embeddings=[_PLACEHOLDER_VECTOR],
            documents=[document.model_dump_json()],
            metadatas=[{"status": document.status.value}],
        )

    def create_document(self, document: Document) -> Document:
        if self.get_document(document.id) is not None:
            raise StorageError(f"Document {document.id} already exists")
        self._write_document(document)
        return document

    def get_document(self, document_id: str) -> Document | None:
        result = self._documents.get(ids=[document_id], include=["documents"])
        payloads = result.get("documents") or []
        if not payloads:
            return None
        return Document.model_validate_json(payloads[0])

    def list_documents(self) -> list[Document]:
        result = self._documents.get(include=["documents"])
        documents = [Document.model_validate_json(p) for p in result.get("documents") or []]
        return sorted(documents, key=lambda d: d.created_at, reverse=True)

    def update_document_status(self, document_id: str, status: DocumentStatus) -> Document:
        document = self.get_document(document_id)
        if document is None:
            raise StorageError(f"Document {document_id} not found")
        updated = document.model_copy(
            update={"status": status, "updated_at": datetime.now(timezone.utc)}
        )
        self._write_document(updated)
        return updated

    def delete_document(self, document_id: str) -> bool:
        if self.get_document(document_id) is None:
            return False
        self._chunks.delete(where={"document_id": document_id})
        self._documents.delete(ids=[document_id])
        logger.info("Deleted document %s from collection %r", document_id, self.collection_name)
        return True

    # -- chunks ---------------------------------------------------------------

    def add_chunks(self, chunks: Sequence[ChunkEmbedding]) -> None:
        if not chunks:
            return
        owners = sorted({c.document_id for c in chunks})
        missing = self._missing_documents(owners)
        if missing:
            raise StorageError(f"Chunks reference unknown document(s): {missing}")

        try:
            self._chunks.add(
                ids=[c.id for c in chunks],
                embeddings=[c.embedding for c in chunks],
                documents=[c.content for c in chunks],
                metadatas=[_chunk_metadata(c) for c in chunks],
            )
        except Exception as exc:
            raise StorageError(f"Failed to store embeddings: {exc}") from exc

        # an owner deleted between the check and the insert leaves orphans behind
        gone = self._missing_documents(owners)
        if gone:
            self._chunks.delete(ids=[c.id for c in chunks if c.document_id in gone])
            raise StorageError(f"Document(s) deleted during chunk insert: {gone}")

    def _missing_documents(self, document_ids: list[str]) -> list[str]:
        known = set(self._documents.get(ids=document_ids, include=[]).get("ids") or [])
        return [d for d in document_ids if d not in known]

    def count_chunks(self, document_id: str | None = None) -> int:
        if document_id is None:
            return self._chunks.count()
        result = self._chunks.get(where={"document_id": document_id}, include=[])
        return len(result.get("ids") or [])

    def match(
        self,
        query_embedding: list[float],
        *,
        threshold: float,
        limit: int,
    ) -> list[SearchResult]:
        try:
            results = self._chunks.query(
                query_embeddings=[query_embedding],
                n_results=limit,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise StorageError(f"Similarity search failed: {exc}") from exc

        hits: list[SearchResult] = []
        ids = results.get("ids", [[]])[0]
        docs = results.get("documents", [[]])[0]
        metas = results.get("metadatas", [[]])[0]
        distances = results.get("distances", [[]])[0]

        for chunk_id, content, meta, dist in zip(ids, docs, metas, distances):
            # cosine space: distance = 1 - cosine similarity
            similarity = 1.0 - dist
            if similarity < threshold:
                continue
            meta = dict(meta or {})
            document_id = meta.pop("document_id", "")
            hits.append(
                SearchResult(
                    id=chunk_id,
                    document_id=document_id,
                    content=content or "",
                    similarity=min(max(similarity, 0.0), 1.0),
                    metadata=meta,
                )
            )
        hits.sort(key=lambda h: h.similarity, reverse=True)
        return hits

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
