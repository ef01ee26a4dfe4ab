"""Abstract base class for knowledge-store backends.

A knowledge store holds two record types: :class:`Document` rows and the
:class:`ChunkEmbedding` rows each document owns.  Adding a new backend
(pgvector, Qdrant …) only requires subclassing :class:`KnowledgeStoreBase`
and implementing the abstract methods.  The ingestion pipeline and the
retrieval tool are backend-agnostic.

Backend contract
----------------
* Every chunk references an existing document (foreign key, not null).
* Deleting a document deletes all of its chunks.
* All stored vectors share one dimensionality.
* :meth:`match` returns hits ordered by descending similarity.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from doc_rag.retrieval.models import (
    ChunkEmbedding,
    Document,
    DocumentStatus,
    SearchResult,
)


class KnowledgeStoreBase(ABC):
    """Backend-agnostic document + embedding store.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / schema / namespace.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- documents ------------------------------------------------------------

    @abstractmethod
    def create_document(self, document: Document) -> Document:
        """Persist a new document row and return the stored copy."""
        ...

    @abstractmethod
    def get_document(self, document_id: str) -> Document | None:
        ...

    @abstractmethod
    def list_documents(self) -> list[Document]:
        """Return every document, newest first."""
        ...

    @abstractmethod
    def update_document_status(self, document_id: str, status: DocumentStatus) -> Document:
        """Set *status* and bump ``updated_at``.

        Raises :class:`~doc_rag.errors.StorageError` for unknown ids.
        """
        ...

    @abstractmethod
    def delete_document(self, document_id: str) -> bool:
        """Delete a document and cascade to its chunks.

        Returns ``False`` when no such document exists.
        """
        ...

    # -- chunks ---------------------------------------------------------------

    @abstractmethod
    def add_chunks(self, chunks: Sequence[ChunkEmbedding]) -> None:
        """Insert *chunks* in bulk.  All-or-nothing."""
        ...

    @abstractmethod
    def count_chunks(self, document_id: str | None = None) -> int:
        """Number of stored chunks, optionally restricted to one document."""
        ...

    @abstractmethod
    def match(
        self,
        query_embedding: list[float],
        *,
        threshold: float,
        limit: int,
    ) -> list[SearchResult]:
        """Return up to *limit* chunks with cosine similarity >= *threshold*.

        Results are ordered by descending similarity.
        """
        ...

    # -- optional overrides ---------------------------------------------------

    def get_titles(self, document_ids: Iterable[str]) -> dict[str, str]:
        """Map each known document id to its title.  Unknown ids are omitted."""
        titles: dict[str, str] = {}
        for document_id in dict.fromkeys(document_ids):
            document = self.get_document(document_id)
            if document is not None:
                titles[document_id] = document.title
        return titles

    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        return True
