"""Ingestion pipeline — raw upload or URL to stored, embedded chunks.

Two entry points share one downstream path::

    file bytes ─┐
                ├─► sanitize ─► chunk ─► enforce token limit ─► embed ─► persist
    URL ────────┘

The Document row is created in ``processing`` state right before chunking
and moves to ``completed`` once every chunk is persisted.  Any exception
after that point moves it to ``failed`` (unless ``mark_failed_on_error`` is
off) and is reported as an :class:`IngestionResult` with
``success=False``; nothing raised inside the pipeline escapes the public
methods.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from doc_rag.errors import InputError, StorageError
from doc_rag.ingestion.blob_store import BlobStoreBase
from doc_rag.ingestion.chunker import chunk_text, enforce_token_limit
from doc_rag.ingestion.embedder import EmbeddingBatcher
from doc_rag.ingestion.fetch import FetchedPage, fetch_url
from doc_rag.ingestion.text import decode_text, html_to_text, sanitize_text
from doc_rag.retrieval.base import KnowledgeStoreBase
from doc_rag.retrieval.models import (
    ChunkEmbedding,
    Document,
    DocumentKind,
    DocumentStatus,
)

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from doc_rag.ingestion.tokenizer import Tokenizer

logger = logging.getLogger(__name__)

NO_FILE_MESSAGE = "No file provided"
NO_URLS_MESSAGE = "No URLs provided"
UNREADABLE_FILE_MESSAGE = "Could not extract text from file. Please ensure it contains readable text."
UNREADABLE_LINK_MESSAGE = (
    "Could not extract meaningful text from the URL. The page might be "
    "JavaScript-heavy or require authentication."
)


# ── Result values ─────────────────────────────────────────────────────


class IngestionResult(BaseModel):
    success: bool
    document: Document | None = None
    error: str | None = None
    chunk_count: int = 0


class BulkIngestionResult(BaseModel):
    """Outcome of :meth:`IngestionPipeline.ingest_links`, one result per URL."""

    success: bool
    results: list[IngestionResult] = Field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded


class OperationResult(BaseModel):
    success: bool
    error: str | None = None


class DocumentListResult(BaseModel):
    success: bool
    documents: list[Document] = Field(default_factory=list)
    error: str | None = None


# ── Pipeline ──────────────────────────────────────────────────────────


class IngestionPipeline:
    """Turns uploads and links into searchable chunk embeddings.

    Parameters
    ----------
    store:
        Knowledge store receiving documents and chunks.
    blob_store:
        Where raw uploaded files are kept.
    embeddings:
        Embedding model; must match the one the retriever queries with.
    tokenizer:
        Token counter for the embedding model.
    chunk_size:
        Words per chunk.
    min_chunk_chars:
        Chunks of at most this many characters are dropped.
    max_tokens:
        Token ceiling for a single chunk.
    batch_size:
        Chunks per embedding call.
    preview_chars:
        Length of the text preview stored on the document.
    min_file_chars / min_link_chars:
        Minimum extracted text length for files / links.
    fetch_timeout:
        Seconds before a link fetch gives up.
    mark_failed_on_error:
        Whether a document whose ingestion breaks moves to ``failed``.
    fetcher:
        Callable used to download links (``fetch_url`` by default).
    """

    def __init__(
        self,
        store: KnowledgeStoreBase,
        blob_store: BlobStoreBase,
        embeddings: Embeddings,
        tokenizer: Tokenizer,
        *,
        chunk_size: int = 400,
        min_chunk_chars: int = 50,
        max_tokens: int = 7500,
        batch_size: int = 50,
        preview_chars: int = 10_000,
        min_file_chars: int = 10,
        min_link_chars: int = 50,
        fetch_timeout: float = 30.0,
        mark_failed_on_error: bool = True,
        fetcher: Callable[..., FetchedPage] = fetch_url,
    ) -> None:
        self._store = store
        self._blob_store = blob_store
        self._tokenizer = tokenizer
        self._batcher = EmbeddingBatcher(embeddings, batch_size=batch_size)
        self._fetcher = fetcher
        self.chunk_size = chunk_size
        self.min_chunk_chars = min_chunk_chars
        self.max_tokens = max_tokens
        self.preview_chars = preview_chars
        self.min_file_chars = min_file_chars
        self.min_link_chars = min_link_chars
        self.fetch_timeout = fetch_timeout
        self.mark_failed_on_error = mark_failed_on_error

    # -- entry points ---------------------------------------------------------

    def ingest_file(
        self,
        data: bytes | None,
        filename: str | None,
        mime_type: str | None = None,
    ) -> IngestionResult:
        """Store an uploaded file and index its text."""
        try:
            if data is None or not filename:
                raise InputError(NO_FILE_MESSAGE)
            logger.info("Uploading file: %s %s %d", filename, mime_type, len(data))

            content = sanitize_text(decode_text(data))
            if len(content) < self.min_file_chars:
                raise InputError(UNREADABLE_FILE_MESSAGE)

            blob = self._blob_store.put(filename, data, mime_type)
            document = Document(
                title=filename,
                kind=DocumentKind.FILE,
                file_url=blob.url,
                content=content[: self.preview_chars],
                file_size=len(data),
                mime_type=mime_type,
            )
            return self._index(document, content)
        except Exception as exc:
            return self._failure("File upload", exc)

    def ingest_link(self, url: str | None) -> IngestionResult:
        """Fetch a web page and index its visible text."""
        try:
            url = (url or "").strip()
            if not url:
                raise InputError("No URL provided")
            logger.info("Fetching link: %s", url)

            page = self._fetcher(url, timeout=self.fetch_timeout)
            title, text = html_to_text(page.text, fallback_title=url)
            if len(text) < self.min_link_chars:
                raise InputError(UNREADABLE_LINK_MESSAGE)

            document = Document(
                title=title,
                kind=DocumentKind.LINK,
                link_url=url,
                content=text[: self.preview_chars],
            )
            return self._index(document, text)
        except Exception as exc:
            return self._failure("Link upload", exc)

    def ingest_links(self, urls: Iterable[str] | None) -> BulkIngestionResult:
        """Ingest several links one after another.  Blank entries are skipped."""
        cleaned = [u.strip() for u in (urls or []) if u and u.strip()]
        if not cleaned:
            return BulkIngestionResult(success=False, error=NO_URLS_MESSAGE)

        results = [self.ingest_link(url) for url in cleaned]
        bulk = BulkIngestionResult(success=True, results=results)
        if bulk.failed:
            bulk.success = False
            bulk.error = f"{bulk.failed} of {len(results)} link(s) failed"
        logger.info("Bulk upload: %d succeeded, %d failed", bulk.succeeded, bulk.failed)
        return bulk

    # -- document management --------------------------------------------------

    def list_documents(self) -> DocumentListResult:
        try:
            return DocumentListResult(success=True, documents=self._store.list_documents())
        except Exception as exc:
            logger.exception("Get documents error")
            return DocumentListResult(success=False, error=str(exc))

    def delete_document(self, document_id: str) -> OperationResult:
        """Delete a document together with all of its chunks."""
        try:
            if not self._store.delete_document(document_id):
                return OperationResult(success=False, error=f"Document {document_id} not found")
            return OperationResult(success=True)
        except Exception as exc:
            logger.exception("Delete document error")
            return OperationResult(success=False, error=str(exc))

    # -- shared downstream path -----------------------------------------------

    def _index(self, document: Document, text: str) -> IngestionResult:
        try:
            document = self._store.create_document(document)
        except StorageError:
            raise
        except Exception as exc:
            raise StorageError(f"Failed to save document to database: {exc}") from exc

        try:
            chunks = chunk_text(text, self.chunk_size, self.min_chunk_chars)
            logger.info("Chunks count: %d", len(chunks))
            chunks = enforce_token_limit(chunks, self._tokenizer, self.max_tokens)
            logger.info("Safe chunks count: %d", len(chunks))
            if not chunks:
                logger.warning("Document %s produced no chunks", document.id)

            vectors = self._batcher.embed(chunks)
            rows = [
                ChunkEmbedding(
                    document_id=document.id,
                    content=chunk,
                    embedding=vector,
                    metadata={"chunk_index": index, "total_chunks": len(chunks)},
                )
                for index, (chunk, vector) in enumerate(zip(chunks, vectors))
            ]
            self._store.add_chunks(rows)
            document = self._store.update_document_status(document.id, DocumentStatus.COMPLETED)
        except Exception:
            if self.mark_failed_on_error:
                self._mark_failed(document.id)
            raise

        logger.info("Upload complete: %s (%d chunks)", document.id, len(rows))
        return IngestionResult(success=True, document=document, chunk_count=len(rows))

    def _mark_failed(self, document_id: str) -> None:
        try:
            self._store.update_document_status(document_id, DocumentStatus.FAILED)
        except Exception:
            # keep the original ingestion error as the reported one
            logger.exception("Could not mark document %s as failed", document_id)

    @staticmethod
    def _failure(operation: str, exc: Exception) -> IngestionResult:
        if isinstance(exc, InputError):
            logger.warning("%s rejected: %s", operation, exc)
        else:
            logger.exception("%s error", operation)
        return IngestionResult(success=False, error=str(exc) or type(exc).__name__)


def get_pipeline(
    store: KnowledgeStoreBase,
    embeddings: Embeddings,
    blob_store: BlobStoreBase | None = None,
    tokenizer: Tokenizer | None = None,
) -> IngestionPipeline:
    """Build a pipeline whose tuning knobs come from ``settings``."""
    from doc_rag.config import settings
    from doc_rag.ingestion.blob_store import get_blob_store
    from doc_rag.ingestion.tokenizer import TiktokenTokenizer

    return IngestionPipeline(
        store,
        blob_store or get_blob_store(),
        embeddings,
        tokenizer or TiktokenTokenizer(settings.embedding_model),
        chunk_size=settings.chunk_size_words,
        min_chunk_chars=settings.min_chunk_chars,
        max_tokens=settings.max_chunk_tokens,
        batch_size=settings.embed_batch_size,
        preview_chars=settings.preview_chars,
        min_file_chars=settings.min_file_chars,
        min_link_chars=settings.min_link_chars,
        fetch_timeout=settings.fetch_timeout,
        mark_failed_on_error=settings.mark_failed_on_error,
    )
