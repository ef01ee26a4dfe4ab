"""Embedding model factory and sequential batch embedding."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from doc_rag.config import settings
from doc_rag.errors import EmbeddingError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_embedding_function(provider: str | None = None) -> Embeddings:
    """Return the configured embedding model.

    ``openai`` uses ``OpenAIEmbeddings`` with ``settings.embedding_model``
    and ``settings.embedding_dimensions``; ``huggingface`` runs a local
    sentence-transformer through ``HuggingFaceEmbeddings``.
    """
    provider = provider or settings.embedding_provider
    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        return OpenAIEmbeddings(
            model=settings.embedding_model,
            dimensions=settings.embedding_dimensions,
            api_key=settings.openai_api_key or None,
        )
    if provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=settings.embedding_model)
    raise ValueError(f"Unsupported embedding provider: {provider!r}")


class EmbeddingBatcher:
    """Embed chunks in fixed-size batches, one service call at a time.

    Batches run strictly in sequence.  That bounds memory and keeps us under
    the provider's rate limits; do not parallelise without revisiting both.

    Parameters
    ----------
    embeddings:
        Any LangChain ``Embeddings`` implementation.
    batch_size:
        Number of chunks sent per ``embed_documents`` call.
    """

    def __init__(self, embeddings: Embeddings, batch_size: int = 50) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        self._embeddings = embeddings
        self.batch_size = batch_size

    def embed(self, chunks: list[str]) -> list[list[float]]:
        """Return one vector per chunk, index-aligned with *chunks*.

        Raises
        ------
        EmbeddingError
            If any batch fails or returns the wrong number of vectors, or if
            the vectors disagree on dimensionality.
        """
        vectors: list[list[float]] = []
        total_batches = math.ceil(len(chunks) / self.batch_size)

        for number, start in enumerate(range(0, len(chunks), self.batch_size), 1):
            batch = chunks[start : start + self.batch_size]
            logger.info("Embedding batch %d/%d (%d chunks)", number, total_batches, len(batch))
            try:
                batch_vectors = self._embeddings.embed_documents(batch)
            except Exception as exc:
                raise EmbeddingError(f"Embedding batch {number}/{total_batches} failed: {exc}") from exc

            if len(batch_vectors) != len(batch):
                raise EmbeddingError(
                    f"Embedding batch {number}/{total_batches} returned "
                    f"{len(batch_vectors)} vectors for {len(batch)} chunks"
                )
            vectors.extend(list(v) for v in batch_vectors)

        dimensions = {len(v) for v in vectors}
        if len(dimensions) > 1:
            raise EmbeddingError(f"Inconsistent embedding dimensions: {sorted(dimensions)}")
        return vectors
