"""Exception hierarchy raised inside the ingestion and retrieval stages.

Public entry points never let these escape: they are caught at the
pipeline / tool / orchestrator boundary and turned into result values.
"""

from __future__ import annotations


class DocRagError(Exception):
    """Base class for all errors raised by :mod:`doc_rag`."""


class InputError(DocRagError):
    """The caller supplied something we cannot ingest (no file, no URLs, no text)."""


class FetchError(DocRagError):
    """A remote URL could not be retrieved."""


class EmbeddingError(DocRagError):
    """The embedding service failed or returned a malformed response."""


class StorageError(DocRagError):
    """The blob store or knowledge store rejected an operation."""
