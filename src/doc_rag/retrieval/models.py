"""Domain models for stored documents, chunk embeddings and search hits."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentKind(str, Enum):
    FILE = "file"
    LINK = "link"


class DocumentStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Document(BaseModel):
    """One ingested source (an uploaded file or a fetched web page).

    Attributes
    ----------
    id:
        Unique identifier, generated on creation.
    title:
        File name or page title.
    kind:
        ``file`` or ``link``.
    file_url:
        Public blob locator (files only).
    link_url:
        Source URL (links only).
    content:
        Truncated preview of the extracted text.
    file_size:
        Size of the uploaded payload in bytes (files only).
    mime_type:
        Media type reported by the uploader (files only).
    status:
        ``processing`` until every chunk is stored, then ``completed``;
        ``failed`` when ingestion broke after the row was created.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    title: str
    kind: DocumentKind
    file_url: str | None = None
    link_url: str | None = None
    content: str = ""
    file_size: int | None = None
    mime_type: str | None = None
    status: DocumentStatus = DocumentStatus.PROCESSING
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def locator(self) -> str | None:
        """Blob URL for files, source URL for links."""
        return self.file_url if self.kind is DocumentKind.FILE else self.link_url


class ChunkEmbedding(BaseModel):
    """A retrievable text segment together with its embedding vector.

    ``metadata`` carries at least ``chunk_index`` and ``total_chunks``.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    document_id: str
    content: str
    embedding: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)


class SearchResult(BaseModel):
    """A single similarity-search hit. Ephemeral, never persisted."""

    id: str
    document_id: str
    content: str
    similarity: float = Field(ge=0.0, le=1.0)
    metadata: dict[str, Any] = Field(default_factory=dict)


class Citation(BaseModel):
    """A search hit resolved against its owning document's title."""

    source: str = "Untitled"
    similarity: float
    content: str

    @property
    def percent(self) -> int:
        # half-up, so 0.625 renders as 63
        return math.floor(self.similarity * 100 + 0.5)

    def render(self, number: int) -> str:
        return f'[{number}] From "{self.source}" ({self.percent}% relevant):\n{self.content}\n'
