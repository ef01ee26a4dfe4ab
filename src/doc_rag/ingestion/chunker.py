"""Text chunking and token-budget enforcement."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from doc_rag.ingestion.tokenizer import Tokenizer

logger = logging.getLogger(__name__)


def chunk_text(
    text: str,
    chunk_size: int = 400,
    min_chars: int = 50,
) -> list[str]:
    """Split *text* into consecutive, non-overlapping word groups.

    Parameters
    ----------
    text:
        Sanitised document text.
    chunk_size:
        Number of words per chunk.
    min_chars:
        Chunks whose character length is ``<= min_chars`` are dropped as noise.

    Returns
    -------
    list[str]
        Chunks in document order, words joined by single spaces.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")

    words = text.split()
    chunks: list[str] = []
    for start in range(0, len(words), chunk_size):
        chunk = " ".join(words[start : start + chunk_size])
        if len(chunk) > min_chars:
            chunks.append(chunk)
    return chunks


def enforce_token_limit(
    chunks: list[str],
    tokenizer: Tokenizer,
    max_tokens: int = 7500,
) -> list[str]:
    """Halve every chunk that exceeds *max_tokens* until all of them fit.

    Oversized chunks are split at their character midpoint, which may cut a
    word in two; the embedding model tokenises sub-words anyway.  Pieces keep
    the order of their parent chunk.
    """
    if max_tokens <= 0:
        raise ValueError("max_tokens must be > 0")

    safe: list[str] = []
    for chunk in chunks:
        safe.extend(_split_to_fit(chunk, tokenizer, max_tokens))
    return safe


def _split_to_fit(chunk: str, tokenizer: Tokenizer, max_tokens: int) -> list[str]:
    if tokenizer.count(chunk) <= max_tokens:
        return [chunk]
    if len(chunk) < 2:
        # a single character cannot be split further
        logger.warning("Unsplittable chunk exceeds %d tokens: %r", max_tokens, chunk)
        return [chunk]

    midpoint = len(chunk) // 2
    return _split_to_fit(chunk[:midpoint], tokenizer, max_tokens) + _split_to_fit(
        chunk[midpoint:], tokenizer, max_tokens
    )
