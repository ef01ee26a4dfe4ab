"""Token counting for the embedding model.

The tokenizer is an explicit object handed to whatever needs it; tests
pass a deterministic fake.
"""

from __future__ import annotations

import logging
from typing import Protocol

import tiktoken

logger = logging.getLogger(__name__)

FALLBACK_ENCODING = "cl100k_base"


class Tokenizer(Protocol):
    def count(self, text: str) -> int: ...


class TiktokenTokenizer:
    """Counts tokens with the BPE encoding of *model*.

    Unknown model names (e.g. HuggingFace ids) fall back to ``cl100k_base``.
    """

    def __init__(self, model: str = "text-embedding-3-small") -> None:
        try:
            self._encoding = tiktoken.encoding_for_model(model)
        except KeyError:
            logger.info("No tiktoken encoding for %r, using %s", model, FALLBACK_ENCODING)
            self._encoding = tiktoken.get_encoding(FALLBACK_ENCODING)
        self.model = model

    def count(self, text: str) -> int:
        return len(self._encoding.encode(text, disallowed_special=()))
