"""Unit tests for chunking and token-limit enforcement."""

import pytest

from conftest import CharTokenizer
from doc_rag.ingestion.chunker import chunk_text, enforce_token_limit


def _words(n: int, word: str = "lorem") -> str:
    return " ".join(f"{word}{i}" for i in range(n))


def test_chunk_text_1200_words_gives_three_chunks() -> None:
    """A 1,200-word text with chunk_size=400 splits into exactly 3 chunks."""
    chunks = chunk_text(_words(1200), chunk_size=400)
    assert len(chunks) == 3
    assert all(len(c) >= 50 for c in chunks)
    assert all(len(c.split()) == 400 for c in chunks)


def test_chunk_text_preserves_word_order() -> None:
    text = _words(1000)
    chunks = chunk_text(text, chunk_size=300)
    rejoined = " ".join(chunks).split()
    assert rejoined == text.split()


def test_chunk_text_drops_short_trailing_chunk() -> None:
    """The last group (3 short words) falls under the 50-char floor."""
    text = _words(10, word="alphabetical") + " a b c"
    chunks = chunk_text(text, chunk_size=10)
    assert len(chunks) == 1
    assert chunks[0].split() == text.split()[:10]


def test_chunk_text_exactly_fifty_chars_is_dropped() -> None:
    text = "x" * 50
    assert chunk_text(text) == []
    assert chunk_text("x" * 51) == ["x" * 51]


def test_chunk_text_short_text_yields_single_chunk() -> None:
    text = "This sentence is comfortably longer than the fifty character floor."
    assert chunk_text(text, chunk_size=400) == [text]


def test_chunk_text_collapses_whitespace() -> None:
    text = "word\t\tanother\n\nthird " * 10
    chunks = chunk_text(text, chunk_size=400)
    assert "  " not in chunks[0]
    assert "\t" not in chunks[0]


def test_chunk_text_empty_input() -> None:
    assert chunk_text("") == []


def test_chunk_text_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError, match="chunk_size"):
        chunk_text("anything", chunk_size=0)


def test_enforce_token_limit_keeps_small_chunks() -> None:
    chunks = ["short one", "short two"]
    assert enforce_token_limit(chunks, CharTokenizer(), max_tokens=100) == chunks


def test_enforce_token_limit_splits_9000_token_chunk() -> None:
    """A 9,000-token chunk with a 7,500 ceiling is split into fitting pieces."""
    tokenizer = CharTokenizer()
    chunk = "a" * 9000
    safe = enforce_token_limit([chunk], tokenizer, max_tokens=7500)
    assert len(safe) >= 2
    assert all(tokenizer.count(c) <= 7500 for c in safe)
    assert "".join(safe) == chunk


def test_enforce_token_limit_recurses_until_every_piece_fits() -> None:
    tokenizer = CharTokenizer()
    chunk = "".join(chr(ord("a") + i % 26) for i in range(1000))
    safe = enforce_token_limit([chunk], tokenizer, max_tokens=100)
    assert all(len(c) <= 100 for c in safe)
    # pieces come back in their original order
    assert "".join(safe) == chunk
    assert len(safe) == 16


def test_enforce_token_limit_preserves_order_across_chunks() -> None:
    chunks = ["first " * 50, "ok", "third " * 50]
    safe = enforce_token_limit(chunks, CharTokenizer(), max_tokens=120)
    assert "".join(safe) == "".join(chunks)
    assert safe.index("ok") > 0


def test_enforce_token_limit_splits_at_character_midpoint() -> None:
    chunk = "abcdefghij"
    assert enforce_token_limit([chunk], CharTokenizer(), max_tokens=5) == ["abcde", "fghij"]


def test_enforce_token_limit_rejects_non_positive_limit() -> None:
    with pytest.raises(ValueError, match="max_tokens"):
        enforce_token_limit(["x"], CharTokenizer(), max_tokens=0)


@pytest.mark.integration
def test_tiktoken_tokenizer_counts_tokens() -> None:
    """Needs the tiktoken BPE files (downloaded on first use)."""
    from doc_rag.ingestion.tokenizer import TiktokenTokenizer

    tokenizer = TiktokenTokenizer("text-embedding-3-small")
    assert tokenizer.count("") == 0
    assert 0 < tokenizer.count("hello world") <= 3
