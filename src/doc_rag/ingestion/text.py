"""Text extraction helpers: sanitising raw text and flattening HTML."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Comment

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_text(text: str) -> str:
    """Drop control characters, collapse whitespace runs, trim.

    Tabs and newlines survive the control-character pass and are then
    folded into single spaces, so the result is always one line.
    """
    text = _CONTROL_CHARS.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def decode_text(data: bytes) -> str:
    """Decode an uploaded payload as UTF-8, replacing undecodable bytes.

    A leading byte-order mark is dropped.
    """
    return data.decode("utf-8-sig", errors="replace")


def _extract_title(soup: BeautifulSoup, fallback: str) -> str:
    """Sanitised text of the first ``<title>`` tag, else *fallback*."""
    if soup.title is not None:
        title = sanitize_text(soup.title.get_text())
        if title:
            return title
    return fallback


def html_to_text(html: str, *, fallback_title: str) -> tuple[str, str]:
    """Flatten an HTML page into ``(title, text)``.

    Scripts, styles and comments are removed along with all markup, and
    entities are decoded by the parser.  The title is read before stripping
    and falls back to *fallback_title*.  The returned text is sanitised.
    """
    soup = BeautifulSoup(html, "html.parser")
    title = _extract_title(soup, fallback_title)
    for tag in soup(["script", "style"]):
        tag.decompose()
    for comment in soup.find_all(string=lambda node: isinstance(node, Comment)):
        comment.extract()
    return title, sanitize_text(soup.get_text(separator=" "))
