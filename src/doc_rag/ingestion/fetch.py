"""Plain HTTP GET for link ingestion."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from doc_rag.errors import FetchError

logger = logging.getLogger(__name__)


@dataclass
class FetchedPage:
    url: str
    status_code: int
    content_type: str
    text: str


def fetch_url(url: str, *, timeout: float = 30.0, headers: dict[str, str] | None = None) -> FetchedPage:
    """Download *url* and return its body text.

    Raises
    ------
    FetchError
        On a transport failure or a non-2xx status.  Failures are not retried.
    """
    try:
        resp = requests.get(url, headers=headers or {}, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchError(f"Failed to fetch URL: {exc}") from exc

    if not resp.ok:
        reason = resp.reason or f"HTTP {resp.status_code}"
        raise FetchError(f"Failed to fetch URL: {reason}")

    logger.info("Fetched %s (%d, %d chars)", url, resp.status_code, len(resp.text))
    return FetchedPage(
        url=url,
        status_code=resp.status_code,
        content_type=resp.headers.get("content-type", ""),
        text=resp.text,
    )
