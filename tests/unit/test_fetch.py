"""Unit tests for URL fetching (``requests`` is mocked)."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from doc_rag.errors import FetchError
from doc_rag.ingestion.fetch import fetch_url


def _response(status: int, text: str = "", reason: str = "OK") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 400
    resp.reason = reason
    resp.text = text
    resp.headers = {"content-type": "text/html; charset=utf-8"}
    return resp


@patch("doc_rag.ingestion.fetch.requests.get")
def test_fetch_returns_page(mock_get: MagicMock) -> None:
    mock_get.return_value = _response(200, "<html>hi</html>")

    page = fetch_url("https://docs.example.com", timeout=5)

    assert page.status_code == 200
    assert page.text == "<html>hi</html>"
    assert page.content_type.startswith("text/html")
    mock_get.assert_called_once_with("https://docs.example.com", headers={}, timeout=5)


@patch("doc_rag.ingestion.fetch.requests.get")
def test_non_success_status_raises(mock_get: MagicMock) -> None:
    mock_get.return_value = _response(404, reason="Not Found")

    with pytest.raises(FetchError, match="Failed to fetch URL: Not Found"):
        fetch_url("https://docs.example.com/missing")


@patch("doc_rag.ingestion.fetch.requests.get")
def test_transport_error_raises(mock_get: MagicMock) -> None:
    mock_get.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(FetchError, match="connection refused"):
        fetch_url("https://unreachable.example.com")
