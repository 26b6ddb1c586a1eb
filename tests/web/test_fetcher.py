from __future__ import annotations

from typing import Any

import pytest
import requests

from ecoconv.errors import FetchError
from ecoconv.web.fetcher import PageFetcher


class _FakeResponse:
    def __init__(
        self,
        *,
        status_code: int = 200,
        text: str = "",
        content: bytes = b"",
        headers: dict[str, str] | None = None,
        payload: Any = None,
    ) -> None:
        self.status_code = status_code
        self.text = text
        self.content = content
        self.headers = headers or {}
        self._payload = payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("Expecting value")
        return self._payload


class _FakeSession(requests.Session):
    def __init__(self, responses: list[object]) -> None:
        super().__init__()
        self._responses = list(responses)
        self.requests: list[tuple[str, dict[str, Any]]] = []

    def get(self, url: str, **kwargs: Any) -> Any:  # type: ignore[override]
        self.requests.append((url, kwargs))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def test_get_text_sends_browser_headers_and_timeout() -> None:
    session = _FakeSession([_FakeResponse(text="<html></html>")])
    fetcher = PageFetcher(timeout_seconds=12.0, session=session)

    assert fetcher.get_text("https://tienda.example.com/") == "<html></html>"
    assert "Mozilla/5.0" in session.headers["User-Agent"]
    assert session.requests[0][1]["timeout"] == 12.0


def test_get_bytes_returns_payload_and_bare_content_type() -> None:
    session = _FakeSession([_FakeResponse(content=b"\x89PNG", headers={"Content-Type": "image/png; charset=binary"})])
    fetcher = PageFetcher(image_timeout_seconds=5.0, session=session)

    assert fetcher.get_bytes("https://cdn.example.com/a.png") == (b"\x89PNG", "image/png")
    assert session.requests[0][1]["timeout"] == 5.0


def test_http_and_network_errors_become_fetch_errors() -> None:
    session = _FakeSession([_FakeResponse(status_code=404), requests.ConnectionError("refused")])
    fetcher = PageFetcher(session=session)

    with pytest.raises(FetchError, match="404"):
        fetcher.get_text("https://tienda.example.com/missing")
    with pytest.raises(FetchError, match="refused"):
        fetcher.get_text("https://tienda.example.com/")


def test_invalid_json_is_reported_as_fetch_error() -> None:
    session = _FakeSession([_FakeResponse(text="<html>")])
    fetcher = PageFetcher(session=session)

    with pytest.raises(FetchError, match="not valid JSON"):
        fetcher.get_json("https://tienda.example.com/products.json", params={"limit": 250, "page": 1})
