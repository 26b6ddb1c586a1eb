"""HTTP access to store pages, structured feeds and product images."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import requests

from ecoconv.errors import FetchError

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "es-ES,es;q=0.9,en;q=0.8",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}
MAX_REDIRECTS = 5


class PageFetcher:
    """Thin requests.Session wrapper that maps every failure to FetchError."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 30.0,
        image_timeout_seconds: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        if timeout_seconds <= 0 or image_timeout_seconds <= 0:
            raise ValueError("timeouts must be positive")
        self._timeout = timeout_seconds
        self._image_timeout = image_timeout_seconds
        self._session = session or requests.Session()
        self._session.headers.update(BROWSER_HEADERS)
        self._session.max_redirects = MAX_REDIRECTS

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "PageFetcher":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    def get_text(self, url: str) -> str:
        response = self._get(url, timeout=self._timeout)
        return response.text

    def get_json(self, url: str, params: Mapping[str, Any] | None = None) -> Any:
        response = self._get(url, timeout=self._timeout, params=params, headers={"Accept": "application/json"})
        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(url, f"Response is not valid JSON: {exc}") from exc

    def get_bytes(self, url: str) -> tuple[bytes, str]:
        """Return the payload and its declared content type."""

        response = self._get(url, timeout=self._image_timeout, headers={"Accept": "image/*,*/*;q=0.8"})
        content_type = response.headers.get("Content-Type", "").split(";")[0].strip()
        return response.content, content_type

    def _get(
        self,
        url: str,
        *,
        timeout: float,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> requests.Response:
        try:
            response = self._session.get(url, params=params, headers=headers, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("GET %s failed: %s", url, exc)
            raise FetchError(url, f"Failed to fetch URL: {exc}") from exc
        return response
