"""Structured product feed for hosted storefronts that publish one (Shopify)."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from ecoconv.errors import FetchError
from ecoconv.extraction.normalization import strip_html
from ecoconv.models import Platform, RawProductCandidate, SourceType
from ecoconv.web.fields import page_origin

logger = logging.getLogger(__name__)

UNTITLED_PRODUCT = "Producto sin título"


class JsonFetcher(Protocol):
    def get_json(self, url: str, params: Any = None) -> Any:
        """Return decoded JSON or raise FetchError."""


def _tags(raw: Any) -> list[str]:
    if isinstance(raw, str):
        return [tag.strip() for tag in raw.split(",") if tag.strip()]
    if isinstance(raw, list):
        return [str(tag).strip() for tag in raw if str(tag).strip()]
    return []


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def map_feed_product(product: dict[str, Any], origin: str) -> RawProductCandidate:
    """Map one feed entry 1:1 onto a candidate."""

    variants = product.get("variants") or []
    first_variant = variants[0] if variants and isinstance(variants[0], dict) else {}
    images = [
        _text(image.get("src"))
        for image in product.get("images") or []
        if isinstance(image, dict) and _text(image.get("src"))
    ]
    handle = _text(product.get("handle"))

    return RawProductCandidate(
        title=_text(product.get("title")) or UNTITLED_PRODUCT,
        description=strip_html(product.get("body_html") or ""),
        price=_text(first_variant.get("price")) or "0",
        compare_at_price=_text(first_variant.get("compare_at_price")),
        sku=_text(first_variant.get("sku")),
        image_refs=images,
        brand=_text(product.get("vendor")),
        product_type=_text(product.get("product_type")),
        tags=_tags(product.get("tags")),
        source_url=f"{origin}/products/{handle}" if handle else "",
        source=SourceType.WEB,
        platform=Platform.SHOPIFY,
    )


class StructuredFeedClient:
    """Page through ``/products.json`` up to a fixed page cap."""

    def __init__(self, fetcher: JsonFetcher, *, page_size: int = 250, max_pages: int = 10) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        if max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        self._fetcher = fetcher
        self._page_size = page_size
        self._max_pages = max_pages

    def fetch_products(self, store_url: str) -> list[RawProductCandidate]:
        """Return every product of the feed, or an empty list when there is none.

        A failure on the first page means the store does not expose the feed;
        a failure on a later page keeps what was already collected.
        """

        origin = page_origin(store_url)
        feed_url = f"{origin}/products.json"
        candidates: list[RawProductCandidate] = []

        for page in range(1, self._max_pages + 1):
            try:
                payload = self._fetcher.get_json(feed_url, params={"limit": self._page_size, "page": page})
            except FetchError as exc:
                if page == 1:
                    logger.warning("Structured feed unavailable at %s: %s", feed_url, exc)
                else:
                    logger.warning("Stopping feed pagination at page %d: %s", page, exc)
                break

            products = payload.get("products") if isinstance(payload, dict) else None
            if not isinstance(products, list) or not products:
                break

            candidates.extend(map_feed_product(product, origin) for product in products if isinstance(product, dict))
            if len(products) < self._page_size:
                break

        logger.info("Structured feed returned %d product(s)", len(candidates))
        return candidates
