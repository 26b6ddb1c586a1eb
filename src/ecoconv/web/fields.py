"""Field-level helpers for scraped product containers."""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit

from bs4 import Tag

from ecoconv.extraction.normalization import normalize_whitespace

_PRICE_RE = re.compile(r"\d[\d,]*(?:\.\d+)?")

IMAGE_SOURCE_ATTRIBUTES = ("src", "data-src", "data-lazy", "data-original")


def extract_price(price_text: str | None) -> str:
    """First numeric run of *price_text* without thousands separators.

    ``"$1,234.56"`` becomes ``"1234.56"``; text without digits becomes ``"0"``.
    """

    if not price_text:
        return "0"
    match = _PRICE_RE.search(price_text)
    if match is None:
        return "0"
    return match.group(0).replace(",", "")


def page_origin(url: str) -> str:
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme}://{parts.netloc}"


def make_absolute_url(url: str | None, base_url: str) -> str:
    """Resolve *url* against the origin of *base_url*."""

    if not url:
        return ""
    url = url.strip()
    if url.startswith(("http://", "https://", "data:")):
        return url
    if url.startswith("//"):
        return f"https:{url}"
    origin = page_origin(base_url)
    if not origin:
        return url
    return urljoin(f"{origin}/", url)


def element_text(element: Tag | None) -> str:
    if element is None:
        return ""
    return normalize_whitespace(element.get_text(" ", strip=True))


def first_text(container: Tag, selector: str) -> str:
    return element_text(container.select_one(selector))


def image_source(img: Tag | None) -> str:
    """``src`` or the first populated lazy-load attribute."""

    if img is None:
        return ""
    for attribute in IMAGE_SOURCE_ATTRIBUTES:
        value = img.get(attribute)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def link_href(container: Tag) -> str:
    """Href of the container itself, its first anchor, or its nearest anchor ancestor."""

    if container.name == "a" and container.get("href"):
        return str(container["href"])
    anchor = container.find("a", href=True)
    if anchor is not None:
        return str(anchor["href"])
    parent_anchor = container.find_parent("a", href=True)
    if parent_anchor is not None:
        return str(parent_anchor["href"])
    return ""
