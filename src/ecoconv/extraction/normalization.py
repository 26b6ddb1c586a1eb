"""Text normalization and line classification used by the extractors."""

from __future__ import annotations

import re
import unicodedata

from bs4 import BeautifulSoup

_WHITESPACE_RE = re.compile(r"\s+")

NOISE_MAX_LENGTH = 10
TITLE_MIN_LENGTH = 15
TITLE_MAX_LENGTH = 200
HEADING_MAX_LENGTH = 60


def normalize_whitespace(text: str) -> str:
    """Collapse repeated whitespace and trim boundaries."""

    return _WHITESPACE_RE.sub(" ", text).strip()


def strip_html(markup: str | None) -> str:
    """Drop markup and return readable single-spaced text."""

    if not markup:
        return ""
    if "<" not in markup:
        return normalize_whitespace(markup)
    text = BeautifulSoup(markup, "lxml").get_text(" ", strip=True)
    return normalize_whitespace(text)


def has_letter(text: str) -> bool:
    return any(char.isalpha() for char in text)


def is_noise_line(line: str, *, max_length: int = NOISE_MAX_LENGTH) -> bool:
    """Whitespace, page numbers and other short fragments."""

    return len(line.strip()) <= max_length


def is_title_candidate(
    line: str,
    *,
    min_length: int = TITLE_MIN_LENGTH,
    max_length: int = TITLE_MAX_LENGTH,
) -> bool:
    length = len(line.strip())
    return min_length <= length <= max_length and has_letter(line)


def is_heading_line(line: str, *, max_length: int = HEADING_MAX_LENGTH) -> bool:
    """Short, fully upper-case lines such as ``UKULELES`` or ``CUERDAS``."""

    stripped = line.strip()
    if not stripped or len(stripped) >= max_length:
        return False
    return has_letter(stripped) and stripped.upper() == stripped


def title_key(title: str) -> str:
    """Stable key for case-insensitive title dedupe."""

    normalized = unicodedata.normalize("NFKC", title)
    return normalize_whitespace(normalized).casefold()
