"""Product candidate detection over extracted PDF text.

Two acceptance strategies are available: a length heuristic that treats every
reasonably sized line as a title, and a SKU heuristic that looks for
``PREFIX-CODE`` tokens and uses the rest of the line as the title.  Whatever
the strategy, a document always yields at least one candidate.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Sequence

from ecoconv.extraction.normalization import (
    TITLE_MAX_LENGTH,
    is_heading_line,
    is_noise_line,
    is_title_candidate,
    normalize_whitespace,
)
from ecoconv.models import RawProductCandidate, SourceType

logger = logging.getLogger(__name__)

FALLBACK_TITLE_CHARS = 100
FALLBACK_DESCRIPTION_CHARS = 400
SKU_TITLE_MIN_LENGTH = 3


# Ordered by specificity: "KA-100", "KA-100B", "YMH-2040"
_LETTER_DIGIT_SKU_RE = re.compile(r"\b[A-Z]{1,5}-\d{2,8}[A-Z]{0,3}\b")

# Mixed codes: "AB-X12", "REF-9A7C"
_ALNUM_SKU_RE = re.compile(r"\b[A-Z]{1,5}-(?=[A-Z0-9]*\d)[A-Z0-9]{2,10}\b")

DEFAULT_SKU_PATTERNS: tuple[re.Pattern[str], ...] = (_LETTER_DIGIT_SKU_RE, _ALNUM_SKU_RE)

# Separators left behind once the SKU token is cut out of a line
_EDGE_SEPARATORS = " \t-–—:|/.,;"


def _page_info(index: int) -> str:
    return f"Product {index + 1}"


def _candidate_lines(text: str) -> list[str]:
    return [line.strip() for line in text.split("\n") if not is_noise_line(line)]


def _detect_by_length(text: str, _patterns: Sequence[re.Pattern[str]]) -> list[RawProductCandidate]:
    candidates: list[RawProductCandidate] = []
    for line in _candidate_lines(text):
        if not is_title_candidate(line):
            continue
        candidates.append(
            RawProductCandidate(
                title=normalize_whitespace(line),
                source=SourceType.PDF,
                page_info=_page_info(len(candidates)),
            )
        )
    return candidates


def _first_unseen_token(line: str, patterns: Sequence[re.Pattern[str]], seen: set[str]) -> re.Match[str] | None:
    """Return the first SKU token on *line* that has not been emitted yet."""
    for pattern in patterns:
        for match in pattern.finditer(line):
            if match.group(0) not in seen:
                return match
    return None


def _line_has_token(line: str, patterns: Sequence[re.Pattern[str]]) -> bool:
    return any(pattern.search(line) for pattern in patterns)


def _title_without_token(line: str, match: re.Match[str]) -> str:
    remainder = f"{line[: match.start()]} {line[match.end():]}"
    return normalize_whitespace(remainder).strip(_EDGE_SEPARATORS)


def _detect_by_sku(text: str, patterns: Sequence[re.Pattern[str]]) -> list[RawProductCandidate]:
    candidates: list[RawProductCandidate] = []
    seen: set[str] = set()
    category = ""

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        if is_heading_line(line) and not _line_has_token(line, patterns):
            # Headings are often shorter than the noise threshold
            category = normalize_whitespace(line)
            continue
        if is_noise_line(line):
            continue

        match = _first_unseen_token(line, patterns, seen)
        if match is None:
            continue

        title = _title_without_token(line, match)
        if not (SKU_TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH):
            continue

        sku = match.group(0)
        seen.add(sku)
        candidates.append(
            RawProductCandidate(
                title=title,
                sku=sku,
                category=category,
                source=SourceType.PDF,
                page_info=_page_info(len(candidates)),
            )
        )

    return candidates


_STRATEGIES: dict[str, Callable[[str, Sequence[re.Pattern[str]]], list[RawProductCandidate]]] = {
    "length": _detect_by_length,
    "sku": _detect_by_sku,
}


def fallback_candidate(text: str) -> RawProductCandidate:
    """Single candidate built from the head of the document."""

    title_end = FALLBACK_TITLE_CHARS
    description_end = FALLBACK_TITLE_CHARS + FALLBACK_DESCRIPTION_CHARS
    return RawProductCandidate(
        title=text[:title_end].strip(),
        description=text[title_end:description_end].strip(),
        source=SourceType.PDF,
        page_info="Full document",
    )


def detect_products(
    text: str,
    *,
    strategy: str = "length",
    sku_patterns: Sequence[re.Pattern[str]] = DEFAULT_SKU_PATTERNS,
) -> list[RawProductCandidate]:
    """Turn document text into ordered product candidates.

    ``strategy`` is ``"length"``, ``"sku"`` or ``"auto"`` (SKU scan first,
    length heuristic when it finds nothing).  Zero matches produce the
    fallback candidate, so the result is never empty.
    """

    if strategy == "auto":
        order = ["sku", "length"]
    elif strategy in _STRATEGIES:
        order = [strategy]
    else:
        raise ValueError(f"Unknown PDF extraction strategy: {strategy}")

    text = text or ""
    for name in order:
        candidates = _STRATEGIES[name](text, sku_patterns)
        if candidates:
            logger.info("PDF strategy %r produced %d candidate(s)", name, len(candidates))
            return candidates

    logger.info("No product lines detected; using full-document fallback")
    return [fallback_candidate(text)]
