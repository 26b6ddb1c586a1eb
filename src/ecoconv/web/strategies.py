"""Ordered HTML extraction strategies for markup-only storefronts.

Each strategy maps a parsed page to product candidates.  A chain is run in
order and the first strategy that returns anything wins:

1. known container selectors (first selector with at least one match),
2. a structural scan for elements holding an image, a title and a price,
3. a permissive image walk that climbs from every image to its container.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Protocol, Sequence, runtime_checkable

from bs4 import BeautifulSoup, Tag

from ecoconv.extraction.normalization import title_key
from ecoconv.models import Platform, RawProductCandidate, SourceType
from ecoconv.web.fields import (
    element_text,
    extract_price,
    first_text,
    image_source,
    link_href,
    make_absolute_url,
)

logger = logging.getLogger(__name__)

DEFAULT_MIN_TITLE_LENGTH = 4
_HAS_DIGIT = set("0123456789")

PRICE_SELECTOR = '[class*="price"], [class*="precio"], [class*="valor"], [class*="cost"], [itemprop="price"]'


@dataclass(frozen=True, slots=True)
class FieldSelectors:
    """Where to look for each field inside a matched product container."""

    title: str
    price: str = PRICE_SELECTOR
    description: str | None = None
    min_title_length: int = DEFAULT_MIN_TITLE_LENGTH


ECOMETRI_FIELDS = FieldSelectors(
    title='[class*="title"], [class*="name"], [class*="nombre"], h1, h2, h3, h4',
    description='[class*="description"], [class*="desc"], [class*="descripcion"], p',
)
WOOCOMMERCE_FIELDS = FieldSelectors(
    title=".woocommerce-loop-product__title, h2, h3, .product-title",
    price=".price .amount, .price, .woocommerce-Price-amount",
)
GENERIC_FIELDS = FieldSelectors(
    title='h1, h2, h3, h4, .title, [itemprop="name"]',
    description='.description, [itemprop="description"], p',
    min_title_length=6,
)

ECOMETRI_SELECTORS = (
    ".product-item",
    ".product-card",
    "[data-product]",
    ".item-product",
    "article.product",
    '[class*="product-"]',
    ".product",
    '[itemtype*="Product"]',
)
WOOCOMMERCE_SELECTORS = (".product", ".woocommerce-LoopProduct-link", "li.product", ".type-product")
GENERIC_SELECTORS = (
    '[itemtype*="Product"]',
    ".product-item",
    ".product-card",
    "[data-product-id]",
    ".item",
    "article",
)


@runtime_checkable
class ExtractionStrategy(Protocol):
    """Contract shared by every HTML extraction strategy."""

    name: str

    def extract(self, soup: BeautifulSoup, base_url: str, platform: Platform) -> list[RawProductCandidate]:
        """Return candidates found on the page, possibly none."""


def _anchor_title(container: Tag) -> str:
    anchor = container if container.name == "a" else container.find("a")
    if anchor is None:
        return ""
    title_attr = anchor.get("title")
    if isinstance(title_attr, str) and title_attr.strip():
        return title_attr.strip()
    return element_text(anchor)


def _image_alt(img: Tag | None) -> str:
    if img is None:
        return ""
    alt = img.get("alt")
    return alt.strip() if isinstance(alt, str) else ""


def container_candidate(
    container: Tag,
    base_url: str,
    platform: Platform,
    fields: FieldSelectors,
) -> RawProductCandidate | None:
    """Build a candidate from one product container, or None if it has no usable title."""

    img = container.find("img")
    title = first_text(container, fields.title) or _anchor_title(container) or _image_alt(img)
    if len(title) < fields.min_title_length:
        return None

    description = first_text(container, fields.description) if fields.description else ""
    image = make_absolute_url(image_source(img), base_url)

    return RawProductCandidate(
        title=title,
        description=description or title,
        price=extract_price(first_text(container, fields.price)),
        image_refs=[image] if image else [],
        source_url=make_absolute_url(link_href(container), base_url),
        source=SourceType.WEB,
        platform=platform,
    )


@dataclass(frozen=True, slots=True)
class SelectorStrategy:
    """Try container selectors in order; the first one with matches is used."""

    name: str
    selectors: Sequence[str]
    fields: FieldSelectors
    max_matches: int | None = None

    def extract(self, soup: BeautifulSoup, base_url: str, platform: Platform) -> list[RawProductCandidate]:
        for selector in self.selectors:
            containers = soup.select(selector)
            if not containers:
                continue
            if self.max_matches is not None and len(containers) >= self.max_matches:
                continue
            logger.info("%s: %d container(s) matched %r", self.name, len(containers), selector)
            candidates = [container_candidate(node, base_url, platform, self.fields) for node in containers]
            return [candidate for candidate in candidates if candidate is not None]
        return []


_STRUCTURAL_TITLE = '[class*="title"], [class*="name"], h1, h2, h3, h4'
_STRUCTURAL_PRICE = '[class*="price"], [class*="precio"]'


@dataclass(frozen=True, slots=True)
class StructuralStrategy:
    """Innermost div/article/li elements holding an image, a title and a price."""

    name: str = "structural"
    fields: FieldSelectors = ECOMETRI_FIELDS

    def extract(self, soup: BeautifulSoup, base_url: str, platform: Platform) -> list[RawProductCandidate]:
        matched = [
            node
            for node in soup.find_all(["div", "article", "li"])
            if node.find("img") is not None
            and node.select_one(_STRUCTURAL_TITLE) is not None
            and node.select_one(_STRUCTURAL_PRICE) is not None
        ]
        if not matched:
            return []

        # Wrappers around several products also match; keep only the innermost.
        wrappers: set[int] = set()
        matched_ids = {id(node) for node in matched}
        for node in matched:
            for parent in node.parents:
                if id(parent) in matched_ids:
                    wrappers.add(id(parent))
        innermost = [node for node in matched if id(node) not in wrappers]
        logger.info("%s: %d container(s) found", self.name, len(innermost))

        candidates = [container_candidate(node, base_url, platform, self.fields) for node in innermost]
        return [candidate for candidate in candidates if candidate is not None]


_AGGRESSIVE_TITLE = 'h1, h2, h3, h4, h5, [class*="title"], [class*="name"], [class*="nombre"]'


@dataclass(frozen=True, slots=True)
class AggressiveStrategy:
    """Climb from each image to its container and accept title/price pairs.

    The thresholds are heuristics without a precision contract; they are
    parameters so callers can tune them per store.
    """

    name: str = "aggressive"
    max_images: int = 200
    min_parent_text: int = 10
    min_title_length: int = 6
    max_title_length: int = 199
    require_price: bool = True

    def extract(self, soup: BeautifulSoup, base_url: str, platform: Platform) -> list[RawProductCandidate]:
        candidates: list[RawProductCandidate] = []

        for img in soup.find_all("img", limit=self.max_images):
            parent = img.find_parent(["div", "article", "li", "section", "a"])
            if parent is None or len(element_text(parent)) < self.min_parent_text:
                continue

            title = (
                first_text(parent, _AGGRESSIVE_TITLE)
                or first_text(parent, "a")
                or first_text(parent, "strong, b")
            )
            if not (self.min_title_length <= len(title) <= self.max_title_length):
                continue

            image = image_source(img)
            if not image:
                continue

            price_text = first_text(parent, PRICE_SELECTOR)
            if self.require_price and not _HAS_DIGIT.intersection(price_text):
                continue

            link = link_href(parent) if parent.name == "a" else _first_href(parent)
            candidates.append(
                RawProductCandidate(
                    title=title,
                    description=title,
                    price=extract_price(price_text),
                    image_refs=[make_absolute_url(image, base_url)],
                    source_url=make_absolute_url(link, base_url),
                    source=SourceType.WEB,
                    platform=platform,
                )
            )

        if candidates:
            logger.info("%s: %d image container(s) accepted", self.name, len(candidates))
        return candidates


def _first_href(container: Tag) -> str:
    anchor = container.find("a", href=True)
    return str(anchor["href"]) if anchor is not None else ""


_GENERIC_SELECTOR_STRATEGY = SelectorStrategy("generic-selectors", GENERIC_SELECTORS, GENERIC_FIELDS, max_matches=200)
_STRUCTURAL_STRATEGY = StructuralStrategy()
_AGGRESSIVE_STRATEGY = AggressiveStrategy()

GENERIC_CHAIN: tuple[ExtractionStrategy, ...] = (
    _GENERIC_SELECTOR_STRATEGY,
    _STRUCTURAL_STRATEGY,
    _AGGRESSIVE_STRATEGY,
)

_PLATFORM_CHAINS: dict[Platform, tuple[ExtractionStrategy, ...]] = {
    Platform.ECOMETRI: (SelectorStrategy("ecometri-selectors", ECOMETRI_SELECTORS, ECOMETRI_FIELDS),),
    Platform.WOOCOMMERCE: (SelectorStrategy("woocommerce-selectors", WOOCOMMERCE_SELECTORS, WOOCOMMERCE_FIELDS),),
}


def chain_for(platform: Platform) -> tuple[ExtractionStrategy, ...]:
    """Platform selectors, then the structural scan, then the generic fallbacks."""

    own = _PLATFORM_CHAINS.get(platform)
    if not own:
        return GENERIC_CHAIN
    # Loose generic selectors such as "article" must not pre-empt the structural scan.
    return own + (_STRUCTURAL_STRATEGY, _GENERIC_SELECTOR_STRATEGY, _AGGRESSIVE_STRATEGY)


def run_strategies(
    strategies: Sequence[ExtractionStrategy],
    soup: BeautifulSoup,
    base_url: str,
    platform: Platform,
) -> tuple[str | None, list[RawProductCandidate]]:
    """Run *strategies* in order and return the first non-empty result."""

    for strategy in strategies:
        candidates = strategy.extract(soup, base_url, platform)
        if candidates:
            return strategy.name, candidates
        logger.info("%s found nothing, trying next strategy", strategy.name)
    return None, []


def dedupe_by_title(
    candidates: Sequence[RawProductCandidate],
    *,
    min_title_length: int = DEFAULT_MIN_TITLE_LENGTH,
) -> list[RawProductCandidate]:
    """Drop repeated titles (case-insensitive, trimmed); the first occurrence wins."""

    seen: set[str] = set()
    unique: list[RawProductCandidate] = []
    for candidate in candidates:
        key = title_key(candidate.title)
        if len(key) < min_title_length or key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique
