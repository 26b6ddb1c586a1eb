"""Store scraping entrypoint: fetch, fingerprint, extract, dedupe."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Protocol, Sequence

from ecoconv.models import Platform, RawProductCandidate
from ecoconv.web.feed import StructuredFeedClient
from ecoconv.web.platforms import PageSnapshot, PlatformRule, DEFAULT_RULES, detect_platform
from ecoconv.web.strategies import ExtractionStrategy, chain_for, dedupe_by_title, run_strategies

logger = logging.getLogger(__name__)


class TextFetcher(Protocol):
    def get_text(self, url: str) -> str:
        """Return the page body or raise FetchError."""


@dataclass(slots=True)
class WebExtraction:
    """Candidates found on one store page plus how they were found."""

    url: str
    platform: Platform
    candidates: list[RawProductCandidate] = field(default_factory=list)
    strategy: str | None = None


class WebProductExtractor:
    """Turn a store URL into deduplicated product candidates."""

    def __init__(
        self,
        fetcher: TextFetcher,
        feed_client: StructuredFeedClient | None = None,
        *,
        rules: tuple[PlatformRule, ...] = DEFAULT_RULES,
        chains: dict[Platform, Sequence[ExtractionStrategy]] | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._feed_client = feed_client
        self._rules = rules
        self._chains = chains or {}

    def extract(self, url: str) -> WebExtraction:
        """Scrape *url*; a fetch failure propagates as FetchError."""

        html = self._fetcher.get_text(url)
        page = PageSnapshot.parse(url, html)
        platform = detect_platform(page, self._rules)
        logger.info("Detected platform %s for %s", platform.value, url)

        if platform is Platform.SHOPIFY and self._feed_client is not None:
            feed_candidates = self._feed_client.fetch_products(url)
            if feed_candidates:
                return WebExtraction(url=url, platform=platform, candidates=feed_candidates, strategy="feed")
            logger.info("Feed empty for %s, falling back to markup strategies", url)

        strategies = self._chains.get(platform) or chain_for(platform)
        strategy_name, candidates = run_strategies(strategies, page.soup, url, platform)
        unique = dedupe_by_title(candidates)
        logger.info("Extracted %d unique product(s) from %s", len(unique), url)
        return WebExtraction(url=url, platform=platform, candidates=unique, strategy=strategy_name)
