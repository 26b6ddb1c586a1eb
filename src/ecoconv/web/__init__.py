"""Store page fetching, platform detection and product extraction."""

from .feed import StructuredFeedClient
from .fetcher import PageFetcher
from .fields import extract_price, make_absolute_url
from .platforms import PageSnapshot, detect_platform
from .scraper import WebExtraction, WebProductExtractor

__all__ = [
    "PageFetcher",
    "PageSnapshot",
    "StructuredFeedClient",
    "WebExtraction",
    "WebProductExtractor",
    "detect_platform",
    "extract_price",
    "make_absolute_url",
]
