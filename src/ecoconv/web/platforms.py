"""Storefront platform fingerprinting.

Rules are evaluated in priority order and the first match wins, so adding a
platform means adding a rule rather than another branch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from bs4 import BeautifulSoup

from ecoconv.models import Platform


@dataclass(frozen=True, slots=True)
class PageSnapshot:
    """Fetched page as seen by the fingerprint rules."""

    url: str
    html: str
    soup: BeautifulSoup

    @classmethod
    def parse(cls, url: str, html: str) -> "PageSnapshot":
        return cls(url=url, html=html, soup=BeautifulSoup(html, "lxml"))


@dataclass(frozen=True, slots=True)
class PlatformRule:
    platform: Platform
    matches: Callable[[PageSnapshot], bool]


def _is_ecometri(page: PageSnapshot) -> bool:
    url = page.url.lower()
    if "ecometri.shop" in url or "ecometri.com" in url:
        return True
    if "ecometri" in page.html:
        return True
    return bool(page.soup.select('meta[content*="Ecometri"], [class*="ecometri"]'))


def _is_shopify(page: PageSnapshot) -> bool:
    markers = ("Shopify.theme", "cdn.shopify.com", "myshopify.com")
    if any(marker in page.html for marker in markers):
        return True
    return bool(page.soup.select('meta[content*="Shopify"]'))


def _is_woocommerce(page: PageSnapshot) -> bool:
    body = page.soup.body
    if body is not None and "woocommerce" in (body.get("class") or []):
        return True
    if page.soup.select('link[href*="woocommerce"]'):
        return True
    return "woocommerce" in page.html


def _is_magento(page: PageSnapshot) -> bool:
    return "Magento" in page.html or "mage/" in page.html


DEFAULT_RULES: tuple[PlatformRule, ...] = (
    PlatformRule(Platform.ECOMETRI, _is_ecometri),
    PlatformRule(Platform.SHOPIFY, _is_shopify),
    PlatformRule(Platform.WOOCOMMERCE, _is_woocommerce),
    PlatformRule(Platform.MAGENTO, _is_magento),
)


def detect_platform(page: PageSnapshot, rules: tuple[PlatformRule, ...] = DEFAULT_RULES) -> Platform:
    for rule in rules:
        if rule.matches(page):
            return rule.platform
    return Platform.GENERIC
