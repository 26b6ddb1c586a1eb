from __future__ import annotations

from ecoconv.models import Platform
from ecoconv.web.platforms import PageSnapshot, PlatformRule, detect_platform


def _detect(html: str, url: str = "https://tienda.example.com/") -> Platform:
    return detect_platform(PageSnapshot.parse(url, html))


def test_detects_each_known_platform() -> None:
    assert _detect("<html></html>", url="https://demo.ecometri.shop/") is Platform.ECOMETRI
    assert _detect('<script src="https://cdn.shopify.com/s/theme.js"></script>') is Platform.SHOPIFY
    assert _detect('<html><body class="home woocommerce"></body></html>') is Platform.WOOCOMMERCE
    assert _detect('<script type="text/x-magento-init">{"*": {"Magento_Ui/js/core/app": {}}}</script>') is (
        Platform.MAGENTO
    )
    assert _detect("<html><body><p>Hola</p></body></html>") is Platform.GENERIC


def test_detection_follows_priority_order() -> None:
    html = (
        '<link rel="stylesheet" href="/wp-content/plugins/woocommerce/style.css">'
        '<script>Shopify.theme = {"name": "Dawn"};</script>'
    )

    assert _detect(html) is Platform.SHOPIFY


def test_custom_rules_are_evaluated_in_order() -> None:
    rules = (
        PlatformRule(Platform.MAGENTO, lambda page: "checkout" in page.url),
        PlatformRule(Platform.SHOPIFY, lambda page: True),
    )

    page = PageSnapshot.parse("https://tienda.example.com/checkout", "<html></html>")

    assert detect_platform(page, rules) is Platform.MAGENTO


def test_ecometri_text_mention_does_not_override_shopify() -> None:
    html = '<script src="https://cdn.shopify.com/s/theme.js"></script><p>Importa tu catálogo a Ecometri</p>'

    assert _detect(html) is Platform.SHOPIFY
    assert _detect('<script src="/assets/ecometri-store.js"></script>') is Platform.ECOMETRI
