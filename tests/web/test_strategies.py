from __future__ import annotations

from bs4 import BeautifulSoup

from ecoconv.models import Platform, RawProductCandidate, SourceType
from ecoconv.web.strategies import (
    AggressiveStrategy,
    StructuralStrategy,
    chain_for,
    dedupe_by_title,
    run_strategies,
)

BASE_URL = "https://tienda.example.com/catalogo"


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


PRODUCT_ITEMS = """
<html><body>
  <div class="product-item">
    <a href="/p/soprano"><img src="/img/soprano.jpg" alt="Soprano"></a>
    <h3>Ukulele Soprano Natural</h3>
    <span class="price">$1,234.56</span>
  </div>
  <div class="product-item">
    <a href="/p/concierto"><img data-src="img/concierto.jpg"></a>
    <h3>Ukulele Concierto Negro</h3>
    <span class="price">$980</span>
  </div>
  <div class="product-item">
    <a href="https://otra.example.com/p/tenor"><img src="//cdn.example.com/tenor.jpg"></a>
    <h3>Ukulele Tenor Sunburst</h3>
    <span class="price">USD 1.500</span>
  </div>
</body></html>
"""


def test_product_item_containers_yield_absolute_urls() -> None:
    name, candidates = run_strategies(chain_for(Platform.GENERIC), _soup(PRODUCT_ITEMS), BASE_URL, Platform.GENERIC)

    assert name == "generic-selectors"
    assert len(candidates) == 3
    assert [candidate.image_refs for candidate in candidates] == [
        ["https://tienda.example.com/img/soprano.jpg"],
        ["https://tienda.example.com/img/concierto.jpg"],
        ["https://cdn.example.com/tenor.jpg"],
    ]
    assert candidates[0].title == "Ukulele Soprano Natural"
    assert candidates[0].description == "Ukulele Soprano Natural"
    assert candidates[0].price == "1234.56"
    assert candidates[0].source_url == "https://tienda.example.com/p/soprano"
    assert candidates[2].source_url == "https://otra.example.com/p/tenor"
    assert all(candidate.source is SourceType.WEB for candidate in candidates)
    assert all(candidate.platform is Platform.GENERIC for candidate in candidates)


def test_platform_selectors_run_before_generic_chain() -> None:
    html = """
    <ul class="products">
      <li class="product type-product">
        <a href="/producto/bajo" class="woocommerce-LoopProduct-link">
          <img src="/wp-content/uploads/bajo.jpg">
          <h2 class="woocommerce-loop-product__title">Bajo Eléctrico 4 cuerdas</h2>
          <span class="price"><span class="amount">$350.00</span></span>
        </a>
      </li>
    </ul>
    """

    name, candidates = run_strategies(
        chain_for(Platform.WOOCOMMERCE), _soup(html), BASE_URL, Platform.WOOCOMMERCE
    )

    assert name == "woocommerce-selectors"
    assert [(candidate.title, candidate.price) for candidate in candidates] == [("Bajo Eléctrico 4 cuerdas", "350.00")]
    assert candidates[0].source_url == "https://tienda.example.com/producto/bajo"


def test_structural_strategy_keeps_innermost_containers() -> None:
    html = """
    <section>
      <div class="grid">
        <div class="card"><img src="a.jpg"><span class="name">Guitarra Clásica Cedro</span>
          <span class="precio">$1,200.00</span></div>
        <div class="card"><img src="b.jpg"><span class="name">Guitarra Clásica Pino</span>
          <span class="precio">$900.00</span></div>
      </div>
    </section>
    """

    candidates = StructuralStrategy().extract(_soup(html), BASE_URL, Platform.GENERIC)

    assert [candidate.title for candidate in candidates] == ["Guitarra Clásica Cedro", "Guitarra Clásica Pino"]
    assert [candidate.price for candidate in candidates] == ["1200.00", "900.00"]


AGGRESSIVE_PAGE = """
<ul>
  <li><a href="/p/1"><img src="/i/1.jpg"><b>Bajo eléctrico 4 cuerdas</b><span class="cost">USD 350</span></a></li>
  <li><a href="/p/2"><img src="/i/2.jpg"><b>Tarjeta de regalo especial</b></a></li>
</ul>
"""


def test_aggressive_strategy_is_the_last_resort() -> None:
    name, candidates = run_strategies(
        chain_for(Platform.GENERIC), _soup(AGGRESSIVE_PAGE), BASE_URL, Platform.GENERIC
    )

    assert name == "aggressive"
    assert len(candidates) == 1
    assert candidates[0].title == "Bajo eléctrico 4 cuerdas"
    assert candidates[0].price == "350"
    assert candidates[0].image_refs == ["https://tienda.example.com/i/1.jpg"]
    assert candidates[0].source_url == "https://tienda.example.com/p/1"


def test_aggressive_strategy_thresholds_are_tunable() -> None:
    permissive = AggressiveStrategy(require_price=False)

    candidates = permissive.extract(_soup(AGGRESSIVE_PAGE), BASE_URL, Platform.GENERIC)

    assert [candidate.title for candidate in candidates] == ["Bajo eléctrico 4 cuerdas", "Tarjeta de regalo especial"]
    assert candidates[1].price == "0"


def test_chain_returns_nothing_for_pages_without_products() -> None:
    name, candidates = run_strategies(
        chain_for(Platform.GENERIC), _soup("<p>Hola</p>"), BASE_URL, Platform.GENERIC
    )

    assert name is None
    assert candidates == []


def test_dedupe_by_title_keeps_first_occurrence() -> None:
    candidates = [
        RawProductCandidate(title="Ukulele Soprano", source=SourceType.WEB, price="10"),
        RawProductCandidate(title="  ukulele SOPRANO ", source=SourceType.WEB, price="12"),
        RawProductCandidate(title="abc", source=SourceType.WEB),
        RawProductCandidate(title="Ukulele Tenor", source=SourceType.WEB),
    ]

    unique = dedupe_by_title(candidates)

    assert [(candidate.title, candidate.price) for candidate in unique] == [
        ("Ukulele Soprano", "10"),
        ("Ukulele Tenor", ""),
    ]


def test_platform_chain_tries_structural_scan_before_loose_generic_selectors() -> None:
    html = """
    <article class="catalogo">
      <div class="card"><img src="/i/cedro.jpg"><span class="name">Guitarra Clásica Cedro</span>
        <span class="precio">$1,200.00</span></div>
      <div class="card"><img src="/i/pino.jpg"><span class="name">Guitarra Clásica Pino</span>
        <span class="precio">$900.00</span></div>
    </article>
    """

    name, candidates = run_strategies(chain_for(Platform.ECOMETRI), _soup(html), BASE_URL, Platform.ECOMETRI)

    assert name == "structural"
    assert [candidate.title for candidate in candidates] == ["Guitarra Clásica Cedro", "Guitarra Clásica Pino"]


def test_generic_chain_order_is_unchanged() -> None:
    assert [strategy.name for strategy in chain_for(Platform.GENERIC)] == [
        "generic-selectors",
        "structural",
        "aggressive",
    ]
    assert [strategy.name for strategy in chain_for(Platform.WOOCOMMERCE)] == [
        "woocommerce-selectors",
        "structural",
        "generic-selectors",
        "aggressive",
    ]
