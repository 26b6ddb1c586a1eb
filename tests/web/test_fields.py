from __future__ import annotations

from bs4 import BeautifulSoup

from ecoconv.web.fields import extract_price, image_source, link_href, make_absolute_url, page_origin


def test_extract_price_takes_first_numeric_run_without_separators() -> None:
    assert extract_price("$1,234.56") == "1234.56"
    assert extract_price("Desde 45 USD, antes 60") == "45"
    assert extract_price("Consultar") == "0"
    assert extract_price(None) == "0"


def test_make_absolute_url_resolves_against_page_origin() -> None:
    base = "https://tienda.example.com/catalogo/ukuleles?page=2"

    assert make_absolute_url("/img/a.jpg", base) == "https://tienda.example.com/img/a.jpg"
    assert make_absolute_url("img/b.jpg", base) == "https://tienda.example.com/img/b.jpg"
    assert make_absolute_url("//cdn.example.com/c.jpg", base) == "https://cdn.example.com/c.jpg"
    assert make_absolute_url("http://otro.example.com/d.jpg", base) == "http://otro.example.com/d.jpg"
    assert make_absolute_url("", base) == ""
    assert page_origin(base) == "https://tienda.example.com"


def test_image_source_falls_back_to_lazy_attributes() -> None:
    soup = BeautifulSoup(
        '<img class="a" data-src="/lazy.jpg"><img class="b" src="" data-original="/orig.jpg"><img class="c">',
        "lxml",
    )

    assert image_source(soup.select_one("img.a")) == "/lazy.jpg"
    assert image_source(soup.select_one("img.b")) == "/orig.jpg"
    assert image_source(soup.select_one("img.c")) == ""
    assert image_source(None) == ""


def test_link_href_checks_container_children_and_ancestors() -> None:
    soup = BeautifulSoup(
        '<a href="/p/1" id="self"><span id="inner">x</span></a><div id="box"><a href="/p/2">y</a></div>',
        "lxml",
    )

    assert link_href(soup.select_one("#self")) == "/p/1"
    assert link_href(soup.select_one("#box")) == "/p/2"
    assert link_href(soup.select_one("#inner")) == "/p/1"
