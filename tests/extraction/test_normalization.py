from __future__ import annotations

from ecoconv.extraction.normalization import (
    is_heading_line,
    is_noise_line,
    is_title_candidate,
    normalize_whitespace,
    strip_html,
    title_key,
)


def test_normalize_whitespace_collapses_runs() -> None:
    assert normalize_whitespace("  Ukulele \t Soprano\n\nNatural ") == "Ukulele Soprano Natural"


def test_strip_html_returns_readable_text() -> None:
    markup = "<p>Cuerpo de <strong>caoba</strong></p><ul><li>4 cuerdas</li></ul>"

    assert strip_html(markup) == "Cuerpo de caoba 4 cuerdas"
    assert strip_html(None) == ""
    assert strip_html("sin   etiquetas") == "sin etiquetas"


def test_line_classifiers() -> None:
    assert is_noise_line("   12   ")
    assert not is_noise_line("Ukulele Soprano")
    assert is_title_candidate("Guitarra acústica de concierto")
    assert not is_title_candidate("1234567890123456789")
    assert not is_title_candidate("Corto")
    assert is_heading_line("UKULELES")
    assert not is_heading_line("Ukuleles")
    assert not is_heading_line("2024")
    assert not is_heading_line("A" * 60)


def test_title_key_ignores_case_and_spacing() -> None:
    assert title_key("  Ukulele   SOPRANO ") == title_key("ukulele soprano")
