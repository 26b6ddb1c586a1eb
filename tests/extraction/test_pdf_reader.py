from __future__ import annotations

from pathlib import Path

import pymupdf
import pytest

from ecoconv.errors import DocumentError
from ecoconv.extraction.pdf_reader import read_pdf


def _pixmap(side: int) -> pymupdf.Pixmap:
    pix = pymupdf.Pixmap(pymupdf.csRGB, pymupdf.IRect(0, 0, side, side), False)
    pix.clear_with(180)
    return pix


def _build_pdf(path: Path) -> None:
    doc = pymupdf.open()
    page_one = doc.new_page()
    page_one.insert_text((72, 72), "KA-100 Ukulele Soprano Natural")
    page_one.insert_image(pymupdf.Rect(72, 120, 152, 200), pixmap=_pixmap(80))
    page_one.insert_image(pymupdf.Rect(72, 220, 92, 240), pixmap=_pixmap(20))

    page_two = doc.new_page()
    page_two.insert_text((72, 72), "KA-200 Ukulele Concierto Negro")

    doc.save(str(path))
    doc.close()


def test_read_pdf_returns_text_in_page_order_and_large_images(tmp_path: Path) -> None:
    pdf_path = tmp_path / "catalogo.pdf"
    _build_pdf(pdf_path)

    content = read_pdf(pdf_path.read_bytes(), source=str(pdf_path))

    assert content.page_count == 2
    assert content.text.index("KA-100") < content.text.index("KA-200")
    assert len(content.images) == 1
    assert content.images[0].startswith("data:image/")
    assert ";base64," in content.images[0]


def test_read_pdf_rejects_undecodable_bytes() -> None:
    with pytest.raises(DocumentError, match="source=broken.pdf"):
        read_pdf(b"this is not a pdf at all", source="broken.pdf")
