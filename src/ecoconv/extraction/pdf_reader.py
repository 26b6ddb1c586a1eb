"""PDF reader producing full document text and embedded product images."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
import logging

import pymupdf

from ecoconv.errors import DocumentError

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"
DEFAULT_MIN_IMAGE_SIDE = 50

_MIME_BY_EXT = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "jpx": "image/jp2",
    "png": "image/png",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "webp": "image/webp",
}


@dataclass(slots=True)
class PdfContent:
    """Text and image references extracted from one document."""

    text: str
    images: list[str] = field(default_factory=list)
    page_count: int = 0


def to_data_url(payload: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def read_pdf(data: bytes, *, source: str = "<upload>", min_image_side: int = DEFAULT_MIN_IMAGE_SIDE) -> PdfContent:
    """Open *data* as a PDF and return its text plus product-sized images.

    Images are returned in document order as data URLs. Images no wider or
    taller than ``min_image_side`` pixels (icons, bullets, rules) are skipped.
    """

    try:
        doc = pymupdf.open(stream=data, filetype="pdf")
    except Exception as exc:
        raise DocumentError(source, f"Cannot open PDF document: {exc}") from exc

    with doc:
        if doc.needs_pass:
            raise DocumentError(source, "PDF document is password protected")
        if doc.page_count == 0:
            raise DocumentError(source, "PDF document has no pages")
        try:
            text = "\n".join(page.get_text("text") for page in doc)
        except Exception as exc:
            raise DocumentError(source, f"Cannot extract PDF text: {exc}") from exc
        images = _extract_images(doc, min_image_side=min_image_side)
        page_count = doc.page_count

    logger.info("Read PDF %s: %d page(s), %d chars, %d image(s)", source, page_count, len(text), len(images))
    return PdfContent(text=text, images=images, page_count=page_count)


def _extract_images(doc: pymupdf.Document, *, min_image_side: int) -> list[str]:
    images: list[str] = []
    seen_xrefs: set[int] = set()

    for page_index, page in enumerate(doc, start=1):
        for entry in page.get_images(full=True):
            xref = entry[0]
            if xref in seen_xrefs:
                continue
            seen_xrefs.add(xref)

            try:
                info = doc.extract_image(xref)
            except Exception as exc:
                logger.warning("Skipping unreadable image xref=%d on page %d: %s", xref, page_index, exc)
                continue
            if not info:
                continue

            width = int(info.get("width") or 0)
            height = int(info.get("height") or 0)
            if width <= min_image_side or height <= min_image_side:
                continue

            ext = str(info.get("ext") or "png").lower()
            mime_type = _MIME_BY_EXT.get(ext, "image/png")
            images.append(to_data_url(info["image"], mime_type))

    return images
