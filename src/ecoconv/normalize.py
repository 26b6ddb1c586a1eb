"""Merge a raw candidate with hosted images and AI copy into an exportable record."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
import time
from typing import Sequence

from ecoconv.enhance.openrouter import Enhancement
from ecoconv.models import CanonicalProduct, ProductFlags, RawProductCandidate

NAME_MAX_CHARS = 80
DESCRIPTION_MAX_CHARS = 500
SEO_DESCRIPTION_MAX_CHARS = 160
MAX_IMAGES = 5
DEFAULT_PRICE = "0"
DEFAULT_CATEGORY = "General"
IMPORT_TAG = "importado"


def _decimal(value: str) -> Decimal | None:
    try:
        parsed = Decimal(value)
    except (InvalidOperation, ValueError):
        return None
    return parsed if parsed.is_finite() else None


def is_on_sale(price: str, compare_at_price: str) -> bool:
    current = _decimal(price)
    previous = _decimal(compare_at_price)
    if current is None or previous is None:
        return False
    return previous > current


def generated_sku(index: int, timestamp_ms: int | None = None) -> str:
    """Run-scoped SKU for rows whose source carried none."""

    stamp = int(time.time() * 1000) if timestamp_ms is None else timestamp_ms
    return f"SKU-{stamp}-{index}"


def _web_image(url: str) -> bool:
    return url.startswith("http://") or url.startswith("https://")


def _tags(raw: RawProductCandidate) -> list[str]:
    tags = [IMPORT_TAG, raw.source.value]
    for tag in raw.tags:
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def merge(
    raw: RawProductCandidate,
    index: int,
    *,
    enhancement: Enhancement | None = None,
    images: Sequence[str] | None = None,
    timestamp_ms: int | None = None,
    max_images: int = MAX_IMAGES,
) -> CanonicalProduct:
    """Build the canonical record for the *index*-th candidate of a run.

    Enhanced copy wins only when the enhancer reported success; hosted image
    URLs replace the raw references when supplied.
    """

    enhanced = enhancement is not None and enhancement.succeeded
    enhanced_title = enhancement.title.strip() if enhanced and enhancement is not None else ""
    enhanced_description = enhancement.description.strip() if enhanced and enhancement is not None else ""

    raw_title = raw.title.strip()
    name = (enhanced_title or raw_title or f"Producto {index + 1}")[:NAME_MAX_CHARS]
    description = (enhanced_description or raw.description.strip() or raw_title)[:DESCRIPTION_MAX_CHARS]

    price = raw.price.strip() or DEFAULT_PRICE
    compare_at_price = raw.compare_at_price.strip()
    image_source = raw.image_refs if images is None else images

    return CanonicalProduct(
        name=name,
        description=description,
        sku=raw.sku.strip() or generated_sku(index, timestamp_ms),
        price=price,
        images=[url for url in image_source if url and _web_image(url)][:max_images],
        category=raw.category.strip() or DEFAULT_CATEGORY,
        subcategory=raw.product_type.strip(),
        compare_at_price=compare_at_price,
        brand=raw.brand.strip(),
        tags=_tags(raw),
        flags=ProductFlags(on_sale=is_on_sale(price, compare_at_price)),
        seo_title=name,
        seo_description=(description or name)[:SEO_DESCRIPTION_MAX_CHARS],
        source_url=raw.source_url,
        enhanced=enhanced,
    )
