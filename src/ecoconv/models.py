"""Canonical data structures shared by extractors, normalizer and exporter."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
import uuid


class SourceType(Enum):
    PDF = "pdf"
    WEB = "web"


class Platform(Enum):
    ECOMETRI = "ecometri"
    SHOPIFY = "shopify"
    WOOCOMMERCE = "woocommerce"
    MAGENTO = "magento"
    GENERIC = "generic"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class RawProductCandidate:
    """Unverified product record emitted by an extractor."""

    title: str
    source: SourceType
    description: str = ""
    price: str = ""
    sku: str = ""
    image_refs: list[str] = field(default_factory=list)
    platform: Platform | None = None
    category: str = ""
    compare_at_price: str = ""
    brand: str = ""
    product_type: str = ""
    tags: list[str] = field(default_factory=list)
    source_url: str = ""
    page_info: str = ""


@dataclass(frozen=True, slots=True)
class ProductFlags:
    featured: bool = False
    new: bool = True
    on_sale: bool = False


@dataclass(slots=True)
class CanonicalProduct:
    """Normalized record ready for export; maps to exactly one CSV row."""

    name: str
    description: str
    sku: str
    price: str = "0"
    images: list[str] = field(default_factory=list)
    category: str = "General"
    subcategory: str = ""
    compare_at_price: str = ""
    stock: str = "0"
    status: str = "activo"
    brand: str = ""
    tags: list[str] = field(default_factory=list)
    flags: ProductFlags = field(default_factory=ProductFlags)
    seo_title: str = ""
    seo_description: str = ""
    source_url: str = ""
    enhanced: bool = False

    def to_preview(self) -> dict[str, object]:
        """Compact JSON-safe view used in CLI payloads."""

        return {
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "sku": self.sku,
            "images": list(self.images),
            "category": self.category,
            "source_url": self.source_url,
            "enhanced": self.enhanced,
        }


def new_batch_id() -> str:
    return uuid.uuid4().hex


@dataclass(slots=True)
class Batch:
    """One processing run; discarded once the result has been emitted."""

    source_type: SourceType
    id: str = field(default_factory=new_batch_id)
    products: list[CanonicalProduct] = field(default_factory=list)
    warnings: Counter[str] = field(default_factory=Counter)

    def warn(self, kind: str, count: int = 1) -> None:
        if count > 0:
            self.warnings[kind] += count
