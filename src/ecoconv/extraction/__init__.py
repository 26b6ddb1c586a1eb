"""PDF text normalization, reading and product detection."""

from .pdf_products import DEFAULT_SKU_PATTERNS, detect_products, fallback_candidate
from .pdf_reader import PdfContent, read_pdf

__all__ = ["DEFAULT_SKU_PATTERNS", "PdfContent", "detect_products", "fallback_candidate", "read_pdf"]
