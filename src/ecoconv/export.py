"""Ecometri 35-column CSV export."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Sequence

from ecoconv.models import CanonicalProduct, SourceType

# Labels expected by the Ecometri importer; order is part of the format.
ECOMETRI_HEADERS: tuple[str, ...] = (
    "Nombre",
    "Descripción",
    "Categoría",
    "Subcategoría",
    "Precio",
    "Precio Comparación",
    "SKU",
    "Código de Barras",
    "Stock",
    "Peso (kg)",
    "Largo (cm)",
    "Ancho (cm)",
    "Alto (cm)",
    "Imagen Principal",
    "Imagen 2",
    "Imagen 3",
    "Imagen 4",
    "Imagen 5",
    "Variante 1 Nombre",
    "Variante 1 Valor",
    "Variante 2 Nombre",
    "Variante 2 Valor",
    "Variante 3 Nombre",
    "Variante 3 Valor",
    "Estado",
    "Marca",
    "Proveedor",
    "Tags",
    "Política de Envío",
    "Política de Devolución",
    "Destacado",
    "Nuevo",
    "En Oferta",
    "SEO Título",
    "SEO Descripción",
)
IMAGE_COLUMNS = 5
VARIANT_COLUMNS = 6
CSV_FORMAT = "Ecometri 35 columns"
CSV_ENCODING = "UTF-8"
CSV_DELIMITER = ","

_NEEDS_QUOTING = (",", '"', "\n")


def escape_csv_value(value: object) -> str:
    """Quote a field only when it holds a comma, a double quote or a newline."""

    if value is None:
        return ""
    text = str(value)
    if any(marker in text for marker in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def _yes_no(flag: bool) -> str:
    return "sí" if flag else "no"


def product_to_row(product: CanonicalProduct) -> list[str]:
    """Unescaped field values in header order."""

    images = (list(product.images) + [""] * IMAGE_COLUMNS)[:IMAGE_COLUMNS]
    row = [
        product.name,
        product.description,
        product.category,
        product.subcategory,
        product.price,
        product.compare_at_price,
        product.sku,
        "",
        product.stock,
        "",
        "",
        "",
        "",
        *images,
        *([""] * VARIANT_COLUMNS),
        product.status,
        product.brand,
        "",
        ",".join(product.tags),
        "",
        "",
        _yes_no(product.flags.featured),
        _yes_no(product.flags.new),
        _yes_no(product.flags.on_sale),
        product.seo_title,
        product.seo_description,
    ]
    return ["" if value is None else str(value) for value in row]


def generate_csv(products: Sequence[CanonicalProduct]) -> str:
    """Header line plus one line per product, joined by ``\\n``."""

    lines = [CSV_DELIMITER.join(escape_csv_value(header) for header in ECOMETRI_HEADERS)]
    for product in products:
        lines.append(CSV_DELIMITER.join(escape_csv_value(value) for value in product_to_row(product)))
    return "\n".join(lines)


def csv_filename(batch_id: str, source_type: SourceType, timestamp_ms: int) -> str:
    label = "pdf" if source_type is SourceType.PDF else "store"
    return f"ecometri_{label}_{batch_id}_{timestamp_ms}.csv"


def build_csv_metadata(
    products: Sequence[CanonicalProduct],
    batch_id: str,
    source_type: SourceType,
    now: datetime | None = None,
) -> dict[str, Any]:
    moment = now or datetime.now(timezone.utc)
    timestamp_ms = int(moment.timestamp() * 1000)
    return {
        "filename": csv_filename(batch_id, source_type, timestamp_ms),
        "row_count": len(products),
        "column_count": len(ECOMETRI_HEADERS),
        "format": CSV_FORMAT,
        "encoding": CSV_ENCODING,
        "delimiter": CSV_DELIMITER,
        "generated_at": moment.isoformat(),
        "products_summary": {
            "total": len(products),
            "with_images": sum(1 for product in products if product.images),
            "with_ai": sum(1 for product in products if product.enhanced),
        },
    }
