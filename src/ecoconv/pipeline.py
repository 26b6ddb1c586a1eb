"""End-to-end catalog conversion for PDF files and store URLs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from pathlib import Path
import time
from typing import Any, Callable, Sequence
from urllib.parse import urlsplit

from ecoconv.config import ConverterSettings
from ecoconv.enhance.openrouter import Enhancement, ProductEnhancer
from ecoconv.errors import InputValidationError
from ecoconv.export import build_csv_metadata, generate_csv
from ecoconv.extraction.pdf_products import detect_products
from ecoconv.extraction.pdf_reader import PDF_MAGIC, read_pdf
from ecoconv.images.assignment import AssignmentPolicy, assign_images, planned_image_count
from ecoconv.images.hosting import CloudinaryImageHost, ImageHost, ImageRehoster
from ecoconv.models import Batch, CanonicalProduct, RawProductCandidate, SourceType
from ecoconv.normalize import MAX_IMAGES, merge
from ecoconv.throttle import ThrottledRunner
from ecoconv.web.feed import StructuredFeedClient
from ecoconv.web.fetcher import PageFetcher
from ecoconv.web.scraper import WebProductExtractor

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_SIZE = 10


@dataclass(slots=True)
class ConversionResult:
    """Everything one run produced; nothing is persisted by the converter."""

    batch: Batch
    csv: str
    report: dict[str, Any]
    metadata: dict[str, Any]

    def to_payload(self, *, preview: int = DEFAULT_PREVIEW_SIZE) -> dict[str, Any]:
        count = len(self.batch.products)
        return {
            "success": True,
            "message": f"Converted {count} product(s)",
            "report": self.report,
            "metadata": self.metadata,
            "products": [product.to_preview() for product in self.batch.products[:preview]],
        }


def validate_pdf_path(path: str | Path, *, max_bytes: int) -> bytes:
    """Return the file payload or raise InputValidationError."""

    source = Path(path)
    if not source.is_file():
        raise InputValidationError("path", f"PDF file not found: {source}")

    size = source.stat().st_size
    if size > max_bytes:
        raise InputValidationError("path", f"PDF exceeds the size limit of {max_bytes} bytes")

    try:
        data = source.read_bytes()
    except OSError as exc:
        raise InputValidationError("path", f"Failed to read PDF file: {exc}") from exc

    if not data:
        raise InputValidationError("path", "PDF file is empty")
    if source.suffix.lower() != ".pdf" and not data.startswith(PDF_MAGIC):
        raise InputValidationError("path", "Only PDF files are accepted")
    return data


def validate_store_url(url: str) -> str:
    candidate = (url or "").strip()
    if not candidate:
        raise InputValidationError("url", "A store URL is required")

    parts = urlsplit(candidate)
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise InputValidationError("url", "Invalid URL, expected something like https://example.com")
    return candidate


class CatalogConverter:
    """Run extraction, image hosting, enhancement, normalization and export."""

    def __init__(
        self,
        settings: ConverterSettings,
        *,
        fetcher: Any | None = None,
        image_host: ImageHost | None = None,
        enhancer: ProductEnhancer | None = None,
        web_extractor: WebProductExtractor | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._fetcher = fetcher or PageFetcher(
            timeout_seconds=settings.http_timeout_seconds,
            image_timeout_seconds=settings.image_timeout_seconds,
        )
        self._enhancer = enhancer
        self._clock = clock
        self._enhance_runner = ThrottledRunner(settings.enhance_interval_seconds, sleep=sleep)
        self._rehoster = (
            ImageRehoster(
                image_host,
                ThrottledRunner(settings.upload_interval_seconds, sleep=sleep),
                fetcher=self._fetcher,
            )
            if image_host is not None
            else None
        )
        self._web_extractor = web_extractor or WebProductExtractor(
            self._fetcher,
            StructuredFeedClient(
                self._fetcher,
                page_size=settings.feed_page_size,
                max_pages=settings.feed_max_pages,
            ),
        )

    def convert_pdf(self, path: str | Path, *, strategy: str | None = None) -> ConversionResult:
        data = validate_pdf_path(path, max_bytes=self._settings.max_pdf_bytes)
        batch = Batch(source_type=SourceType.PDF)
        logger.info("Batch %s: converting PDF %s (%d bytes)", batch.id, path, len(data))

        content = read_pdf(data, source=str(path))
        chosen_strategy = strategy or self._settings.pdf_strategy
        candidates = detect_products(content.text, strategy=chosen_strategy)
        logger.info("Batch %s: %d candidate(s), %d image(s)", batch.id, len(candidates), len(content.images))

        policy = AssignmentPolicy(self._settings.pdf_image_policy)
        needed = content.images[: planned_image_count(len(candidates), len(content.images), policy)]
        uploaded = 0
        if self._rehoster is not None:
            rehosted = self._rehoster.rehost(needed, batch_id=batch.id)
            hosted = rehosted.urls
            uploaded = rehosted.uploaded
            batch.warn("image_upload_failed", rehosted.failed)
        else:
            hosted = []
            batch.warn("images_not_hosted", len(needed))

        assigned = assign_images(candidates, hosted, policy)
        products = self._finish(batch, assigned)

        report = self._base_report(batch)
        report.update(
            {
                "strategy": chosen_strategy,
                "page_count": content.page_count,
                "images_extracted": len(content.images),
                "images_uploaded": uploaded,
            }
        )
        return self._result(batch, products, report)

    def convert_store(self, url: str) -> ConversionResult:
        store_url = validate_store_url(url)
        batch = Batch(source_type=SourceType.WEB)
        logger.info("Batch %s: scraping %s", batch.id, store_url)

        extraction = self._web_extractor.extract(store_url)
        candidates = extraction.candidates
        if not candidates:
            logger.warning("Batch %s: no products found at %s", batch.id, store_url)
            batch.warn("no_products")

        image_sets: list[list[str]] = []
        uploaded = 0
        # Each candidate keeps its own container images; spread allocation is for PDF pages only.
        for position, candidate in enumerate(candidates):
            refs = candidate.image_refs[:MAX_IMAGES]
            if self._rehoster is not None and refs:
                rehosted = self._rehoster.rehost_remote(
                    refs,
                    batch_id=batch.id,
                    start_index=position * MAX_IMAGES,
                )
                uploaded += rehosted.uploaded
                batch.warn("image_rehost_failed", rehosted.failed)
                image_sets.append(rehosted.urls)
            else:
                image_sets.append(list(refs))

        products = self._finish(batch, candidates, image_sets)

        report = self._base_report(batch)
        report.update(
            {
                "store_url": store_url,
                "platform_detected": extraction.platform.value,
                "strategy": extraction.strategy,
                "products_with_images": sum(1 for product in products if product.images),
                "images_uploaded": uploaded,
            }
        )
        return self._result(batch, products, report)

    def _finish(
        self,
        batch: Batch,
        candidates: Sequence[RawProductCandidate],
        image_sets: Sequence[list[str]] | None = None,
    ) -> list[CanonicalProduct]:
        enhancements = self._enhance(batch, candidates)
        timestamp_ms = int(self._clock() * 1000)
        products = [
            merge(
                candidate,
                index,
                enhancement=enhancements[index],
                images=image_sets[index] if image_sets is not None else None,
                timestamp_ms=timestamp_ms,
            )
            for index, candidate in enumerate(candidates)
        ]
        batch.products = products
        return products

    def _enhance(self, batch: Batch, candidates: Sequence[RawProductCandidate]) -> list[Enhancement | None]:
        if self._enhancer is None or not candidates:
            return [None] * len(candidates)

        enhancer = self._enhancer
        outcomes = self._enhance_runner.run(
            list(candidates),
            lambda candidate: enhancer.enhance(
                candidate.title,
                candidate.description,
                candidate.category or candidate.page_info or candidate.source_url,
            ),
        )
        enhancements: list[Enhancement | None] = []
        for outcome in outcomes:
            if outcome.error is not None or outcome.value is None or not outcome.value.succeeded:
                batch.warn("enhancement_failed")
            enhancements.append(outcome.value if outcome.error is None else None)
        return enhancements

    def _base_report(self, batch: Batch) -> dict[str, Any]:
        return {
            "batch_id": batch.id,
            "source_type": batch.source_type.value,
            "generated_at": self._now().isoformat(),
            "total_products": len(batch.products),
            "products_enhanced": sum(1 for product in batch.products if product.enhanced),
        }

    def _result(self, batch: Batch, products: list[CanonicalProduct], report: dict[str, Any]) -> ConversionResult:
        report["warnings"] = dict(batch.warnings)
        metadata = build_csv_metadata(products, batch.id, batch.source_type, now=self._now())
        logger.info("Batch %s: exported %d product(s)", batch.id, len(products))
        return ConversionResult(batch=batch, csv=generate_csv(products), report=report, metadata=metadata)

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)


def build_converter(settings: ConverterSettings) -> CatalogConverter:
    """Wire Cloudinary and OpenRouter only when they are configured."""

    image_host = CloudinaryImageHost(settings.cloudinary) if settings.cloudinary is not None else None
    enhancer = ProductEnhancer(settings.enhancer) if settings.enhancer is not None else None
    if image_host is None:
        logger.info("Cloudinary not configured, images will not be hosted")
    if enhancer is None:
        logger.info("AI enhancement disabled")
    return CatalogConverter(settings, image_host=image_host, enhancer=enhancer)


def write_csv(result: ConversionResult, output_dir: str | Path) -> Path:
    """Write the CSV under its metadata filename and return the path."""

    target_dir = Path(output_dir)
    target = target_dir / str(result.metadata["filename"])
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        target.write_text(result.csv, encoding="utf-8")
    except OSError as exc:
        raise InputValidationError(
            "output_dir", f"Cannot write CSV to {target_dir}: {exc.strerror or exc.__class__.__name__}"
        ) from exc
    return target
