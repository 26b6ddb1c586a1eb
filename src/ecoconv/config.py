"""Runtime configuration for the catalog conversion pipeline."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping


DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_OPENROUTER_CHAT_MODEL = "openai/gpt-4o-mini"
DEFAULT_CLOUDINARY_FOLDER = "ecometri"
DEFAULT_PDF_STRATEGY = "length"
DEFAULT_PDF_IMAGE_POLICY = "single"
DEFAULT_MAX_PDF_BYTES = 50 * 1024 * 1024
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
DEFAULT_IMAGE_TIMEOUT_SECONDS = 15.0
DEFAULT_FEED_PAGE_SIZE = 250
DEFAULT_FEED_MAX_PAGES = 10
DEFAULT_UPLOAD_INTERVAL_SECONDS = 0.1
DEFAULT_ENHANCE_INTERVAL_SECONDS = 0.5

PDF_STRATEGIES = ("length", "sku", "auto")
PDF_IMAGE_POLICIES = ("single", "spread")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _to_number(*, name: str, raw_value: str, kind: type[int] | type[float]) -> int | float:
    try:
        return kind(raw_value)
    except ValueError as exc:
        label = "an integer" if kind is int else "a number"
        raise ValueError(f"{name} must be {label} (got {raw_value!r})") from exc


def _parse_positive_int(*, name: str, raw_value: str, minimum: int = 1) -> int:
    value = int(_to_number(name=name, raw_value=raw_value, kind=int))
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _parse_non_negative_float(*, name: str, raw_value: str) -> float:
    value = float(_to_number(name=name, raw_value=raw_value, kind=float))
    if value < 0:
        raise ValueError(f"{name} cannot be negative")
    return value


def _parse_positive_float(*, name: str, raw_value: str, minimum: float = 0.001) -> float:
    value = float(_to_number(name=name, raw_value=raw_value, kind=float))
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _parse_bool(*, name: str, raw_value: str) -> bool:
    lowered = raw_value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag (got {raw_value!r})")


def _parse_choice(*, name: str, raw_value: str, choices: tuple[str, ...]) -> str:
    value = raw_value.strip().lower()
    if value not in choices:
        allowed = ", ".join(choices)
        raise ValueError(f"{name} must be one of: {allowed}")
    return value


@dataclass(frozen=True, slots=True)
class EnhancerSettings:
    """Validated OpenRouter settings for the AI text enhancer."""

    api_key: str
    model: str = DEFAULT_OPENROUTER_CHAT_MODEL
    base_url: str = DEFAULT_OPENROUTER_BASE_URL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EnhancerSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        api_key = source.get("OPENROUTER_API_KEY", "").strip()
        model = source.get("OPENROUTER_CHAT_MODEL", DEFAULT_OPENROUTER_CHAT_MODEL).strip()
        base_url = source.get("OPENROUTER_BASE_URL", DEFAULT_OPENROUTER_BASE_URL).strip()

        if not api_key:
            raise ValueError("Missing required enhancer environment variable: OPENROUTER_API_KEY")
        if not model:
            raise ValueError("OPENROUTER_CHAT_MODEL cannot be empty")
        if not base_url:
            raise ValueError("OPENROUTER_BASE_URL cannot be empty")
        if not (base_url.startswith("http://") or base_url.startswith("https://")):
            raise ValueError("OPENROUTER_BASE_URL must start with http:// or https://")

        return cls(api_key=api_key, model=model, base_url=base_url.rstrip("/"))


@dataclass(frozen=True, slots=True)
class CloudinarySettings:
    """Credentials and folder root for the image host."""

    cloud_name: str
    api_key: str
    api_secret: str
    folder: str = DEFAULT_CLOUDINARY_FOLDER

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "CloudinarySettings | None":
        """Return settings, or None when no Cloudinary variable is set at all."""

        source: Mapping[str, str] = os.environ if environ is None else environ

        values = {
            "CLOUDINARY_CLOUD_NAME": source.get("CLOUDINARY_CLOUD_NAME", "").strip(),
            "CLOUDINARY_API_KEY": source.get("CLOUDINARY_API_KEY", "").strip(),
            "CLOUDINARY_API_SECRET": source.get("CLOUDINARY_API_SECRET", "").strip(),
        }
        if not any(values.values()):
            return None

        missing = [name for name, value in values.items() if not value]
        if missing:
            missing_text = ", ".join(missing)
            raise ValueError(f"Missing required Cloudinary environment variables: {missing_text}")

        folder = source.get("CLOUDINARY_FOLDER", DEFAULT_CLOUDINARY_FOLDER).strip().strip("/")
        if not folder:
            raise ValueError("CLOUDINARY_FOLDER cannot be empty")

        return cls(
            cloud_name=values["CLOUDINARY_CLOUD_NAME"],
            api_key=values["CLOUDINARY_API_KEY"],
            api_secret=values["CLOUDINARY_API_SECRET"],
            folder=folder,
        )


@dataclass(frozen=True, slots=True)
class ConverterSettings:
    """Validated settings for one converter instance."""

    pdf_strategy: str = DEFAULT_PDF_STRATEGY
    pdf_image_policy: str = DEFAULT_PDF_IMAGE_POLICY
    max_pdf_bytes: int = DEFAULT_MAX_PDF_BYTES
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    image_timeout_seconds: float = DEFAULT_IMAGE_TIMEOUT_SECONDS
    feed_page_size: int = DEFAULT_FEED_PAGE_SIZE
    feed_max_pages: int = DEFAULT_FEED_MAX_PAGES
    upload_interval_seconds: float = DEFAULT_UPLOAD_INTERVAL_SECONDS
    enhance_interval_seconds: float = DEFAULT_ENHANCE_INTERVAL_SECONDS
    enhancer: EnhancerSettings | None = None
    cloudinary: CloudinarySettings | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ConverterSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        def _raw(name: str, default: object) -> str:
            value = source.get(name, str(default)).strip()
            if not value:
                raise ValueError(f"{name} cannot be empty")
            return value

        pdf_strategy = _parse_choice(
            name="CATALOG_PDF_STRATEGY",
            raw_value=_raw("CATALOG_PDF_STRATEGY", DEFAULT_PDF_STRATEGY),
            choices=PDF_STRATEGIES,
        )
        pdf_image_policy = _parse_choice(
            name="CATALOG_PDF_IMAGE_POLICY",
            raw_value=_raw("CATALOG_PDF_IMAGE_POLICY", DEFAULT_PDF_IMAGE_POLICY),
            choices=PDF_IMAGE_POLICIES,
        )
        max_pdf_bytes = _parse_positive_int(
            name="CATALOG_MAX_PDF_BYTES",
            raw_value=_raw("CATALOG_MAX_PDF_BYTES", DEFAULT_MAX_PDF_BYTES),
            minimum=1024,
        )
        http_timeout_seconds = _parse_positive_float(
            name="CATALOG_HTTP_TIMEOUT_SECONDS",
            raw_value=_raw("CATALOG_HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS),
            minimum=0.1,
        )
        image_timeout_seconds = _parse_positive_float(
            name="CATALOG_IMAGE_TIMEOUT_SECONDS",
            raw_value=_raw("CATALOG_IMAGE_TIMEOUT_SECONDS", DEFAULT_IMAGE_TIMEOUT_SECONDS),
            minimum=0.1,
        )
        feed_page_size = _parse_positive_int(
            name="CATALOG_FEED_PAGE_SIZE",
            raw_value=_raw("CATALOG_FEED_PAGE_SIZE", DEFAULT_FEED_PAGE_SIZE),
        )
        feed_max_pages = _parse_positive_int(
            name="CATALOG_FEED_MAX_PAGES",
            raw_value=_raw("CATALOG_FEED_MAX_PAGES", DEFAULT_FEED_MAX_PAGES),
        )
        upload_interval_seconds = _parse_non_negative_float(
            name="CATALOG_UPLOAD_INTERVAL_SECONDS",
            raw_value=_raw("CATALOG_UPLOAD_INTERVAL_SECONDS", DEFAULT_UPLOAD_INTERVAL_SECONDS),
        )
        enhance_interval_seconds = _parse_non_negative_float(
            name="CATALOG_ENHANCE_INTERVAL_SECONDS",
            raw_value=_raw("CATALOG_ENHANCE_INTERVAL_SECONDS", DEFAULT_ENHANCE_INTERVAL_SECONDS),
        )

        ai_enabled = _parse_bool(name="CATALOG_AI_ENHANCE", raw_value=source.get("CATALOG_AI_ENHANCE", "0"))
        enhancer = EnhancerSettings.from_env(source) if ai_enabled else None

        return cls(
            pdf_strategy=pdf_strategy,
            pdf_image_policy=pdf_image_policy,
            max_pdf_bytes=max_pdf_bytes,
            http_timeout_seconds=http_timeout_seconds,
            image_timeout_seconds=image_timeout_seconds,
            feed_page_size=feed_page_size,
            feed_max_pages=feed_max_pages,
            upload_interval_seconds=upload_interval_seconds,
            enhance_interval_seconds=enhance_interval_seconds,
            enhancer=enhancer,
            cloudinary=CloudinarySettings.from_env(source),
        )
