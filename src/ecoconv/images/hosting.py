"""Image hosting: upload extracted or downloaded images to Cloudinary."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import Any, Callable, Protocol, Sequence, runtime_checkable

from ecoconv.config import CloudinarySettings
from ecoconv.errors import ImageHostingError
from ecoconv.extraction.pdf_reader import to_data_url
from ecoconv.throttle import ThrottledRunner

logger = logging.getLogger(__name__)

TARGET_SIDE = 1080
DEFAULT_MIME_TYPE = "image/jpeg"


@dataclass(slots=True)
class HostedImage:
    url: str
    public_id: str
    width: int | None = None
    height: int | None = None
    bytes: int | None = None


@runtime_checkable
class ImageHost(Protocol):
    """Anything that turns an image (data URL or remote URL) into a hosted URL."""

    def upload(self, image: str, *, batch_id: str, index: int) -> HostedImage:
        """Upload one image or raise ImageHostingError."""


def _build_default_uploader() -> Callable[..., Any]:
    import cloudinary.uploader

    return cloudinary.uploader.upload


class CloudinaryImageHost:
    """Upload with a fixed square crop, WebP output and batch tagging.

    Credentials travel with each call rather than through the SDK's global
    config, so several hosts can coexist in one process.
    """

    def __init__(
        self,
        settings: CloudinarySettings,
        *,
        uploader: Callable[..., Any] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._upload = uploader or _build_default_uploader()
        self._clock = clock

    def upload_options(self, *, batch_id: str, index: int) -> dict[str, Any]:
        timestamp_ms = int(self._clock() * 1000)
        return {
            "cloud_name": self._settings.cloud_name,
            "api_key": self._settings.api_key,
            "api_secret": self._settings.api_secret,
            "folder": f"{self._settings.folder}/{batch_id}",
            "public_id": f"product_{index}_{timestamp_ms}",
            "width": TARGET_SIDE,
            "height": TARGET_SIDE,
            "crop": "fill",
            "gravity": "center",
            "quality": "auto:good",
            "format": "webp",
            "resource_type": "image",
            "type": "upload",
            "overwrite": False,
            "invalidate": False,
            "context": f"batch_id={batch_id}|product_index={index}",
            "tags": ["ecometri", "product", batch_id],
        }

    def upload(self, image: str, *, batch_id: str, index: int) -> HostedImage:
        if not image:
            raise ImageHostingError(stage="input", message="No image provided")

        try:
            result = self._upload(image, **self.upload_options(batch_id=batch_id, index=index))
        except Exception as exc:
            raise ImageHostingError(stage="upload", message=f"Cloudinary upload failed: {exc}") from exc

        url = result.get("secure_url") if isinstance(result, dict) else None
        if not url:
            raise ImageHostingError(stage="response", message="Cloudinary response missing secure_url")

        return HostedImage(
            url=str(url),
            public_id=str(result.get("public_id", "")),
            width=result.get("width"),
            height=result.get("height"),
            bytes=result.get("bytes"),
        )


class BytesFetcher(Protocol):
    def get_bytes(self, url: str) -> tuple[bytes, str]:
        """Return body and content type or raise FetchError."""


def download_as_data_url(fetcher: BytesFetcher, url: str) -> str:
    """Download a remote image and inline it as a base64 data URL."""

    payload, content_type = fetcher.get_bytes(url)
    mime_type = content_type.split(";", 1)[0].strip().lower()
    if not mime_type.startswith("image/"):
        mime_type = DEFAULT_MIME_TYPE
    return to_data_url(payload, mime_type)


@dataclass(slots=True)
class RehostResult:
    """Positional URLs for one rehosting pass plus how many images failed."""

    urls: list[str] = field(default_factory=list)
    uploaded: int = 0
    failed: int = 0


class ImageRehoster:
    """Push images through an ImageHost one at a time with a throttle."""

    def __init__(
        self,
        host: ImageHost,
        runner: ThrottledRunner,
        *,
        fetcher: BytesFetcher | None = None,
    ) -> None:
        self._host = host
        self._runner = runner
        self._fetcher = fetcher

    def rehost(self, images: Sequence[str], *, batch_id: str, start_index: int = 0) -> RehostResult:
        """Upload inline images; a failed upload leaves ``""`` in its slot."""

        outcomes = self._runner.run(
            list(enumerate(images, start=start_index)),
            lambda entry: self._host.upload(entry[1], batch_id=batch_id, index=entry[0]).url,
        )
        result = RehostResult()
        for outcome in outcomes:
            if outcome.error is None and outcome.value:
                result.urls.append(outcome.value)
                result.uploaded += 1
            else:
                result.urls.append("")
                result.failed += 1
        return result

    def rehost_remote(self, urls: Sequence[str], *, batch_id: str, start_index: int = 0) -> RehostResult:
        """Download and upload store images; a failure keeps the store URL."""

        if self._fetcher is None:
            raise ValueError("rehost_remote requires a fetcher")
        fetcher = self._fetcher

        def _transfer(entry: tuple[int, str]) -> str:
            index, url = entry
            data_url = download_as_data_url(fetcher, url)
            return self._host.upload(data_url, batch_id=batch_id, index=index).url

        outcomes = self._runner.run(list(enumerate(urls, start=start_index)), _transfer)
        result = RehostResult()
        for outcome in outcomes:
            if outcome.error is None and outcome.value:
                result.urls.append(outcome.value)
                result.uploaded += 1
            else:
                result.urls.append(outcome.item[1])
                result.failed += 1
        if result.failed:
            logger.warning("%d store image(s) kept their original URL", result.failed)
        return result
