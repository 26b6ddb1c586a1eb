from __future__ import annotations

from typing import Any

import pytest

from ecoconv.config import CloudinarySettings
from ecoconv.errors import FetchError, ImageHostingError
from ecoconv.images.hosting import CloudinaryImageHost, HostedImage, ImageRehoster, download_as_data_url
from ecoconv.throttle import ThrottledRunner


class _FakeUploader:
    def __init__(self, results: list[object]) -> None:
        self._results = list(results)
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def __call__(self, image: str, **options: Any) -> Any:
        self.calls.append((image, options))
        result = self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _settings() -> CloudinarySettings:
    return CloudinarySettings(cloud_name="demo", api_key="key", api_secret="secret", folder="ecometri")


def test_cloudinary_host_sends_fixed_transform_and_batch_tags() -> None:
    uploader = _FakeUploader(
        [{"secure_url": "https://res.cloudinary.com/demo/p.webp", "public_id": "p", "width": 1080, "height": 1080, "bytes": 321}]
    )
    host = CloudinaryImageHost(_settings(), uploader=uploader, clock=lambda: 1700000000.5)

    hosted = host.upload("data:image/png;base64,AAAA", batch_id="b1", index=3)

    assert hosted == HostedImage(
        url="https://res.cloudinary.com/demo/p.webp", public_id="p", width=1080, height=1080, bytes=321
    )
    _, options = uploader.calls[0]
    assert options["folder"] == "ecometri/b1"
    assert options["public_id"] == "product_3_1700000000500"
    assert (options["width"], options["height"], options["crop"], options["gravity"]) == (1080, 1080, "fill", "center")
    assert options["quality"] == "auto:good"
    assert options["format"] == "webp"
    assert options["tags"] == ["ecometri", "product", "b1"]
    assert options["context"] == "batch_id=b1|product_index=3"
    assert options["cloud_name"] == "demo"


def test_cloudinary_host_wraps_failures() -> None:
    host = CloudinaryImageHost(_settings(), uploader=_FakeUploader([RuntimeError("quota"), {"public_id": "x"}]))

    with pytest.raises(ImageHostingError, match="stage=upload"):
        host.upload("data:image/png;base64,AAAA", batch_id="b1", index=0)
    with pytest.raises(ImageHostingError, match="stage=response"):
        host.upload("data:image/png;base64,AAAA", batch_id="b1", index=1)
    with pytest.raises(ImageHostingError, match="stage=input"):
        host.upload("", batch_id="b1", index=2)


class _FakeHost:
    def __init__(self, failing: set[int] | None = None) -> None:
        self._failing = failing or set()
        self.uploads: list[tuple[str, str, int]] = []

    def upload(self, image: str, *, batch_id: str, index: int) -> HostedImage:
        self.uploads.append((image, batch_id, index))
        if index in self._failing:
            raise ImageHostingError(stage="upload", message="boom")
        return HostedImage(url=f"https://cdn.example.com/{batch_id}/{index}.webp", public_id=str(index))


class _FakeBytesFetcher:
    def __init__(self, failing: set[str] | None = None) -> None:
        self._failing = failing or set()

    def get_bytes(self, url: str) -> tuple[bytes, str]:
        if url in self._failing:
            raise FetchError(url, "timeout")
        return b"img", "image/png"


def test_rehost_keeps_positions_and_sleeps_between_uploads() -> None:
    delays: list[float] = []
    rehoster = ImageRehoster(_FakeHost(failing={1}), ThrottledRunner(0.1, sleep=delays.append))

    result = rehoster.rehost(["data:a", "data:b", "data:c"], batch_id="b1")

    assert result.urls == ["https://cdn.example.com/b1/0.webp", "", "https://cdn.example.com/b1/2.webp"]
    assert (result.uploaded, result.failed) == (2, 1)
    assert delays == [0.1, 0.1]


def test_rehost_remote_keeps_store_url_on_failure() -> None:
    host = _FakeHost()
    rehoster = ImageRehoster(
        host,
        ThrottledRunner(0.0),
        fetcher=_FakeBytesFetcher(failing={"https://tienda.example.com/b.jpg"}),
    )

    result = rehoster.rehost_remote(
        ["https://tienda.example.com/a.jpg", "https://tienda.example.com/b.jpg"],
        batch_id="b2",
        start_index=10,
    )

    assert result.urls == ["https://cdn.example.com/b2/10.webp", "https://tienda.example.com/b.jpg"]
    assert result.failed == 1
    assert host.uploads == [("data:image/png;base64,aW1n", "b2", 10)]


def test_download_as_data_url_defaults_unknown_types_to_jpeg() -> None:
    class _Fetcher:
        def get_bytes(self, url: str) -> tuple[bytes, str]:
            return b"img", "application/octet-stream"

    assert download_as_data_url(_Fetcher(), "https://x/a") == "data:image/jpeg;base64,aW1n"
