"""Domain errors shared by the conversion pipeline and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass


class ConversionError(Exception):
    """Base class for failures that end a conversion run."""


@dataclass(slots=True)
class InputValidationError(ConversionError):
    """Request input was rejected before any processing started."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} (field={self.field})"


@dataclass(slots=True)
class DocumentError(ConversionError):
    """The source document could not be parsed."""

    source: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} (source={self.source})"


@dataclass(slots=True)
class FetchError(ConversionError):
    """A remote page, feed or image could not be fetched."""

    url: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} (url={self.url})"


@dataclass(slots=True)
class ImageHostingError(RuntimeError):
    """An image upload failed; handled per item by the pipeline."""

    stage: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} (stage={self.stage})"


@dataclass(slots=True)
class EnhancementRequestError(RuntimeError):
    """An AI rewrite failed or returned an unusable response."""

    model: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} (model={self.model})"
