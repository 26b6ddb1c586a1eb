"""Positional image-to-product assignment.

Images are matched to products purely by order; nothing looks at image
content.
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from typing import Sequence

from ecoconv.models import RawProductCandidate

DEFAULT_MAX_PER_PRODUCT = 4


class AssignmentPolicy(Enum):
    SINGLE = "single"
    SPREAD = "spread"


def images_per_product(
    product_count: int,
    image_count: int,
    policy: AssignmentPolicy,
    max_per_product: int = DEFAULT_MAX_PER_PRODUCT,
) -> int:
    if product_count <= 0 or image_count <= 0:
        return 0
    if policy is AssignmentPolicy.SINGLE:
        return 1
    return max(1, min(max_per_product, image_count // product_count))


def allocate(
    product_count: int,
    image_count: int,
    policy: AssignmentPolicy,
    max_per_product: int = DEFAULT_MAX_PER_PRODUCT,
) -> list[slice]:
    """Return one slice into the image list per product, in product order."""

    if max_per_product < 1:
        raise ValueError("max_per_product must be >= 1")

    per_product = images_per_product(product_count, image_count, policy, max_per_product)
    slices: list[slice] = []
    for position in range(max(product_count, 0)):
        start = min(position * per_product, image_count)
        stop = min(start + per_product, image_count)
        slices.append(slice(start, stop))
    return slices


def planned_image_count(
    product_count: int,
    image_count: int,
    policy: AssignmentPolicy,
    max_per_product: int = DEFAULT_MAX_PER_PRODUCT,
) -> int:
    """How many leading images will actually be assigned; the rest need no upload."""

    slices = allocate(product_count, image_count, policy, max_per_product)
    return max((part.stop for part in slices), default=0)


def assign_images(
    candidates: Sequence[RawProductCandidate],
    images: Sequence[str],
    policy: AssignmentPolicy,
    max_per_product: int = DEFAULT_MAX_PER_PRODUCT,
) -> list[RawProductCandidate]:
    """Return copies of *candidates* with ``image_refs`` replaced.

    Empty entries in *images* are failed uploads: they keep their slot so the
    following products still receive the right images, but are not assigned.
    """

    slices = allocate(len(candidates), len(images), policy, max_per_product)
    return [
        replace(candidate, image_refs=[image for image in images[part] if image])
        for candidate, part in zip(candidates, slices)
    ]
