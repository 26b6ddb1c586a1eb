from __future__ import annotations

from ecoconv.images.assignment import AssignmentPolicy, allocate, assign_images, planned_image_count
from ecoconv.models import RawProductCandidate, SourceType


def _candidates(count: int) -> list[RawProductCandidate]:
    return [RawProductCandidate(title=f"Producto {index}", source=SourceType.PDF) for index in range(count)]


def test_single_policy_gives_leading_products_one_image_each() -> None:
    images = [f"https://img.example.com/{index}.webp" for index in range(7)]

    assigned = assign_images(_candidates(10), images, AssignmentPolicy.SINGLE)

    assert [len(candidate.image_refs) for candidate in assigned] == [1] * 7 + [0] * 3
    assert assigned[0].image_refs == ["https://img.example.com/0.webp"]
    assert assigned[6].image_refs == ["https://img.example.com/6.webp"]


def test_spread_policy_allocates_floor_share_capped_at_four() -> None:
    assert allocate(3, 7, AssignmentPolicy.SPREAD) == [slice(0, 2), slice(2, 4), slice(4, 6)]
    assert allocate(2, 20, AssignmentPolicy.SPREAD) == [slice(0, 4), slice(4, 8)]
    assert allocate(4, 3, AssignmentPolicy.SPREAD) == [slice(0, 1), slice(1, 2), slice(2, 3), slice(3, 3)]


def test_planned_image_count_limits_uploads() -> None:
    assert planned_image_count(10, 7, AssignmentPolicy.SINGLE) == 7
    assert planned_image_count(2, 30, AssignmentPolicy.SINGLE) == 2
    assert planned_image_count(2, 30, AssignmentPolicy.SPREAD) == 8
    assert planned_image_count(0, 30, AssignmentPolicy.SPREAD) == 0


def test_failed_uploads_keep_their_slot() -> None:
    images = ["https://img.example.com/0.webp", "", "https://img.example.com/2.webp"]

    assigned = assign_images(_candidates(3), images, AssignmentPolicy.SINGLE)

    assert [candidate.image_refs for candidate in assigned] == [
        ["https://img.example.com/0.webp"],
        [],
        ["https://img.example.com/2.webp"],
    ]


def test_assign_images_does_not_mutate_input() -> None:
    candidates = _candidates(1)

    assign_images(candidates, ["https://img.example.com/0.webp"], AssignmentPolicy.SINGLE)

    assert candidates[0].image_refs == []
