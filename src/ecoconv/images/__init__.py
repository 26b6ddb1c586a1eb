"""Image hosting and positional image assignment."""

from .assignment import AssignmentPolicy, allocate, assign_images, planned_image_count
from .hosting import CloudinaryImageHost, HostedImage, ImageHost, ImageRehoster, RehostResult, download_as_data_url

__all__ = [
    "AssignmentPolicy",
    "CloudinaryImageHost",
    "HostedImage",
    "ImageHost",
    "ImageRehoster",
    "RehostResult",
    "allocate",
    "assign_images",
    "download_as_data_url",
    "planned_image_count",
]
