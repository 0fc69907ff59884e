"""
Page geometry and image slicing.

Slice plans are computed here from an image's natural size and shipped to
the in-page mutation script, which only draws the bands it is given.
"""

import math
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PageGeometry:
    """Printable area of a page, in PDF points."""
    page_width_pt: float
    page_height_pt: float
    margin_pt: float

    @property
    def content_width(self) -> float:
        return self.page_width_pt - 2 * self.margin_pt

    @property
    def content_height(self) -> float:
        return self.page_height_pt - 2 * self.margin_pt


# A4 at 72pt/in with 40pt margins -> 515 x 762 content box
A4_GEOMETRY = PageGeometry(page_width_pt=595, page_height_pt=842, margin_pt=40)


@dataclass(frozen=True)
class Slice:
    """A horizontal band of a scaled image: [top, top + height)."""
    index: int
    top: float
    height: float


@dataclass(frozen=True)
class ImagePlan:
    """How one image is scaled and cut before it is drawn."""
    scale: float
    width: float
    height: float
    slices: tuple[Slice, ...]

    def to_payload(self) -> dict[str, Any]:
        return {
            "scale": self.scale,
            "width": self.width,
            "height": self.height,
            "slices": [{"top": s.top, "height": s.height} for s in self.slices],
        }


def scale_to_width(width: float, height: float, geometry: PageGeometry) -> tuple[float, float, float]:
    """
    Scale an image so it fits the content width, never upscaling.

    Returns (scale, scaled_width, scaled_height).
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive: {width}x{height}")
    scale = min(1.0, geometry.content_width / width)
    return scale, width * scale, height * scale


def plan_slices(width: float, height: float, geometry: PageGeometry = A4_GEOMETRY) -> list[Slice]:
    """
    Split a scaled image into consecutive page-height bands.

    Bands are contiguous from the top, all but the last are exactly one
    content height, and their heights sum to the scaled image height.
    """
    _, _, scaled_height = scale_to_width(width, height, geometry)
    page_height = geometry.content_height
    count = max(1, math.ceil(scaled_height / page_height))

    slices = []
    for index in range(count):
        top = index * page_height
        bottom = min(scaled_height, top + page_height)
        slices.append(Slice(index=index, top=top, height=bottom - top))
    return slices


def plan_image(width: float, height: float, geometry: PageGeometry = A4_GEOMETRY) -> ImagePlan:
    scale, scaled_width, scaled_height = scale_to_width(width, height, geometry)
    return ImagePlan(
        scale=scale,
        width=scaled_width,
        height=scaled_height,
        slices=tuple(plan_slices(width, height, geometry)),
    )
