"""Pairwise overlap metrics between boxes.

Used by the coordinate validator to decide whether a box must yield to an
already accepted one, and in which direction it should shrink.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models import Box


@dataclass(frozen=True)
class OverlapInfo:
    """Overlap of a *candidate* box against an *other* box.

    All fields are always present; for disjoint boxes every metric is 0.
    """
    has_overlap: bool
    overlap_area: float

    # Extent of the intersection rectangle (0 when disjoint)
    overlap_width: float
    overlap_height: float

    # Fraction of the candidate covered, per axis and by area
    horizontal_fraction: float
    vertical_fraction: float
    overlap_ratio: float  # intersection / candidate area

    iou: float


_NO_OVERLAP = OverlapInfo(
    has_overlap=False,
    overlap_area=0.0,
    overlap_width=0.0,
    overlap_height=0.0,
    horizontal_fraction=0.0,
    vertical_fraction=0.0,
    overlap_ratio=0.0,
    iou=0.0,
)


def get_overlap_info(candidate: Box, other: Box) -> OverlapInfo:
    """Compute overlap metrics of *candidate* against *other*."""
    overlap_width = min(candidate.right, other.right) - max(candidate.left, other.left)
    overlap_height = min(candidate.bottom, other.bottom) - max(candidate.top, other.top)

    if overlap_width <= 0 or overlap_height <= 0:
        return _NO_OVERLAP

    area = overlap_width * overlap_height
    return OverlapInfo(
        has_overlap=True,
        overlap_area=area,
        overlap_width=overlap_width,
        overlap_height=overlap_height,
        horizontal_fraction=overlap_width / candidate.width if candidate.width > 0 else 0.0,
        vertical_fraction=overlap_height / candidate.height if candidate.height > 0 else 0.0,
        overlap_ratio=area / candidate.area if candidate.area > 0 else 0.0,
        iou=candidate.iou(other),
    )


def should_fuse(a: Box, b: Box, distance_threshold: float) -> bool:
    """True when the centers are closer than the threshold on either axis."""
    return (
        abs(a.center_x - b.center_x) < distance_threshold
        or abs(a.center_y - b.center_y) < distance_threshold
    )
