"""Box data model for detected text regions."""

from __future__ import annotations

import math
from typing import Sequence, Tuple

# Pydantic v2
from pydantic import BaseModel, ConfigDict


class Box(BaseModel):
    """Axis-aligned rectangle in either pixel or normalized (0-1) space.

    Construction deliberately does not enforce ``left < right`` or finite
    coordinates: upstream detectors emit degenerate boxes and the
    :class:`~src.overlay.processing.coordinate_validator.CoordinateValidator`
    has to see them in order to filter them out.
    """

    model_config = ConfigDict(frozen=True)

    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def from_ltrb(cls, left: float, top: float, right: float, bottom: float) -> "Box":
        """Positional shorthand used throughout the tests and the CLI."""
        return cls(left=left, top=top, right=right, bottom=bottom)

    @classmethod
    def from_external(cls, coords: Sequence[float], scale: float = 1000.0) -> "Box":
        """Create a normalized box from model output on a ``0..scale`` grid.

        Vision-language models report ``[left, top, right, bottom]`` on a
        0-1000 grid.  Values are clamped into [0, 1] after rescaling.
        """
        if len(coords) != 4:
            raise ValueError(
                f"coordinates must contain exactly 4 values [left, top, right, bottom], got {list(coords)}"
            )
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")
        values = [float(c) for c in coords]
        if not all(math.isfinite(v) for v in values):
            raise ValueError(f"coordinates must be finite, got {values}")
        l, t, r, b = (_clamp(v / scale, 0.0, 1.0) for v in values)
        return cls(left=l, top=t, right=r, bottom=b)

    # ------------------------------------------------------------------
    # Derived geometry
    # ------------------------------------------------------------------

    @property
    def bbox(self) -> Tuple[float, float, float, float]:
        """(x1, y1, x2, y2) tuple."""
        return (self.left, self.top, self.right, self.bottom)

    @property
    def width(self) -> float:
        return max(self.right - self.left, 0.0)

    @property
    def height(self) -> float:
        return max(self.bottom - self.top, 0.0)

    @property
    def center_x(self) -> float:
        return (self.left + self.right) / 2

    @property
    def center_y(self) -> float:
        return (self.top + self.bottom) / 2

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in self.bbox)

    # ------------------------------------------------------------------
    # Transformations (always return a new Box)
    # ------------------------------------------------------------------

    def clip_to_bounds(self, lower: float = 0.0, upper: float = 1.0) -> "Box":
        """Clamp every coordinate into ``[lower, upper]``."""
        return Box(
            left=_clamp(self.left, lower, upper),
            top=_clamp(self.top, lower, upper),
            right=_clamp(self.right, lower, upper),
            bottom=_clamp(self.bottom, lower, upper),
        )

    def expand_to_min_size(self, min_size: float, padding: float = 0.0) -> "Box":
        """Grow each axis shorter than *min_size* around its own midpoint.

        An undersized axis ends up spanning ``min_size + 2 * padding``.  Axes
        that are already large enough are left untouched.  The result is not
        clipped; callers clip afterwards.
        """
        left, right = self.left, self.right
        top, bottom = self.top, self.bottom

        if right - left < min_size:
            half = min_size / 2 + padding
            left, right = self.center_x - half, self.center_x + half
        if bottom - top < min_size:
            half = min_size / 2 + padding
            top, bottom = self.center_y - half, self.center_y + half

        return Box(left=left, top=top, right=right, bottom=bottom)

    def union(self, other: "Box") -> "Box":
        return Box(
            left=min(self.left, other.left),
            top=min(self.top, other.top),
            right=max(self.right, other.right),
            bottom=max(self.bottom, other.bottom),
        )

    def with_edges(self, **edges: float) -> "Box":
        """Copy with some of ``left/top/right/bottom`` replaced."""
        return self.model_copy(update=edges)

    # ------------------------------------------------------------------
    # Pairwise metrics
    # ------------------------------------------------------------------

    def intersection_area(self, other: "Box") -> float:
        x1 = max(self.left, other.left)
        y1 = max(self.top, other.top)
        x2 = min(self.right, other.right)
        y2 = min(self.bottom, other.bottom)
        if x1 >= x2 or y1 >= y2:
            return 0.0
        return (x2 - x1) * (y2 - y1)

    def iou(self, other: "Box") -> float:
        inter = self.intersection_area(other)
        union = self.area + other.area - inter
        return inter / union if union > 0 else 0.0

    def overlap_ratio(self, other: "Box") -> float:
        """Fraction of *this* box covered by *other*."""
        area = self.area
        return self.intersection_area(other) / area if area > 0 else 0.0

    def has_significant_overlap(self, other: "Box", threshold: float) -> bool:
        return self.overlap_ratio(other) > threshold

    # ------------------------------------------------------------------
    # Coordinate space conversion
    # ------------------------------------------------------------------

    def to_normalized(self, image_width: int, image_height: int) -> "Box":
        """Pixel space -> normalized space."""
        if image_width <= 0 or image_height <= 0:
            raise ValueError(f"image size must be positive: width={image_width}, height={image_height}")
        return Box(
            left=self.left / image_width,
            top=self.top / image_height,
            right=self.right / image_width,
            bottom=self.bottom / image_height,
        )

    def to_screen_rect(self, screen_width: int, screen_height: int) -> "ScreenRect":
        """Normalized space -> integer pixel rectangle clamped to the screen."""
        return ScreenRect(
            left=_clamp(int(self.left * screen_width), 0, screen_width),
            top=_clamp(int(self.top * screen_height), 0, screen_height),
            right=_clamp(int(self.right * screen_width), 0, screen_width),
            bottom=_clamp(int(self.bottom * screen_height), 0, screen_height),
        )


class ScreenRect(BaseModel):
    """Screen rectangle in whole pixels, as handed to the renderer."""

    model_config = ConfigDict(frozen=True)

    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return max(self.right - self.left, 0)

    @property
    def height(self) -> int:
        return max(self.bottom - self.top, 0)

    @property
    def center_x(self) -> int:
        return (self.left + self.right) // 2

    @property
    def center_y(self) -> int:
        return (self.top + self.bottom) // 2

    @property
    def area(self) -> int:
        return self.width * self.height

    def contains(self, x: int, y: int) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    def to_normalized(self, screen_width: int, screen_height: int) -> Box:
        if screen_width <= 0 or screen_height <= 0:
            raise ValueError(f"screen size must be positive: width={screen_width}, height={screen_height}")
        return Box(
            left=self.left / screen_width,
            top=self.top / screen_height,
            right=self.right / screen_width,
            bottom=self.bottom / screen_height,
        )


def _clamp(value, lower, upper):
    return max(lower, min(value, upper))


EMPTY_BOX = Box(left=0.0, top=0.0, right=0.0, bottom=0.0)
FULL_SCREEN_BOX = Box(left=0.0, top=0.0, right=1.0, bottom=1.0)
