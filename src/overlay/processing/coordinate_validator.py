"""Make model/OCR boxes safe to draw on screen.

Upstream coordinates are noisy: boxes hang off the screen edge, collapse to a
sliver, or pile on top of each other.  The validator works in normalized
space and applies, in order:

1. Boundary clipping to [0, 1].
2. Minimum-size expansion so short labels stay legible.
3. (Batch only) fusion of boxes whose centers nearly line up.
4. (Batch only) overlap resolution: larger boxes are authoritative and
   smaller ones shrink away from them.

Overlap resolution is best-effort.  A candidate gets at most
``max_overlap_iterations`` shrink attempts; dense clusters can therefore leave
residual overlap, which is accepted rather than treated as an error.  Boxes are
never re-expanded after shrinking, so a shrink that would take a box below
``min_box_size`` is not applied either.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..config import DEFAULT_VALIDATOR_CONFIG, ValidatorConfig
from ..models import Box
from .overlap import get_overlap_info, should_fuse

logger = logging.getLogger(__name__)

# Spacing left between a shrunk box and the box it yielded to
SEPARATION_GAP = 0.005


class InvalidBoxError(ValueError):
    """Raised when a single box cannot be turned into a displayable one."""

    def __init__(self, box: Box, reason: str):
        self.box = box
        self.reason = reason
        super().__init__(
            f"Invalid bounding box ({reason}): left={box.left}, top={box.top}, "
            f"right={box.right}, bottom={box.bottom}"
        )


class CoordinateValidator:
    """Validate, resize and de-overlap normalized bounding boxes.

    Stateless apart from its config; safe to share across threads.
    """

    def __init__(self, config: ValidatorConfig = DEFAULT_VALIDATOR_CONFIG):
        self.config = config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def is_valid(self, box: Box) -> bool:
        """True iff the box is finite, non-empty and inside the unit square."""
        if not box.is_finite:
            return False
        return (
            0.0 <= box.left < box.right <= 1.0
            and 0.0 <= box.top < box.bottom <= 1.0
        )

    def validate_and_adjust(self, box: Box, screen_width: int, screen_height: int) -> Box:
        """Clip and grow a single box.

        Raises:
            InvalidBoxError: the box has non-finite coordinates, is inverted, or
                is still invalid after adjustment
            ValueError: the screen dimensions are not positive
        """
        if screen_width <= 0 or screen_height <= 0:
            raise ValueError(f"screen size must be positive: width={screen_width}, height={screen_height}")
        if not box.is_finite:
            raise InvalidBoxError(box, "non-finite coordinates")

        adjusted = box.clip_to_bounds()
        if adjusted.left > adjusted.right or adjusted.top > adjusted.bottom:
            raise InvalidBoxError(box, "inverted edges")

        min_size = self.config.min_box_size
        if adjusted.width < min_size or adjusted.height < min_size:
            adjusted = adjusted.expand_to_min_size(min_size, self.config.expansion_padding)

        # Expansion may cross an edge; the re-clip can leave a box smaller
        # than min_size against the screen border.
        adjusted = adjusted.clip_to_bounds()

        if not self.is_valid(adjusted):
            raise InvalidBoxError(adjusted, "degenerate after adjustment")
        return adjusted

    def validate_and_adjust_all(
        self, boxes: Sequence[Box], screen_width: int, screen_height: int
    ) -> List[Box]:
        """Adjust, fuse and de-overlap a whole frame of boxes.

        Unrepairable boxes are dropped rather than raised so one bad detection
        cannot fail the frame.  The result is ordered by acceptance (largest
        area first), not by input order.
        """
        if not boxes:
            return []

        adjusted: List[Box] = []
        for box in boxes:
            if not box.is_finite:
                logger.debug("Dropping box with non-finite coordinates: %s", box.bbox)
                continue
            try:
                adjusted.append(self.validate_and_adjust(box, screen_width, screen_height))
            except InvalidBoxError as e:
                logger.debug("Dropping unrepairable box: %s", e)

        if not adjusted:
            logger.debug("No valid boxes left out of %d", len(boxes))
            return []

        fused = self._merge_nearby_boxes(adjusted) if self.config.enable_merging else adjusted
        result = self._resolve_overlaps(fused)

        logger.debug(
            "Validated %d boxes -> %d (dropped %d, fused %d)",
            len(boxes), len(result), len(boxes) - len(adjusted), len(adjusted) - len(fused),
        )
        return result

    # ------------------------------------------------------------------
    # Nearby-box fusion
    # ------------------------------------------------------------------

    def _merge_nearby_boxes(self, boxes: List[Box]) -> List[Box]:
        """Single greedy pass; later boxes are compared against the grown union."""
        if len(boxes) <= 1:
            return boxes

        threshold = self.config.merge_distance_threshold
        used = [False] * len(boxes)
        merged: List[Box] = []

        for i, box in enumerate(boxes):
            if used[i]:
                continue
            used[i] = True
            current = box
            for j in range(i + 1, len(boxes)):
                if used[j]:
                    continue
                if should_fuse(current, boxes[j], threshold):
                    current = current.union(boxes[j])
                    used[j] = True
            merged.append(current)

        return merged

    # ------------------------------------------------------------------
    # Overlap resolution
    # ------------------------------------------------------------------

    def _resolve_overlaps(self, boxes: List[Box]) -> List[Box]:
        if len(boxes) <= 1:
            return list(boxes)

        threshold = self.config.overlap_threshold
        ordered = sorted(boxes, key=lambda b: b.area, reverse=True)
        accepted: List[Box] = []

        for box in ordered:
            candidate = box
            iterations = 0
            while iterations < self.config.max_overlap_iterations:
                other = self._first_significant_overlap(candidate, accepted, threshold)
                if other is None:
                    break
                iterations += 1
                shrunk = self._shrink_away_from(candidate, other)
                if shrunk is None:
                    logger.debug("Cannot shrink %s away from %s; keeping residual overlap",
                                 candidate.bbox, other.bbox)
                    break
                candidate = shrunk
            else:
                if self._first_significant_overlap(candidate, accepted, threshold) is not None:
                    logger.debug("Overlap budget (%d) exhausted for %s",
                                 self.config.max_overlap_iterations, candidate.bbox)

            accepted.append(candidate.clip_to_bounds())

        return accepted

    @staticmethod
    def _first_significant_overlap(box: Box, accepted: List[Box], threshold: float) -> Optional[Box]:
        for other in accepted:
            if box.has_significant_overlap(other, threshold):
                return other
        return None

    def _is_viable_shrink(self, box: Box) -> bool:
        # A shrunk box is never re-expanded, so it has to stay at min size.
        min_size = self.config.min_box_size
        return self.is_valid(box) and box.width >= min_size and box.height >= min_size

    def _shrink_away_from(self, box: Box, other: Box) -> Optional[Box]:
        """Shrink *box* along one axis so it no longer intersects *other*.

        Returns None when every option would leave the box below
        ``min_box_size`` or collapse it.
        """
        # (i) The box sticks out of `other` on exactly one side of an axis:
        # pull the opposite edge back to just outside `other`. First viable
        # option wins, in the order left, right, above, below.
        one_sided: List[Box] = []
        if box.left < other.left and box.right < other.right:
            one_sided.append(box.with_edges(right=other.left - SEPARATION_GAP))
        if box.left > other.left and box.right > other.right:
            one_sided.append(box.with_edges(left=other.right + SEPARATION_GAP))
        if box.top < other.top and box.bottom < other.bottom:
            one_sided.append(box.with_edges(bottom=other.top - SEPARATION_GAP))
        if box.top > other.top and box.bottom > other.bottom:
            one_sided.append(box.with_edges(top=other.bottom + SEPARATION_GAP))

        for option in one_sided:
            if self._is_viable_shrink(option):
                return option

        # (ii) Straddling on both axes: shrink along the axis with the larger
        # overlap fraction, away from the other box's center.
        info = get_overlap_info(box, other)
        if box.center_x < other.center_x:
            horizontal = box.with_edges(right=other.left - SEPARATION_GAP)
        else:
            horizontal = box.with_edges(left=other.right + SEPARATION_GAP)
        if box.center_y < other.center_y:
            vertical = box.with_edges(bottom=other.top - SEPARATION_GAP)
        else:
            vertical = box.with_edges(top=other.bottom + SEPARATION_GAP)

        if info.horizontal_fraction > info.vertical_fraction:
            preferred, fallback = horizontal, vertical
        else:
            preferred, fallback = vertical, horizontal

        for option in (preferred, fallback):
            if self._is_viable_shrink(option):
                return option
        return None
