"""Frame-level glue between the detector, the two geometry stages and the renderer.

Two upstream paths exist:

* On-device OCR emits pixel-space fragments.  They are merged into lines,
  normalized by the capture size, then validated.
* Cloud vision-language models emit whole lines on a 0-1000 grid.  These
  skip merging and go straight to validation.

Validation fuses, shrinks and reorders boxes, so the texts are re-attached
afterwards: every source goes to the validated box it overlaps most.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .config import (
    DEFAULT_MERGING_CONFIG,
    DEFAULT_VALIDATOR_CONFIG,
    MergingConfig,
    ValidatorConfig,
)
from .models import Box, RawDetection, TextDirection
from .processing import CoordinateValidator, TextMergerEngine
from .processing.text_merger import majority_direction

logger = logging.getLogger(__name__)


class OverlayRegion(BaseModel):
    """A validated, normalized box and the text to paint into it."""

    model_config = ConfigDict(frozen=True)

    text: str
    box: Box
    direction: TextDirection = TextDirection.HORIZONTAL
    source_count: int = Field(1, ge=1, description="Number of upstream lines drawn into this box")

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "box": list(self.box.bbox),
            "direction": self.direction.value,
            "source_count": self.source_count,
        }


@dataclass(frozen=True)
class _Source:
    text: str
    box: Box
    direction: TextDirection


def associate_texts(sources: Sequence[_Source], boxes: Sequence[Box]) -> List[OverlayRegion]:
    """Attach each source text to the validated box it overlaps most.

    Ties go to the earliest box.  A source with no overlap at all (e.g. a
    sliver that was expanded) falls back to the first box containing its
    center; otherwise it is dropped.
    """
    assigned: List[List[_Source]] = [[] for _ in boxes]

    for source in sources:
        if not source.box.is_finite:
            continue
        source_box = source.box.clip_to_bounds()

        best_index: Optional[int] = None
        best_area = 0.0
        for i, box in enumerate(boxes):
            area = source_box.intersection_area(box)
            if area > best_area:
                best_index, best_area = i, area

        if best_index is None:
            for i, box in enumerate(boxes):
                if box.left <= source_box.center_x <= box.right and box.top <= source_box.center_y <= box.bottom:
                    best_index = i
                    break

        if best_index is None:
            logger.debug("No validated box for text %r at %s", source.text[:20], source_box.bbox)
            continue
        assigned[best_index].append(source)

    regions: List[OverlayRegion] = []
    for box, members in zip(boxes, assigned):
        if not members:
            continue
        regions.append(
            OverlayRegion(
                text="\n".join(m.text for m in members),
                box=box,
                direction=majority_direction([m.direction for m in members]),
                source_count=len(members),
            )
        )
    return regions


class OverlayPipeline:
    """Runs merging and validation for one captured frame at a time."""

    def __init__(
        self,
        merging_config: MergingConfig = DEFAULT_MERGING_CONFIG,
        validator_config: ValidatorConfig = DEFAULT_VALIDATOR_CONFIG,
    ):
        self.merging_config = merging_config
        self.merger = TextMergerEngine()
        self.validator = CoordinateValidator(validator_config)

    def regions_from_detections(
        self,
        detections: Sequence[RawDetection],
        image_width: int,
        image_height: int,
    ) -> List[OverlayRegion]:
        """OCR path: pixel detections -> merged lines -> validated regions."""
        if image_width <= 0 or image_height <= 0:
            raise ValueError(f"image size must be positive: width={image_width}, height={image_height}")

        blocks = self.merger.merge(detections, self.merging_config)
        sources = [
            _Source(b.text, b.bounding_box.to_normalized(image_width, image_height), b.direction)
            for b in blocks
        ]
        boxes = self.validator.validate_and_adjust_all([s.box for s in sources], image_width, image_height)
        regions = associate_texts(sources, boxes)

        logger.info("Frame %dx%d: %d detections -> %d blocks -> %d regions",
                    image_width, image_height, len(detections), len(blocks), len(regions))
        return regions

    def regions_from_model_output(
        self,
        items: Sequence[Tuple[str, Sequence[float]]],
        screen_width: int,
        screen_height: int,
        scale: float = 1000.0,
    ) -> List[OverlayRegion]:
        """Cloud path: ``(text, [l, t, r, b])`` on a ``0..scale`` grid -> validated regions."""
        sources: List[_Source] = []
        for text, coords in items:
            try:
                box = Box.from_external(coords, scale=scale)
            except ValueError as e:
                logger.warning("Skipping model result %r: %s", text[:20], e)
                continue
            sources.append(_Source(text, box, TextDirection.HORIZONTAL))

        boxes = self.validator.validate_and_adjust_all([s.box for s in sources], screen_width, screen_height)
        regions = associate_texts(sources, boxes)

        logger.info("Model output: %d results -> %d regions", len(items), len(regions))
        return regions
