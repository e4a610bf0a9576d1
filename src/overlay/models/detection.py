"""OCR detection and merged text block models."""

from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .box import Box


class TextDirection(str, Enum):
    """Reading direction of a line of text."""
    HORIZONTAL = "HORIZONTAL"  # left-to-right
    VERTICAL = "VERTICAL"  # top-to-bottom


class RawDetection(BaseModel):
    """A single OCR hit in pixel space, consumed once by the merger."""

    model_config = ConfigDict(frozen=True)

    text: str
    box: Box
    confidence: float = Field(..., ge=0.0, le=1.0, description="Recognition confidence in [0, 1]")
    angle: float = Field(0.0, description="Text rotation in degrees reported by the OCR engine")

    @property
    def is_high_quality(self) -> bool:
        return self.confidence > 0.8

    @property
    def is_low_quality(self) -> bool:
        return self.confidence < 0.5


class MergedBlock(BaseModel):
    """One displayable line/block built from one or more raw detections."""

    model_config = ConfigDict(frozen=True)

    text: str
    bounding_box: Box
    direction: TextDirection = TextDirection.HORIZONTAL
    original_box_count: int = Field(..., ge=1)
    average_confidence: float = Field(..., ge=0.0, le=1.0)
    # Member detections in reading order; kept for debugging overlays.
    original_detections: List[RawDetection] = Field(default_factory=list)

    @classmethod
    def from_single_detection(
        cls, detection: RawDetection, direction: TextDirection = TextDirection.HORIZONTAL
    ) -> "MergedBlock":
        return cls(
            text=detection.text,
            bounding_box=detection.box,
            direction=direction,
            original_box_count=1,
            average_confidence=detection.confidence,
            original_detections=[detection],
        )

    @property
    def is_multi_box_merged(self) -> bool:
        return self.original_box_count > 1

    @property
    def text_length(self) -> int:
        return len(self.text)

    @property
    def avg_text_length_per_box(self) -> float:
        return self.text_length / self.original_box_count


class MergeResult(BaseModel):
    """Merged blocks plus the bookkeeping the overlay logs after each frame."""

    merged_blocks: List[MergedBlock]
    original_detection_count: int = Field(..., ge=0)
    merged_count: int = Field(..., ge=0)
    average_confidence: float = 0.0

    @classmethod
    def create(cls, merged_blocks: List[MergedBlock], detections: List[RawDetection]) -> "MergeResult":
        avg = sum(d.confidence for d in detections) / len(detections) if detections else 0.0
        return cls(
            merged_blocks=merged_blocks,
            original_detection_count=len(detections),
            merged_count=len(merged_blocks),
            average_confidence=avg,
        )

    @property
    def merge_efficiency(self) -> float:
        """Input detections per output block."""
        if self.merged_count > 0:
            return self.original_detection_count / self.merged_count
        return 1.0

    @property
    def compression_ratio(self) -> float:
        """Output blocks per input detection (inverse of efficiency)."""
        if self.original_detection_count > 0:
            return self.merged_count / self.original_detection_count
        return 1.0
