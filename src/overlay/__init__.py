"""Geometry core of the screen-overlay translator.

Turns noisy OCR / vision-model detections into a small set of clean,
non-overlapping text regions:

- ``processing.text_merger`` groups raw detections into lines and blocks
- ``processing.coordinate_validator`` clips, resizes and de-overlaps boxes
- ``pipeline`` chains both stages for a captured frame
"""

from .config import (
    MERGING_PRESETS,
    VALIDATOR_PRESETS,
    MergingConfig,
    ValidatorConfig,
    get_merging_config,
    get_validator_config,
)
from .models import Box, MergedBlock, MergeResult, RawDetection, ScreenRect, TextDirection
from .pipeline import OverlayPipeline, OverlayRegion
from .processing import CoordinateValidator, InvalidBoxError, TextMergerEngine

__all__ = [
    "Box",
    "ScreenRect",
    "TextDirection",
    "RawDetection",
    "MergedBlock",
    "MergeResult",
    "MergingConfig",
    "ValidatorConfig",
    "MERGING_PRESETS",
    "VALIDATOR_PRESETS",
    "get_merging_config",
    "get_validator_config",
    "TextMergerEngine",
    "CoordinateValidator",
    "InvalidBoxError",
    "OverlayPipeline",
    "OverlayRegion",
]
