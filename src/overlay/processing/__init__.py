"""Geometric processing stages: text merging and coordinate validation."""

from .coordinate_validator import CoordinateValidator, InvalidBoxError
from .text_merger import TextMergerEngine, merge_text, merge_text_with_stats

__all__: list[str] = [
    "CoordinateValidator",
    "InvalidBoxError",
    "TextMergerEngine",
    "merge_text",
    "merge_text_with_stats",
]
