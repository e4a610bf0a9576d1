"""Value types shared by the merger and the coordinate validator."""

from .box import EMPTY_BOX, FULL_SCREEN_BOX, Box, ScreenRect
from .detection import MergedBlock, MergeResult, RawDetection, TextDirection

__all__: list[str] = [
    "Box",
    "ScreenRect",
    "EMPTY_BOX",
    "FULL_SCREEN_BOX",
    "TextDirection",
    "RawDetection",
    "MergedBlock",
    "MergeResult",
]
