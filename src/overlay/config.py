"""Centralized tuning for text merging and coordinate validation.

Both stages take their thresholds as an explicit, immutable config object per
call; nothing here is read from storage.  Named presets cover the common
capture scenarios.
"""

import logging
from dataclasses import dataclass
from typing import Dict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergingConfig:
    """Immutable thresholds for grouping raw OCR detections into blocks."""

    # Row clustering
    y_tolerance: float = 0.4  # Fraction of mean box height that still counts as the same line

    # Gap handling inside a row (multiples of the row's average char width)
    x_tolerance_factor: float = 1.5  # Gap at or below this -> concatenate with no separator
    max_gap_factor: float = 6.0  # Gap above this -> start a new block in the same row

    def __post_init__(self):
        if not 0.1 <= self.y_tolerance <= 1.0:
            raise ValueError(f"y_tolerance must be within [0.1, 1.0], got {self.y_tolerance}")
        if not 0.5 <= self.x_tolerance_factor <= 3.0:
            raise ValueError(f"x_tolerance_factor must be within [0.5, 3.0], got {self.x_tolerance_factor}")
        if self.max_gap_factor < self.x_tolerance_factor:
            raise ValueError(
                f"max_gap_factor ({self.max_gap_factor}) must be >= x_tolerance_factor ({self.x_tolerance_factor})"
            )


@dataclass(frozen=True)
class ValidatorConfig:
    """Immutable thresholds for clipping, resizing and de-overlapping boxes.

    All sizes are fractions of the screen (normalized space).
    """

    # Minimum size
    min_box_size: float = 0.02  # Boxes thinner than this are grown to stay legible
    expansion_padding: float = 0.01  # Extra margin added on each side when growing

    # Overlap resolution
    overlap_threshold: float = 0.3  # Intersection / own area above this must be resolved
    max_overlap_iterations: int = 10  # Shrink attempts per box before accepting residual overlap

    # Nearby-box fusion before overlap resolution
    enable_merging: bool = True
    merge_distance_threshold: float = 0.05  # Center distance (either axis) below which boxes fuse

    def __post_init__(self):
        if not 0.0 <= self.min_box_size < 1.0:
            raise ValueError(f"min_box_size must be within [0, 1), got {self.min_box_size}")
        if self.expansion_padding < 0:
            raise ValueError(f"expansion_padding must be >= 0, got {self.expansion_padding}")
        if not 0.0 <= self.overlap_threshold <= 1.0:
            raise ValueError(f"overlap_threshold must be within [0, 1], got {self.overlap_threshold}")
        if self.max_overlap_iterations < 0:
            raise ValueError(f"max_overlap_iterations must be >= 0, got {self.max_overlap_iterations}")
        if self.merge_distance_threshold < 0:
            raise ValueError(f"merge_distance_threshold must be >= 0, got {self.merge_distance_threshold}")


# Global default configurations
DEFAULT_MERGING_CONFIG = MergingConfig()
DEFAULT_VALIDATOR_CONFIG = ValidatorConfig()

# Merging presets for different capture sources
MERGING_PRESETS: Dict[str, MergingConfig] = {
    'default': DEFAULT_MERGING_CONFIG,

    'game': MergingConfig(
        y_tolerance=0.5,  # Game UIs jitter baselines between glyphs
        x_tolerance_factor=2.0,  # Dense text with wide letter spacing
        max_gap_factor=8.0,
    ),

    'loose': MergingConfig(
        y_tolerance=0.8,
        x_tolerance_factor=3.0,
        max_gap_factor=12.0,
    ),

    'manga': MergingConfig(
        y_tolerance=0.3,  # Speech bubbles sit close together
        x_tolerance_factor=1.0,
        max_gap_factor=4.0,
    ),

    'document': MergingConfig(
        y_tolerance=0.4,
        x_tolerance_factor=1.5,
        max_gap_factor=6.0,
    ),
}

# Validator presets
VALIDATOR_PRESETS: Dict[str, ValidatorConfig] = {
    'default': DEFAULT_VALIDATOR_CONFIG,

    'strict': ValidatorConfig(
        min_box_size=0.03,
        expansion_padding=0.005,
        overlap_threshold=0.2,  # Resolve even moderate overlaps
        enable_merging=True,
    ),

    'loose': ValidatorConfig(
        min_box_size=0.01,
        expansion_padding=0.02,
        overlap_threshold=0.5,
        enable_merging=False,  # Trust upstream line boxes as-is
    ),
}


def get_merging_config(preset: str = 'default') -> MergingConfig:
    """Get the merging configuration for a named preset.

    Args:
        preset: One of ``MERGING_PRESETS`` ('default', 'game', 'loose', 'manga', 'document')

    Returns:
        MergingConfig instance (the default one for unknown names)
    """
    if preset not in MERGING_PRESETS:
        logger.warning("Unknown merging preset %r, falling back to 'default'", preset)
    return MERGING_PRESETS.get(preset, DEFAULT_MERGING_CONFIG)


def get_validator_config(preset: str = 'default') -> ValidatorConfig:
    """Get the validator configuration for a named preset.

    Args:
        preset: One of ``VALIDATOR_PRESETS`` ('default', 'strict', 'loose')

    Returns:
        ValidatorConfig instance (the default one for unknown names)
    """
    if preset not in VALIDATOR_PRESETS:
        logger.warning("Unknown validator preset %r, falling back to 'default'", preset)
    return VALIDATOR_PRESETS.get(preset, DEFAULT_VALIDATOR_CONFIG)
