"""Tests for merging/validator configuration and environment settings."""

from dataclasses import FrozenInstanceError
from unittest.mock import patch

import pytest

from src.core.config import Settings
from src.overlay.config import (
    DEFAULT_MERGING_CONFIG,
    DEFAULT_VALIDATOR_CONFIG,
    MERGING_PRESETS,
    VALIDATOR_PRESETS,
    MergingConfig,
    ValidatorConfig,
    get_merging_config,
    get_validator_config,
)


class TestMergingConfig:
    """Merging thresholds and presets."""

    def test_defaults(self):
        """Test the default merging thresholds."""
        config = MergingConfig()
        assert config.y_tolerance == 0.4
        assert config.x_tolerance_factor == 1.5
        assert config.max_gap_factor == 6.0

    def test_presets(self):
        """Test that every named merging preset carries its values."""
        assert set(MERGING_PRESETS) == {"default", "game", "loose", "manga", "document"}
        assert MERGING_PRESETS["game"] == MergingConfig(0.5, 2.0, 8.0)
        assert MERGING_PRESETS["loose"] == MergingConfig(0.8, 3.0, 12.0)
        assert MERGING_PRESETS["manga"] == MergingConfig(0.3, 1.0, 4.0)
        assert MERGING_PRESETS["document"] == DEFAULT_MERGING_CONFIG

    def test_immutable(self):
        """Test that configs cannot be mutated after construction."""
        with pytest.raises(FrozenInstanceError):
            DEFAULT_MERGING_CONFIG.y_tolerance = 0.9

    @pytest.mark.parametrize("kwargs", [
        {"y_tolerance": 0.05},
        {"y_tolerance": 1.5},
        {"x_tolerance_factor": 0.2},
        {"x_tolerance_factor": 3.5, "max_gap_factor": 10.0},
        {"x_tolerance_factor": 2.0, "max_gap_factor": 1.0},
    ])
    def test_rejects_out_of_range_values(self, kwargs):
        """Test that out-of-range thresholds raise ValueError."""
        with pytest.raises(ValueError):
            MergingConfig(**kwargs)

    def test_lookup(self):
        """Test lookup by preset name."""
        assert get_merging_config("manga") is MERGING_PRESETS["manga"]
        assert get_merging_config() is DEFAULT_MERGING_CONFIG

    @patch('src.overlay.config.logger')
    def test_unknown_preset_falls_back_to_default(self, mock_logger):
        """Test that an unknown name returns the default and logs a warning."""
        assert get_merging_config("webtoon") is DEFAULT_MERGING_CONFIG
        mock_logger.warning.assert_called_once()


class TestValidatorConfig:
    """Validator thresholds and presets."""

    def test_defaults(self):
        """Test the default validator thresholds."""
        config = ValidatorConfig()
        assert config.min_box_size == 0.02
        assert config.expansion_padding == 0.01
        assert config.overlap_threshold == 0.3
        assert config.max_overlap_iterations == 10
        assert config.enable_merging is True
        assert config.merge_distance_threshold == 0.05

    def test_presets(self):
        """Test the strict and loose validator presets."""
        assert set(VALIDATOR_PRESETS) == {"default", "strict", "loose"}
        strict = VALIDATOR_PRESETS["strict"]
        assert (strict.min_box_size, strict.expansion_padding, strict.overlap_threshold) == (0.03, 0.005, 0.2)
        loose = VALIDATOR_PRESETS["loose"]
        assert (loose.min_box_size, loose.expansion_padding, loose.overlap_threshold) == (0.01, 0.02, 0.5)
        assert loose.enable_merging is False

    @pytest.mark.parametrize("kwargs", [
        {"min_box_size": -0.01},
        {"min_box_size": 1.0},
        {"expansion_padding": -0.1},
        {"overlap_threshold": 1.2},
        {"max_overlap_iterations": -1},
        {"merge_distance_threshold": -0.05},
    ])
    def test_rejects_out_of_range_values(self, kwargs):
        """Test that out-of-range validator settings raise ValueError."""
        with pytest.raises(ValueError):
            ValidatorConfig(**kwargs)

    def test_zero_min_size_is_allowed(self):
        """Test that min_box_size=0 is a legal way to disable expansion."""
        assert ValidatorConfig(min_box_size=0.0).min_box_size == 0.0

    @patch('src.overlay.config.logger')
    def test_unknown_preset_falls_back_to_default(self, mock_logger):
        """Test that an unknown validator preset falls back with a warning."""
        assert get_validator_config("paranoid") is DEFAULT_VALIDATOR_CONFIG
        mock_logger.warning.assert_called_once()
        assert get_validator_config("strict") is VALIDATOR_PRESETS["strict"]


class TestSettings:
    """Environment-driven settings used by the CLI."""

    def test_defaults(self, monkeypatch):
        """Test the settings defaults without any environment overrides."""
        for name in ("OVERLAY_LOG_LEVEL", "OVERLAY_MERGING_PRESET", "OVERLAY_SCREEN_WIDTH"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)
        assert settings.overlay_log_level == "INFO"
        assert settings.overlay_merging_preset == "default"
        assert settings.overlay_screen_width == 1080

    def test_environment_overrides(self, monkeypatch):
        """Test that OVERLAY_* variables override defaults and the level is upper-cased."""
        monkeypatch.setenv("OVERLAY_LOG_LEVEL", "debug")
        monkeypatch.setenv("OVERLAY_VALIDATOR_PRESET", "strict")
        monkeypatch.setenv("OVERLAY_SCREEN_HEIGHT", "2400")
        settings = Settings(_env_file=None)
        assert settings.overlay_log_level == "DEBUG"
        assert settings.overlay_validator_preset == "strict"
        assert settings.overlay_screen_height == 2400
