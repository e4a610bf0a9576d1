"""Environment-based settings for the overlay tooling.

Only the command-line front end reads these; the geometry core always takes
its configuration as explicit arguments.  Uses pydantic-settings to:
- Load configuration from a .env file
- Validate types and values
- Support environment variable overrides (``OVERLAY_*``)
"""

from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """Global settings for overlay applications."""

    # Logging
    overlay_log_level: str = Field(
        "INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # Default presets (see src.overlay.config)
    overlay_merging_preset: str = Field(
        "default",
        description="Merging preset used when none is given on the command line"
    )
    overlay_validator_preset: str = Field(
        "default",
        description="Validator preset used when none is given on the command line"
    )

    # Screen size assumed when the input does not carry one
    overlay_screen_width: int = Field(1080, gt=0, description="Screen width in pixels")
    overlay_screen_height: int = Field(1920, gt=0, description="Screen height in pixels")

    @field_validator("overlay_log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    model_config = {
        # Look for .env file in project root (2 levels up from this file)
        "env_file": Path(__file__).parent.parent.parent / ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore unknown environment variables
    }


# Create a singleton instance that will be imported throughout the codebase
settings = Settings()
