"""JSON-in / JSON-out front end for the overlay geometry pipeline.

``merge`` takes OCR output in pixel space, ``validate`` takes vision-model
output on a 0-1000 grid.  Both print ``{"regions": [...]}``.
"""

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..core.config import settings
from ..overlay.config import get_merging_config, get_validator_config
from ..overlay.models import Box, RawDetection
from ..overlay.pipeline import OverlayPipeline, OverlayRegion

logger = logging.getLogger(__name__)


class DetectionInput(BaseModel):
    """One OCR fragment as written by the capture service."""
    text: str
    box: List[float] = Field(..., description="[left, top, right, bottom] in pixels")
    confidence: float = Field(1.0, ge=0.0, le=1.0)
    angle: float = 0.0

    @field_validator("box")
    @classmethod
    def _four_values(cls, v: List[float]) -> List[float]:
        if len(v) != 4:
            raise ValueError(f"box must have 4 values, got {len(v)}")
        return v

    def to_detection(self) -> RawDetection:
        return RawDetection(
            text=self.text,
            box=Box.from_ltrb(*self.box),
            confidence=self.confidence,
            angle=self.angle,
        )


class MergeRequest(BaseModel):
    image_width: int = Field(..., gt=0)
    image_height: int = Field(..., gt=0)
    detections: List[DetectionInput] = Field(default_factory=list)


class ModelResultInput(BaseModel):
    """One translated line from the vision model."""
    text: str
    coordinates: List[float] = Field(..., description="[left, top, right, bottom] on a 0-1000 grid")


class ValidateRequest(BaseModel):
    screen_width: Optional[int] = Field(None, gt=0)
    screen_height: Optional[int] = Field(None, gt=0)
    results: List[ModelResultInput] = Field(default_factory=list)


def _write_regions(regions: List[OverlayRegion], output: Optional[Path]) -> None:
    payload = json.dumps({"regions": [r.to_dict() for r in regions]}, indent=2, ensure_ascii=False)
    if output is None:
        print(payload)
    else:
        output.write_text(payload, encoding="utf-8")
        logger.info("Wrote %d regions to %s", len(regions), output)


def _build_pipeline(merging_preset: Optional[str], validator_preset: Optional[str]) -> OverlayPipeline:
    return OverlayPipeline(
        merging_config=get_merging_config(merging_preset or settings.overlay_merging_preset),
        validator_config=get_validator_config(validator_preset or settings.overlay_validator_preset),
    )


def run_merge(
    input_path: Path,
    output: Optional[Path] = None,
    merging_preset: Optional[str] = None,
    validator_preset: Optional[str] = None,
) -> int:
    """Process an OCR detections file.  Returns the process exit code."""
    try:
        request = MergeRequest.model_validate_json(Path(input_path).read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        logger.error("Cannot read detections from %s: %s", input_path, e)
        return 1

    pipeline = _build_pipeline(merging_preset, validator_preset)
    regions = pipeline.regions_from_detections(
        [d.to_detection() for d in request.detections],
        request.image_width,
        request.image_height,
    )
    _write_regions(regions, output)
    return 0


def run_validate(
    input_path: Path,
    output: Optional[Path] = None,
    validator_preset: Optional[str] = None,
) -> int:
    """Process a vision-model results file.  Returns the process exit code."""
    try:
        request = ValidateRequest.model_validate_json(Path(input_path).read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        logger.error("Cannot read model results from %s: %s", input_path, e)
        return 1

    pipeline = _build_pipeline(None, validator_preset)
    regions = pipeline.regions_from_model_output(
        [(r.text, r.coordinates) for r in request.results],
        request.screen_width or settings.overlay_screen_width,
        request.screen_height or settings.overlay_screen_height,
    )
    _write_regions(regions, output)
    return 0


def configure_logging(level: Optional[str] = None) -> None:
    # Logs go to stderr so stdout stays valid JSON.
    logging.basicConfig(
        level=getattr(logging, (level or settings.overlay_log_level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
