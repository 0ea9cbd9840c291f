"""
Shared runtime settings for the fusion pipeline.
"""
from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from common.config.paths import BASE_DIR

load_dotenv(dotenv_path=BASE_DIR / ".env")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


class FusionSettings(BaseModel):
    """Tunables for filtering, projection, depth layout and interpolation."""

    # Environment-sourced defaults go through the validators too
    model_config = ConfigDict(validate_default=True)

    # Tracking
    confidence_threshold: float = Field(default_factory=lambda: _env_float("GEOTRACK_CONFIDENCE_THRESHOLD", 0.5))
    lerp_speed: float = Field(default_factory=lambda: _env_float("GEOTRACK_LERP_SPEED", 0.1))
    start_frame: int = Field(default_factory=lambda: _env_int("GEOTRACK_START_FRAME", 1))

    # Projection
    central_meridian: float = Field(default_factory=lambda: _env_float("GEOTRACK_CENTRAL_MERIDIAN", 0.0))
    semimajor: float = Field(default_factory=lambda: _env_float("GEOTRACK_SEMIMAJOR", 6378137.0))
    semiminor: float = Field(default_factory=lambda: _env_float("GEOTRACK_SEMIMINOR", 6356752.31424518))
    epsilon: float = Field(default_factory=lambda: _env_float("GEOTRACK_EPSILON", 0.00001))
    max_iterations: int = Field(default_factory=lambda: _env_int("GEOTRACK_MAX_ITERATIONS", 100))

    # Raster sizes: detector input, depth buffer, host display
    source_width: int = Field(default_factory=lambda: _env_int("GEOTRACK_SOURCE_WIDTH", 1280))
    source_height: int = Field(default_factory=lambda: _env_int("GEOTRACK_SOURCE_HEIGHT", 720))
    depth_width: int = Field(default_factory=lambda: _env_int("GEOTRACK_DEPTH_WIDTH", 640))
    depth_height: int = Field(default_factory=lambda: _env_int("GEOTRACK_DEPTH_HEIGHT", 192))
    depth_header_bytes: int = Field(default_factory=lambda: _env_int("GEOTRACK_DEPTH_HEADER_BYTES", 4))
    display_width: int = Field(default_factory=lambda: _env_int("GEOTRACK_DISPLAY_WIDTH", 1280))
    display_height: int = Field(default_factory=lambda: _env_int("GEOTRACK_DISPLAY_HEIGHT", 720))

    @field_validator("lerp_speed")
    @classmethod
    def _lerp_in_unit_interval(cls, value: float) -> float:
        if not 0.0 < value <= 1.0:
            raise ValueError(f"lerp_speed must be in (0, 1], got {value}")
        return value

    @field_validator("epsilon")
    @classmethod
    def _epsilon_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("epsilon must be positive")
        return value

    @field_validator("confidence_threshold")
    @classmethod
    def _threshold_in_unit_interval(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"confidence_threshold must be in [0, 1], got {value}")
        return value

    @field_validator(
        "source_width", "source_height", "depth_width", "depth_height",
        "display_width", "display_height", "max_iterations",
    )
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @property
    def x_ratio(self) -> float:
        """Horizontal scale from detector pixels to depth pixels."""
        return self.depth_width / self.source_width

    @property
    def y_ratio(self) -> float:
        """Vertical scale from detector pixels to depth pixels."""
        return self.depth_height / self.source_height

