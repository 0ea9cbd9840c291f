"""
Pydantic models for the detection feed.

The feed is produced upstream by the detector + tracker and read in full at
startup. Coordinates of the camera are kept in degree-minutes (DDMM.mmmm)
exactly as they arrive.
"""
from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Detection(BaseModel):
    """
    One tracked object in one frame.
    Box is [x1, y1, x2, y2] in source image pixels.
    """
    class_label: str = Field(..., alias="class")
    box: List[float] = Field(..., alias="tlbr")
    score: float                   # Detection confidence (0-1)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("box")
    @classmethod
    def _four_corners(cls, value: List[float]) -> List[float]:
        if len(value) != 4:
            raise ValueError(f"box needs 4 values [x1, y1, x2, y2], got {len(value)}")
        return value


class FrameRecord(BaseModel):
    """All detections of one frame plus the camera's own position."""
    objects: Dict[str, Detection] = Field(default_factory=dict)
    est_lat: float                 # Camera latitude (ddm)
    est_lon: float                 # Camera longitude (ddm)
    heading: float = 0.0           # Camera heading (degrees), informational
    raw_est_lat: str = Field(default="", exclude=True)   # est_lat text as it appeared in the feed
    raw_est_lon: str = Field(default="", exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _keep_raw_position(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            for key in ("est_lat", "est_lon"):
                if key in data and not data.get(f"raw_{key}"):
                    data[f"raw_{key}"] = str(data[key])
        return data


class DetectionFeed(BaseModel):
    """Frame index (as string) -> frame record."""
    frames: Dict[str, FrameRecord] = Field(default_factory=dict)

    def frame(self, frame_index: int) -> FrameRecord | None:
        return self.frames.get(str(frame_index))

    @property
    def frame_count(self) -> int:
        return len(self.frames)
