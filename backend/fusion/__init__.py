"""Fusion of detections, depth and camera position into geodetic tracks."""
from .camera import CameraConfig, PinholeUnprojector
from .feed import load_feed
from .metadata import MetadataLog
from .pipeline import FramePipeline, FrameResult, filter_detections, scaled_centroid
from .visuals import InMemoryVisuals

__all__ = [
    "CameraConfig",
    "FramePipeline",
    "FrameResult",
    "InMemoryVisuals",
    "MetadataLog",
    "PinholeUnprojector",
    "filter_detections",
    "load_feed",
    "scaled_centroid",
]
