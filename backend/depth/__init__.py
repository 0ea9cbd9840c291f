"""Depth buffer decoding."""
from .decoder import DepthBuffer, depth_offset, half_to_float, sample_distance

__all__ = ["DepthBuffer", "depth_offset", "half_to_float", "sample_distance"]
