"""
Packed half-precision depth buffer reader.

Layout: `header_bytes` leading bytes, then one little-endian 16-bit half float
per pixel, row-major within a frame and frame-major across frames.
"""
from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from typing import BinaryIO, Union

import numpy as np

from common.exceptions import OutOfRangeError

logger = logging.getLogger(__name__)

DEFAULT_HEADER_BYTES = 4
SAMPLE_BYTES = 2


def depth_offset(
    frame_index: int,
    x: int,
    y: int,
    width: int,
    height: int,
    header_bytes: int = DEFAULT_HEADER_BYTES,
) -> int:
    """Absolute byte offset of pixel (x, y) in frame `frame_index`."""
    if frame_index < 0:
        raise OutOfRangeError(f"frame index {frame_index} is negative")
    if not (0 <= x < width and 0 <= y < height):
        raise OutOfRangeError(f"pixel ({x}, {y}) outside {width}x{height} depth raster")
    return SAMPLE_BYTES * (width * height * frame_index + width * y + x) + header_bytes


def half_to_float(bits: int) -> float:
    """Decode a 16-bit IEEE-754 half float bit pattern to a Python float."""
    bits &= 0xFFFF
    sign = bits & 0x8000
    exponent = bits & 0x7C00
    mantissa = bits & 0x03FF

    if exponent == 0:
        # Signed zero or subnormal: mantissa * 2^-24
        value = mantissa * 2.0 ** -24
        return -value if sign else value
    if exponent == 0x7C00:
        if mantissa:
            return float("nan")
        return float("-inf") if sign else float("inf")

    # Rebias the exponent (15 -> 127) and widen the mantissa (10 -> 23 bits).
    single = (sign << 16) | ((exponent + 0x1C000) << 13) | (mantissa << 13)
    return float(np.array([single], dtype=np.uint32).view(np.float32)[0])


def _stream_size(stream: BinaryIO) -> int:
    current = stream.tell()
    size = stream.seek(0, io.SEEK_END)
    stream.seek(current, io.SEEK_SET)
    return size


def sample_distance(
    stream: BinaryIO,
    frame_index: int,
    x: int,
    y: int,
    width: int,
    height: int,
    header_bytes: int = DEFAULT_HEADER_BYTES,
    stream_size: int | None = None,
) -> float:
    """
    Read the depth sample for pixel (x, y) of a frame.

    Seeks to an absolute offset, so callers must not rely on the stream
    position afterwards.

    Raises:
        OutOfRangeError: the pixel or frame lies outside the buffer.
    """
    offset = depth_offset(frame_index, x, y, width, height, header_bytes)
    size = _stream_size(stream) if stream_size is None else stream_size
    if offset + SAMPLE_BYTES > size:
        raise OutOfRangeError(
            f"depth offset {offset} for frame {frame_index} pixel ({x}, {y}) exceeds buffer size {size}"
        )

    stream.seek(offset, io.SEEK_SET)
    raw = stream.read(SAMPLE_BYTES)
    if len(raw) != SAMPLE_BYTES:
        raise OutOfRangeError(f"short read at depth offset {offset}")
    return half_to_float(int.from_bytes(raw, "little"))


class DepthBuffer:
    """Random-access view over a depth file or in-memory stream."""

    def __init__(
        self,
        stream: BinaryIO,
        width: int,
        height: int,
        header_bytes: int = DEFAULT_HEADER_BYTES,
        owns_stream: bool = False,
    ):
        self.stream = stream
        self.width = width
        self.height = height
        self.header_bytes = header_bytes
        self._owns_stream = owns_stream
        self._size = _stream_size(stream)

    @classmethod
    def open(
        cls,
        path: Union[str, Path],
        width: int,
        height: int,
        header_bytes: int = DEFAULT_HEADER_BYTES,
    ) -> "DepthBuffer":
        path = Path(path)
        stream = open(path, "rb")
        logger.info("Opened depth buffer %s (%d bytes)", path, os.path.getsize(path))
        return cls(stream, width, height, header_bytes=header_bytes, owns_stream=True)

    @property
    def frame_count(self) -> int:
        frame_bytes = SAMPLE_BYTES * self.width * self.height
        return max(0, self._size - self.header_bytes) // frame_bytes

    def sample(self, frame_index: int, x: int, y: int) -> float:
        return sample_distance(
            self.stream,
            frame_index,
            x,
            y,
            self.width,
            self.height,
            header_bytes=self.header_bytes,
            stream_size=self._size,
        )

    def close(self) -> None:
        if self._owns_stream:
            self.stream.close()

    def __enter__(self) -> "DepthBuffer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
