"""Tests for packed half-float depth decoding."""
from __future__ import annotations

import io
import math

import numpy as np
import pytest

from common.exceptions import OutOfRangeError
from depth import DepthBuffer, depth_offset, half_to_float, sample_distance
from tests.fakes import depth_frames_bytes, depth_stream

W, H = 640, 192


def _half_bits(value: float) -> int:
    return int(np.array([value], dtype=np.float16).view(np.uint16)[0])


def _stream_with(samples: dict[tuple[int, int, int], float], frames: int = 2) -> io.BytesIO:
    data = np.zeros((frames, H, W), dtype=np.float16)
    for (f, x, y), value in samples.items():
        data[f, y, x] = value
    return depth_stream(list(data))


class TestOffset:
    def test_first_sample_follows_header(self):
        assert depth_offset(0, 0, 0, W, H) == 4

    def test_row_major_frame_major(self):
        assert depth_offset(2, 5, 3, W, H) == 2 * (W * H * 2 + W * 3 + 5) + 4

    def test_custom_header(self):
        assert depth_offset(0, 1, 0, W, H, header_bytes=0) == 2

    @pytest.mark.parametrize("x, y", [(-1, 0), (0, -1), (W, 0), (0, H)])
    def test_pixel_outside_raster(self, x, y):
        with pytest.raises(OutOfRangeError):
            depth_offset(0, x, y, W, H)

    def test_negative_frame(self):
        with pytest.raises(OutOfRangeError):
            depth_offset(-1, 0, 0, W, H)


class TestHalfToFloat:
    def test_zero(self):
        assert half_to_float(0x0000) == 0.0

    def test_negative_zero(self):
        value = half_to_float(0x8000)
        assert value == 0.0
        assert math.copysign(1.0, value) == -1.0

    def test_one(self):
        assert half_to_float(0x3C00) == 1.0

    def test_negative_two(self):
        assert half_to_float(0xC000) == -2.0

    @pytest.mark.parametrize("value", [0.3, 1.5, 12.375, 65504.0, 6.1035e-05])
    def test_matches_numpy(self, value):
        expected = float(np.float16(value))
        assert half_to_float(_half_bits(value)) == expected

    def test_subnormal(self):
        assert half_to_float(0x0001) == 2.0 ** -24

    def test_infinity_and_nan(self):
        assert half_to_float(0x7C00) == float("inf")
        assert half_to_float(0xFC00) == float("-inf")
        assert math.isnan(half_to_float(0x7E00))


class TestSampleDistance:
    @pytest.mark.parametrize("value", [0.0, 1.0, 0.3])
    def test_decodes_known_sample(self, value):
        stream = _stream_with({(1, 320, 96): value})
        assert sample_distance(stream, 1, 320, 96, W, H) == float(np.float16(value))

    def test_reads_little_endian(self):
        stream = io.BytesIO(b"\x00\x00\x00\x00" + b"\x00\x3c")
        assert sample_distance(stream, 0, 0, 0, 1, 1) == 1.0

    def test_neighbouring_pixels_independent(self):
        stream = _stream_with({(0, 10, 20): 2.5, (0, 11, 20): 7.0, (0, 10, 21): 9.0})
        assert sample_distance(stream, 0, 11, 20, W, H) == 7.0
        assert sample_distance(stream, 0, 10, 20, W, H) == 2.5
        assert sample_distance(stream, 0, 10, 21, W, H) == 9.0

    def test_frame_past_end_of_stream(self):
        stream = _stream_with({}, frames=2)
        with pytest.raises(OutOfRangeError, match="exceeds buffer size"):
            sample_distance(stream, 2, 0, 0, W, H)

    def test_truncated_last_sample(self):
        stream = io.BytesIO(b"\x00\x00\x00\x00" + b"\x00")
        with pytest.raises(OutOfRangeError):
            sample_distance(stream, 0, 0, 0, 1, 1)

    def test_out_of_range_is_index_error(self):
        with pytest.raises(IndexError):
            sample_distance(io.BytesIO(b""), 0, 0, 0, W, H)


class TestDepthBuffer:
    def test_frame_count(self):
        buf = DepthBuffer(_stream_with({}, frames=3), W, H)
        assert buf.frame_count == 3

    def test_sample(self):
        buf = DepthBuffer(_stream_with({(2, 1, 1): 42.0}, frames=3), W, H)
        assert buf.sample(2, 1, 1) == 42.0

    def test_open_file_and_close(self, tmp_path):
        path = tmp_path / "depth.dat"
        path.write_bytes(depth_frames_bytes([np.full((2, 2), 3.0, dtype=np.float16)]))
        with DepthBuffer.open(path, 2, 2) as buf:
            assert buf.frame_count == 1
            assert buf.sample(0, 1, 1) == 3.0
        assert buf.stream.closed

    def test_borrowed_stream_left_open(self):
        stream = _stream_with({}, frames=1)
        with DepthBuffer(stream, W, H):
            pass
        assert not stream.closed
