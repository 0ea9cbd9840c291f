"""Shared test fixtures for backend tests.

Builds pipelines over in-memory depth buffers and fake visual handles so
tests run without a render host, recorded depth files, or a .env file.
"""
from __future__ import annotations

import pytest

from common.settings import FusionSettings
from common.types import DetectionFeed, FrameRecord
from depth import DepthBuffer
from fusion import FramePipeline, MetadataLog
from tests.fakes import FakeVisuals, constant_frames, depth_only_unprojector, depth_stream


@pytest.fixture()
def settings() -> FusionSettings:
    return FusionSettings(
        confidence_threshold=0.5,
        lerp_speed=0.1,
        start_frame=1,
        central_meridian=0.0,
        semimajor=6378137.0,
        semiminor=6356752.31424518,
        epsilon=0.00001,
        max_iterations=100,
        source_width=1280,
        source_height=720,
        depth_width=640,
        depth_height=192,
        depth_header_bytes=4,
        display_width=1280,
        display_height=720,
    )


@pytest.fixture()
def visuals() -> FakeVisuals:
    return FakeVisuals()


@pytest.fixture()
def pipeline_factory(settings, visuals, tmp_path):
    """Create a FramePipeline over constant-depth frames.

    Accepts `frames` (feed frame index -> FrameRecord), `depths` (one value per
    depth frame) and optional `unproject` / `settings` overrides.
    """

    def _factory(frames: dict[int, FrameRecord], depths=(10.0, 12.0, 14.0, 16.0), **kwargs) -> FramePipeline:
        cfg = kwargs.pop("settings", settings)
        feed = DetectionFeed(frames={str(k): v for k, v in frames.items()})
        depth = DepthBuffer(
            depth_stream(constant_frames(list(depths), cfg.depth_width, cfg.depth_height)),
            cfg.depth_width,
            cfg.depth_height,
        )
        return FramePipeline(
            feed=feed,
            depth=depth,
            unproject=kwargs.pop("unproject", depth_only_unprojector),
            visuals=kwargs.pop("visuals", visuals),
            settings=cfg,
            metadata_log=kwargs.pop("metadata_log", MetadataLog(tmp_path / "metadata.txt")),
        )

    return _factory
