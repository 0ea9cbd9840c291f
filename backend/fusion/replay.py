"""
Headless replay of a detection feed + depth buffer through the frame pipeline.

Writes one NDJSON line per frame with the geodetic position of every live track.
"""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import IO

from common.config import DEFAULT_TRACKS_PATH, DEPTH_PATH, FEED_PATH, METADATA_PATH
from common.settings import FusionSettings
from depth import DepthBuffer
from projection import GeodeticPoint, parse_ddm
from projection.geo_utils import distance_between
from .camera import CameraConfig, PinholeUnprojector
from .feed import load_feed
from .metadata import MetadataLog
from .pipeline import FramePipeline, FrameResult
from .visuals import InMemoryVisuals

logger = logging.getLogger(__name__)


def frame_payload(pipeline: FramePipeline, result: FrameResult, camera: GeodeticPoint | None) -> dict:
    tracks = []
    for track_id, track in pipeline.tracks.items():
        entry = {
            "id": track_id,
            "class": track.class_label,
            "score": track.score,
            "state": track.state.value,
            "lat": track.geodetic.latitude if track.geodetic else None,
            "lon": track.geodetic.longitude if track.geodetic else None,
        }
        if camera is not None and track.geodetic is not None:
            entry["range_m"] = round(distance_between(camera, track.geodetic), 2)
        tracks.append(entry)
    return {
        "frame_index": result.frame_index,
        "created": result.created,
        "retired": result.retired,
        "failed": result.failed,
        "tracks": tracks,
    }


def replay(
    pipeline: FramePipeline,
    out: IO[str],
    max_frames: int | None = None,
    interpolation_steps: int = 0,
) -> int:
    """Run ticks until the feed ends (or `max_frames`). Returns frames processed."""
    processed = 0
    while pipeline.has_next() and (max_frames is None or processed < max_frames):
        record = pipeline.feed.frame(pipeline.frame_index)
        result = pipeline.tick()
        for _ in range(interpolation_steps):
            pipeline.interpolate()

        try:
            camera = GeodeticPoint(parse_ddm(record.est_lat), parse_ddm(record.est_lon))
        except ValueError:
            camera = None
        out.write(json.dumps(frame_payload(pipeline, result, camera)) + "\n")
        processed += 1
    return processed


def replay_to_file(
    pipeline: FramePipeline,
    path: Path,
    max_frames: int | None = None,
    interpolation_steps: int = 0,
) -> int:
    """Replay into an NDJSON file. Live handles are released even if a tick fails."""
    try:
        with path.open("w", encoding="utf-8") as out:
            return replay(pipeline, out, max_frames=max_frames, interpolation_steps=interpolation_steps)
    finally:
        pipeline.close()


def main():
    parser = argparse.ArgumentParser(
        description="Replay detections and depth into geo-referenced tracks",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--feed", default=str(FEED_PATH), help="Detection feed JSON")
    parser.add_argument("--depth", default=str(DEPTH_PATH), help="Packed half-float depth buffer")
    parser.add_argument("--metadata_out", default=str(METADATA_PATH), help="Camera position log")
    parser.add_argument("--tracks_out", default=str(DEFAULT_TRACKS_PATH), help="Per-frame tracks (NDJSON)")
    parser.add_argument("--max_frames", type=int, default=None, help="Stop after this many frames")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold override")
    parser.add_argument("--lerp_steps", type=int, default=0, help="Interpolation calls per frame")
    parser.add_argument("--h_fov", type=float, default=90.0, help="Horizontal field of view (degrees)")
    parser.add_argument("--v_fov", type=float, default=60.0, help="Vertical field of view (degrees)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {}
    if args.conf is not None:
        overrides["confidence_threshold"] = args.conf
    settings = FusionSettings(**overrides)

    feed = load_feed(args.feed)
    cam_cfg = CameraConfig(
        display_width=settings.display_width,
        display_height=settings.display_height,
        h_fov_deg=args.h_fov,
        v_fov_deg=args.v_fov,
    )
    unproject = PinholeUnprojector(cam_cfg)
    tracks_out = Path(args.tracks_out)
    tracks_out.parent.mkdir(parents=True, exist_ok=True)

    with DepthBuffer.open(
        args.depth,
        settings.depth_width,
        settings.depth_height,
        header_bytes=settings.depth_header_bytes,
    ) as depth:
        pipeline = FramePipeline(
            feed=feed,
            depth=depth,
            unproject=unproject,
            visuals=InMemoryVisuals(unproject),
            settings=settings,
            metadata_log=MetadataLog(args.metadata_out),
        )
        processed = replay_to_file(
            pipeline, tracks_out, max_frames=args.max_frames, interpolation_steps=args.lerp_steps
        )

    logger.info("Replayed %d frames -> %s", processed, tracks_out)


if __name__ == "__main__":
    main()
