"""
Frame pipeline: detections + depth + camera position -> geodetic tracks.

One ingestion tick per feed frame, plus an interpolation step that the host
may call at its own (usually higher) cadence.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from common.exceptions import FrameNotFoundError, GeoTrackError, PipelineBusyError
from common.settings import FusionSettings
from common.types import Detection, DetectionFeed, FrameRecord
from depth import DepthBuffer
from projection import EllipsoidModel, GeodeticPoint, MercatorProjection, PlanarPoint, parse_ddm
from tracking import Track, TrackStore, Vec3, VisualHandles
from .metadata import MetadataLog

logger = logging.getLogger(__name__)

# Feed frames are numbered from 1; depth frames from 0.
FIRST_FEED_FRAME = 1


@dataclass
class FrameResult:
    """Summary of one ingestion tick."""
    frame_index: int
    created: List[str] = field(default_factory=list)
    continued: List[str] = field(default_factory=list)
    retired: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)


def filter_detections(objects: Mapping[str, Detection], threshold: float) -> Dict[str, Detection]:
    """Keep detections strictly above the confidence threshold."""
    return {track_id: det for track_id, det in objects.items() if det.score > threshold}


def scaled_centroid(box: List[float], x_ratio: float, y_ratio: float) -> tuple[int, int]:
    """Box centre mapped from detector pixels to depth pixels."""
    x1, y1, x2, y2 = box
    return math.floor((x2 + x1) * x_ratio / 2), math.floor((y2 + y1) * y_ratio / 2)


class FramePipeline:
    """
    Owns the frame counter and the track store.

    Single writer: at most one `ingest` may run at a time. `interpolate`
    is a no-op while an ingest is in flight.
    """

    def __init__(
        self,
        feed: DetectionFeed,
        depth: DepthBuffer,
        unproject: Callable[[Vec3], Vec3],
        visuals: VisualHandles,
        settings: FusionSettings | None = None,
        metadata_log: MetadataLog | None = None,
    ):
        self.settings = settings or FusionSettings()
        self.feed = feed
        self.depth = depth
        self.unproject = unproject
        self.metadata_log = metadata_log
        self.projection = MercatorProjection(
            EllipsoidModel(
                semimajor=self.settings.semimajor,
                semiminor=self.settings.semiminor,
                central_meridian=self.settings.central_meridian,
            )
        )
        self.store = TrackStore(visuals)
        self.frame_index = self.settings.start_frame
        self._ingesting = False
        self._logged_frame: int | None = None

    @property
    def busy(self) -> bool:
        return self._ingesting

    @property
    def tracks(self) -> Mapping[str, Track]:
        return self.store.live

    def has_next(self) -> bool:
        return self.feed.frame(self.frame_index) is not None

    def tick(self) -> FrameResult:
        """Ingest the frame at the current counter and advance it."""
        record = self.feed.frame(self.frame_index)
        if record is None:
            raise FrameNotFoundError(f"feed has no frame {self.frame_index}")
        return self.ingest(self.frame_index, record)

    def seek(self, frame_index: int) -> bool:
        """Jump the frame counter (scrubbing). Ignored while a tick is in flight."""
        if self._ingesting:
            logger.debug("Seek to %d ignored: ingestion in progress", frame_index)
            return False
        self.frame_index = frame_index
        return True

    def ingest(self, frame_index: int, record: FrameRecord) -> FrameResult:
        if self._ingesting:
            raise PipelineBusyError("an ingestion tick is already in flight")
        self._ingesting = True
        try:
            result = self._ingest(frame_index, record)
        except BaseException:
            # Undo the partial frame so a retry starts clean.
            self.store.abort_frame()
            raise
        finally:
            self._ingesting = False
        self._logged_frame = None
        self.frame_index = frame_index + 1
        return result

    def _ingest(self, frame_index: int, record: FrameRecord) -> FrameResult:
        result = FrameResult(frame_index=frame_index)

        # 1. Confidence filter
        current = filter_detections(record.objects, self.settings.confidence_threshold)

        # 2. Raw camera position side log, once per frame even if a prior attempt aborted
        if self.metadata_log is not None and self._logged_frame != frame_index:
            self.metadata_log.append(record.raw_est_lat, record.raw_est_lon)
            self._logged_frame = frame_index

        # 3. Retire tracks that dropped out
        self.store.begin_frame(frame_index)
        for track_id in [tid for tid in self.store.live if tid not in current]:
            self.store.retire(track_id)
            result.retired.append(track_id)

        camera = self._camera_planar(record)

        # 4. Geocode + lifecycle per object
        for track_id, det in current.items():
            screen_point, local_point, geodetic, error = self._locate(frame_index, det, camera)
            if error is not None:
                logger.warning("Frame %d track %s: %s", frame_index, track_id, error)
                result.failed[track_id] = error
            continuing = track_id in self.store.live
            self.store.observe(track_id, det, screen_point, local_point=local_point, geodetic=geodetic)
            (result.continued if continuing else result.created).append(track_id)

        # 5. Current becomes previous
        self.store.commit()
        logger.debug(
            "Frame %d: %d live, %d created, %d retired, %d failed",
            frame_index, len(current), len(result.created), len(result.retired), len(result.failed),
        )
        return result

    def _camera_planar(self, record: FrameRecord) -> PlanarPoint | str:
        try:
            lat = parse_ddm(record.est_lat)
            lon = parse_ddm(record.est_lon)
            return self.projection.project(lat, lon)
        except (GeoTrackError, ValueError, ZeroDivisionError, OverflowError) as e:
            return f"camera position ({record.est_lat}, {record.est_lon}) unusable: {e}"

    def _locate(
        self,
        frame_index: int,
        det: Detection,
        camera: PlanarPoint | str,
    ) -> tuple[Vec3, Optional[Vec3], Optional[GeodeticPoint], Optional[str]]:
        """Screen point, camera-local point and geodetic position for one detection.

        Errors are returned, not raised, so one bad detection does not block
        the rest of the frame.
        """
        s = self.settings
        mid_x, mid_y = scaled_centroid(det.box, s.x_ratio, s.y_ratio)
        display_x = mid_x * s.display_width / s.depth_width
        display_y = s.display_height - (mid_y * s.display_height / s.depth_height)

        try:
            distance = self.depth.sample(frame_index - FIRST_FEED_FRAME, mid_x, mid_y)
        except GeoTrackError as e:
            return (display_x, display_y, 0.0), None, None, f"depth sample failed: {e}"

        screen_point = (display_x, display_y, distance)
        try:
            local_point = tuple(self.unproject(screen_point))
        except PipelineBusyError:
            raise
        except Exception as e:
            return screen_point, None, None, f"unprojection failed: {e}"
        if isinstance(camera, str):
            return screen_point, local_point, None, camera

        try:
            # Local x axis is left-handed relative to planar east.
            geodetic = self.projection.inverse_project(
                -(local_point[0] + camera.x),
                local_point[2] + camera.y,
                epsilon=s.epsilon,
                max_iterations=s.max_iterations,
            )
        except (GeoTrackError, OverflowError) as e:
            return screen_point, local_point, None, f"inverse projection failed: {e}"
        return screen_point, local_point, geodetic, None

    def interpolate(self) -> int:
        """Lerp continuing tracks toward this frame's positions."""
        if self._ingesting:
            return 0
        return self.store.interpolate(self.settings.lerp_speed)

    def close(self) -> None:
        self.store.clear()
