"""Per-frame track lifecycle: create, continue, retire, interpolate."""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from common.exceptions import DuplicateTrackError, TrackNotFoundError
from common.types import Detection
from projection import GeodeticPoint
from .types import Track, TrackSnapshot, TrackState, Vec3, VisualHandles

logger = logging.getLogger(__name__)


def lerp(start: Vec3, end: Vec3, t: float) -> Vec3:
    t = min(max(t, 0.0), 1.0)
    return tuple((t * e) + ((1.0 - t) * s) for s, e in zip(start, end))


class TrackStore:
    """Owns live tracks for the previous and in-progress frame.

    Frame protocol (single writer):
        begin_frame(n) -> retire(...) / observe(...) -> commit()

    - `previous` holds the tracks committed by the last frame.
    - `current` is filled by `observe` and becomes `previous` on `commit`.
    - An id is in `current` at most once.
    - Visual handles are requested and released through `visuals`; the
      store never owns the underlying resource.
    """

    def __init__(self, visuals: VisualHandles):
        self._visuals = visuals
        self._previous: Dict[str, Track] = {}
        self._current: Dict[str, Track] = {}
        self._history: Dict[str, List[TrackSnapshot]] = {}
        self._pairs: Dict[str, Tuple[Vec3, Vec3]] = {}
        self._frame_index: int | None = None

    @property
    def live(self) -> Mapping[str, Track]:
        """Tracks committed by the last frame."""
        return MappingProxyType(self._previous)

    @property
    def current(self) -> Mapping[str, Track]:
        return MappingProxyType(self._current)

    @property
    def history(self) -> Mapping[str, List[TrackSnapshot]]:
        return MappingProxyType(self._history)

    @property
    def interpolation_pairs(self) -> Mapping[str, Tuple[Vec3, Vec3]]:
        return MappingProxyType(self._pairs)

    def state_of(self, track_id: str) -> TrackState:
        track = self._current.get(track_id) or self._previous.get(track_id)
        return track.state if track is not None else TrackState.ABSENT

    def begin_frame(self, frame_index: int) -> None:
        self._frame_index = frame_index
        self._current = {}
        self._pairs.clear()

    def retire(self, track_id: str) -> Track:
        """Release the handle of a track that disappeared this frame."""
        track = self._previous.get(track_id)
        if track is None:
            raise TrackNotFoundError(track_id)

        track.state = TrackState.STALE
        if track.handle is not None:
            self._visuals.destroy(track.handle)
            track.handle = None
        del self._previous[track_id]
        logger.debug("Retired track %s (last seen frame %d)", track_id, track.last_seen_frame)
        return track

    def observe(
        self,
        track_id: str,
        detection: Detection,
        screen_point: Vec3,
        local_point: Optional[Vec3] = None,
        geodetic: Optional[GeodeticPoint] = None,
    ) -> Track:
        """Record a detection for this frame and run its lifecycle transition."""
        if self._frame_index is None:
            raise RuntimeError("begin_frame() must be called before observe()")
        if track_id in self._current:
            raise DuplicateTrackError(f"track {track_id} observed twice in frame {self._frame_index}")

        prior = self._previous.get(track_id)
        if prior is not None:
            track = Track(
                track_id=track_id,
                class_label=detection.class_label,
                box=list(detection.box),
                score=detection.score,
                handle=prior.handle,
                screen_point=screen_point,
                first_seen_frame=prior.first_seen_frame,
                last_seen_frame=self._frame_index,
                geodetic=geodetic,
                local_point=local_point,
                state=TrackState.CONTINUING,
                frames_seen=prior.frames_seen + 1,
            )
            if prior.local_point is not None and local_point is not None:
                self._pairs[track_id] = (prior.local_point, local_point)
        else:
            handle = self._visuals.create(detection.class_label, screen_point)
            track = Track(
                track_id=track_id,
                class_label=detection.class_label,
                box=list(detection.box),
                score=detection.score,
                handle=handle,
                screen_point=screen_point,
                first_seen_frame=self._frame_index,
                last_seen_frame=self._frame_index,
                geodetic=geodetic,
                local_point=local_point,
            )
            self._history.setdefault(track_id, []).append(track.snapshot())
            logger.debug("Created track %s (%s) at frame %d", track_id, track.class_label, self._frame_index)

        self._current[track_id] = track
        return track

    def commit(self) -> None:
        """Make this frame's tracks the reference for the next frame."""
        self._previous = self._current
        self._current = {}

    def abort_frame(self) -> None:
        """Drop the in-progress frame, releasing handles it created.

        Continuing tracks share their handle with `previous`, so only
        tracks created this frame are destroyed.
        """
        for track in self._current.values():
            if track.state is TrackState.CREATED and track.handle is not None:
                self._visuals.destroy(track.handle)
                track.handle = None
        if self._current:
            logger.warning("Aborted frame %s with %d partial tracks", self._frame_index, len(self._current))
        self._current = {}
        self._pairs.clear()

    def interpolate(self, lerp_speed: float) -> int:
        """Move each continuing track's handle toward its new position.

        Targets stay fixed until the next frame, so repeated calls converge
        on the same point. Returns the number of handles moved.
        """
        moved = 0
        for track_id, (_, target) in self._pairs.items():
            track = self._previous.get(track_id) or self._current.get(track_id)
            if track is None or track.handle is None:
                continue
            position = self._visuals.get_position(track.handle)
            self._visuals.set_position(track.handle, lerp(position, target, lerp_speed))
            moved += 1
        return moved

    def clear(self) -> None:
        """Release every live handle (used on shutdown)."""
        released = set()
        for track in list(self._previous.values()) + list(self._current.values()):
            if track.handle is not None and id(track.handle) not in released:
                released.add(id(track.handle))
                self._visuals.destroy(track.handle)
            track.handle = None
        self._previous = {}
        self._current = {}
        self._pairs.clear()
