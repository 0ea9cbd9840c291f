"""
Internal data structures for the track store.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Protocol, Tuple

from projection import GeodeticPoint

Vec3 = Tuple[float, float, float]


class TrackState(str, Enum):
    ABSENT = "absent"
    CREATED = "created"
    CONTINUING = "continuing"
    STALE = "stale"


class VisualHandles(Protocol):
    """Host-side visual representations. Handles are opaque to the store."""

    def create(self, class_label: str, screen_point: Vec3) -> Any: ...

    def destroy(self, handle: Any) -> None: ...

    def get_position(self, handle: Any) -> Vec3: ...

    def set_position(self, handle: Any, position: Vec3) -> None: ...


@dataclass(frozen=True)
class TrackSnapshot:
    """Immutable copy of a track as it was when recorded."""
    track_id: str
    class_label: str
    box: Tuple[float, float, float, float]
    score: float
    frame_index: int
    geodetic: Optional[GeodeticPoint]
    local_point: Optional[Vec3]


@dataclass
class Track:
    """A live track. Owned exclusively by the TrackStore."""
    track_id: str
    class_label: str
    box: List[float]
    score: float
    handle: Any
    screen_point: Vec3
    first_seen_frame: int
    last_seen_frame: int
    geodetic: Optional[GeodeticPoint] = None
    local_point: Optional[Vec3] = None
    state: TrackState = TrackState.CREATED
    frames_seen: int = field(default=1)

    def snapshot(self) -> TrackSnapshot:
        return TrackSnapshot(
            track_id=self.track_id,
            class_label=self.class_label,
            box=tuple(self.box),
            score=self.score,
            frame_index=self.last_seen_frame,
            geodetic=self.geodetic,
            local_point=self.local_point,
        )
