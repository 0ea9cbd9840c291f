"""Track lifecycle state and history."""
from .store import TrackStore
from .types import Track, TrackSnapshot, TrackState, Vec3, VisualHandles

__all__ = ["Track", "TrackSnapshot", "TrackState", "TrackStore", "Vec3", "VisualHandles"]
