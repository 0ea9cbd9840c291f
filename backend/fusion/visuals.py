"""Headless visual-handle registry for replay and tests."""
from __future__ import annotations

import itertools
import logging
from typing import Callable, Dict

from tracking.types import Vec3

logger = logging.getLogger(__name__)


class InMemoryVisuals:
    """Keeps one position per handle; new handles start at the unprojected screen point."""

    def __init__(self, unproject: Callable[[Vec3], Vec3]):
        self._unproject = unproject
        self._ids = itertools.count(1)
        self.positions: Dict[int, Vec3] = {}
        self.labels: Dict[int, str] = {}
        self.created = 0
        self.destroyed = 0

    def create(self, class_label: str, screen_point: Vec3) -> int:
        handle = next(self._ids)
        self.positions[handle] = self._unproject(screen_point)
        self.labels[handle] = class_label
        self.created += 1
        return handle

    def destroy(self, handle: int) -> None:
        if handle not in self.positions:
            logger.warning("Destroy requested for unknown handle %s", handle)
            return
        self.positions.pop(handle)
        self.labels.pop(handle, None)
        self.destroyed += 1

    def get_position(self, handle: int) -> Vec3:
        return self.positions[handle]

    def set_position(self, handle: int, position: Vec3) -> None:
        if handle not in self.positions:
            raise KeyError(handle)
        self.positions[handle] = position
