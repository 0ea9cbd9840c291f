# camera.py
import math

from pydantic import BaseModel

from tracking.types import Vec3


class CameraConfig(BaseModel):
    display_width: int = 1280
    display_height: int = 720
    h_fov_deg: float = 90.0
    v_fov_deg: float = 60.0


class PinholeUnprojector:
    """Screen point (origin bottom-left, z = distance) -> camera-local 3D point.

    Local axes: x right, y up, z forward along the optical axis.
    """

    def __init__(self, cam_cfg: CameraConfig | None = None):
        self.cam_cfg = cam_cfg or CameraConfig()
        self._tan_half_h = math.tan(math.radians(self.cam_cfg.h_fov_deg) / 2)
        self._tan_half_v = math.tan(math.radians(self.cam_cfg.v_fov_deg) / 2)

    def __call__(self, screen_point: Vec3) -> Vec3:
        sx, sy, depth = screen_point
        ndc_x = (sx / self.cam_cfg.display_width) * 2.0 - 1.0
        ndc_y = (sy / self.cam_cfg.display_height) * 2.0 - 1.0
        return (
            ndc_x * self._tan_half_h * depth,
            ndc_y * self._tan_half_v * depth,
            depth,
        )
