"""Ellipsoidal Mercator projection and coordinate helpers."""
from .mercator import (
    EllipsoidModel,
    GeodeticPoint,
    MercatorProjection,
    PlanarPoint,
    ddm_to_dd,
    parse_ddm,
)

__all__ = [
    "EllipsoidModel",
    "GeodeticPoint",
    "MercatorProjection",
    "PlanarPoint",
    "ddm_to_dd",
    "parse_ddm",
]
