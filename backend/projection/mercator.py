"""
Ellipsoidal Mercator projection.

Forward and inverse transforms between geodetic (lat, lon) in decimal degrees
and planar (x, y) in metres, referenced to an ellipsoid and a central meridian.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from common.exceptions import DidNotConvergeError, InvalidArgumentError, MalformedInputError

logger = logging.getLogger(__name__)

WGS84_SEMIMAJOR = 6378137.0
WGS84_SEMIMINOR = 6356752.31424518
DEFAULT_EPSILON = 0.00001
DEFAULT_MAX_ITERATIONS = 100


@dataclass(frozen=True)
class GeodeticPoint:
    latitude: float   # decimal degrees
    longitude: float  # decimal degrees


@dataclass(frozen=True)
class PlanarPoint:
    x: float  # metres east of the central meridian
    y: float  # metres north of the equator


@dataclass(frozen=True)
class EllipsoidModel:
    """Reference ellipsoid plus central meridian (degrees).

    Eccentricity is derived from the axes and cannot be passed in.
    """
    semimajor: float = WGS84_SEMIMAJOR
    semiminor: float = WGS84_SEMIMINOR
    central_meridian: float = 0.0
    eccentricity: float = field(init=False)

    def __post_init__(self):
        if self.semimajor <= 0 or self.semiminor <= 0 or self.semiminor > self.semimajor:
            raise InvalidArgumentError(
                f"invalid ellipsoid axes a={self.semimajor}, b={self.semiminor}"
            )
        # e = sqrt(1 - b^2 / a^2)
        ecc = math.sqrt(1.0 - (self.semiminor * self.semiminor) / (self.semimajor * self.semimajor))
        object.__setattr__(self, "eccentricity", ecc)


class MercatorProjection:
    """Projects between geodetic and planar coordinates on one ellipsoid."""

    def __init__(self, model: EllipsoidModel | None = None):
        self.model = model or EllipsoidModel()

    @property
    def semimajor(self) -> float:
        return self.model.semimajor

    @property
    def eccentricity(self) -> float:
        return self.model.eccentricity

    @property
    def central_meridian(self) -> float:
        return self.model.central_meridian

    def project(self, lat: float, lon: float) -> PlanarPoint:
        """
        Forward transform of (lat, lon) in decimal degrees.

        Defined for |lat| < 90; the poles map to infinity.
        """
        a = self.model.semimajor
        e = self.model.eccentricity
        sin_phi = math.sin(math.radians(lat))

        x = a * math.radians(lon - self.model.central_meridian)
        y = a / 2.0 * math.log(
            ((1.0 + sin_phi) / (1.0 - sin_phi))
            * ((1.0 - e * sin_phi) / (1.0 + e * sin_phi)) ** e
        )
        return PlanarPoint(x=x, y=y)

    def inverse_project(
        self,
        x: float,
        y: float,
        epsilon: float = DEFAULT_EPSILON,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> GeodeticPoint:
        """
        Recover (lat, lon) from planar coordinates.

        Latitude is found by fixed-point iteration until two successive
        estimates differ by at most `epsilon` radians.

        Raises:
            InvalidArgumentError: epsilon is not positive.
            DidNotConvergeError: no convergence within `max_iterations` steps.
        """
        if epsilon <= 0:
            raise InvalidArgumentError("epsilon must be positive")
        if max_iterations <= 0:
            raise InvalidArgumentError("max_iterations must be positive")

        a = self.model.semimajor
        e = self.model.eccentricity
        lon = x / a + math.radians(self.model.central_meridian)
        t = math.exp(-y / a)

        phi = math.pi / 2.0 - 2.0 * math.atan(t)
        for _ in range(max_iterations):
            sin_phi = math.sin(phi)
            next_phi = math.pi / 2.0 - 2.0 * math.atan(
                t * ((1.0 - e * sin_phi) / (1.0 + e * sin_phi)) ** (e / 2.0)
            )
            if abs(next_phi - phi) <= epsilon:
                return GeodeticPoint(latitude=math.degrees(next_phi), longitude=math.degrees(lon))
            phi = next_phi

        logger.warning(
            "Inverse projection of (%.3f, %.3f) did not converge in %d iterations (epsilon=%g)",
            x, y, max_iterations, epsilon,
        )
        raise DidNotConvergeError(
            f"latitude did not converge to {epsilon} within {max_iterations} iterations"
        )


def ddm_to_dd(value: float) -> float:
    """Convert degree-minutes (DDMM.mmmm) to decimal degrees.

    Total and unchecked; use `parse_ddm` for untrusted input.
    """
    degrees = math.floor(value / 100.0)
    minutes = value - degrees * 100.0
    return degrees + minutes / 60.0


def parse_ddm(value: float) -> float:
    """Validated `ddm_to_dd`. Negative values are treated as south / west."""
    if not math.isfinite(value):
        raise MalformedInputError(f"ddm value must be finite, got {value!r}")
    magnitude = abs(value)
    minutes = magnitude - math.floor(magnitude / 100.0) * 100.0
    if minutes >= 60.0:
        raise MalformedInputError(f"{value!r} is not DDMM.mmmm (minutes field {minutes:.4f} >= 60)")
    dd = ddm_to_dd(magnitude)
    if dd > 180.0:
        raise MalformedInputError(f"{value!r} is out of range for a coordinate ({dd:.6f} degrees)")
    return -dd if value < 0 else dd
