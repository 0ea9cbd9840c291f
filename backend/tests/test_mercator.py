"""Tests for the ellipsoidal Mercator projection and ddm conversion."""
from __future__ import annotations

import math

import pytest

from common.exceptions import DidNotConvergeError, InvalidArgumentError, MalformedInputError
from projection import EllipsoidModel, GeodeticPoint, MercatorProjection, ddm_to_dd, parse_ddm
from projection.geo_utils import distance_between


class TestEllipsoidModel:
    def test_wgs84_defaults(self):
        model = EllipsoidModel()
        assert model.semimajor == 6378137.0
        assert model.semiminor == 6356752.31424518
        assert model.central_meridian == 0.0
        assert model.eccentricity == pytest.approx(0.0818191908, abs=1e-9)

    def test_eccentricity_is_derived(self):
        model = EllipsoidModel(semimajor=2.0, semiminor=1.0)
        assert model.eccentricity == pytest.approx(math.sqrt(0.75))

    def test_eccentricity_cannot_be_passed(self):
        with pytest.raises(TypeError):
            EllipsoidModel(eccentricity=0.5)

    def test_immutable(self):
        model = EllipsoidModel()
        with pytest.raises(AttributeError):
            model.semimajor = 1.0

    def test_sphere_has_zero_eccentricity(self):
        assert EllipsoidModel(semimajor=10.0, semiminor=10.0).eccentricity == 0.0

    def test_rejects_inverted_axes(self):
        with pytest.raises(InvalidArgumentError):
            EllipsoidModel(semimajor=1.0, semiminor=2.0)


class TestForwardProjection:
    def test_origin_maps_to_zero(self):
        p = MercatorProjection().project(0.0, 0.0)
        assert p.x == 0.0
        assert p.y == 0.0

    def test_x_is_linear_in_longitude(self):
        proj = MercatorProjection()
        assert proj.project(0.0, 1.0).x == pytest.approx(6378137.0 * math.pi / 180.0)

    def test_central_meridian_offsets_x(self):
        proj = MercatorProjection(EllipsoidModel(central_meridian=10.0))
        assert proj.project(0.0, 10.0).x == pytest.approx(0.0)
        assert proj.project(0.0, 9.0).x < 0

    def test_y_is_antisymmetric(self):
        proj = MercatorProjection()
        assert proj.project(45.0, 0.0).y == pytest.approx(-proj.project(-45.0, 0.0).y)

    def test_known_value_at_45_north(self):
        # Ellipsoidal Mercator northing for 45N on WGS84
        assert MercatorProjection().project(45.0, 0.0).y == pytest.approx(5591295.92, abs=1.0)


class TestInverseProjection:
    @pytest.mark.parametrize(
        "lat, lon",
        [(0.0, 0.0), (45.5083, 10.5), (-33.9, 151.2), (60.0, -179.9), (88.9, 179.0), (-88.9, -0.001)],
    )
    def test_round_trip(self, lat, lon):
        proj = MercatorProjection()
        p = proj.project(lat, lon)
        g = proj.inverse_project(p.x, p.y, 1e-9)
        assert g.latitude == pytest.approx(lat, abs=1e-6)
        assert g.longitude == pytest.approx(lon, abs=1e-6)

    def test_round_trip_with_central_meridian(self):
        proj = MercatorProjection(EllipsoidModel(central_meridian=15.0))
        p = proj.project(59.9, 10.7)
        g = proj.inverse_project(p.x, p.y, 1e-9)
        assert g.latitude == pytest.approx(59.9, abs=1e-6)
        assert g.longitude == pytest.approx(10.7, abs=1e-6)

    @pytest.mark.parametrize("epsilon", [0.0, -1e-5])
    def test_nonpositive_epsilon_rejected(self, epsilon):
        with pytest.raises(InvalidArgumentError, match="positive"):
            MercatorProjection().inverse_project(0.0, 0.0, epsilon)

    def test_invalid_argument_is_value_error(self):
        with pytest.raises(ValueError):
            MercatorProjection().inverse_project(0.0, 0.0, 0.0)

    def test_iteration_budget_exhausted(self):
        # e > 0 needs more than one step to reach 1e-15 away from the equator.
        with pytest.raises(DidNotConvergeError):
            MercatorProjection().inverse_project(0.0, 5_000_000.0, 1e-15, max_iterations=1)

    def test_default_epsilon(self):
        g = MercatorProjection().inverse_project(0.0, 0.0)
        assert g.latitude == pytest.approx(0.0)
        assert g.longitude == pytest.approx(0.0)


class TestDdmToDd:
    def test_degrees_and_minutes(self):
        assert ddm_to_dd(4530.5) == pytest.approx(45.508333333, abs=1e-9)

    def test_whole_degrees(self):
        assert ddm_to_dd(1000.0) == 10.0

    def test_minutes_only(self):
        assert ddm_to_dd(30.0) == pytest.approx(0.5)

    def test_unchecked_for_malformed_input(self):
        # 99 minutes is not valid ddm but converts without complaint.
        assert ddm_to_dd(4599.0) == pytest.approx(46.65)


class TestParseDdm:
    def test_valid(self):
        assert parse_ddm(4530.5) == pytest.approx(45.508333333, abs=1e-9)

    def test_negative_is_south_or_west(self):
        assert parse_ddm(-4530.5) == pytest.approx(-45.508333333, abs=1e-9)

    def test_minutes_out_of_range(self):
        with pytest.raises(MalformedInputError, match="minutes"):
            parse_ddm(4575.0)

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_not_finite(self, value):
        with pytest.raises(MalformedInputError):
            parse_ddm(value)

    def test_too_many_degrees(self):
        with pytest.raises(MalformedInputError):
            parse_ddm(19000.0)


class TestDistanceBetween:
    def test_same_point(self):
        p = GeodeticPoint(45.5, 10.5)
        assert distance_between(p, p) == 0.0

    def test_one_degree_of_latitude(self):
        d = distance_between(GeodeticPoint(0.0, 0.0), GeodeticPoint(1.0, 0.0))
        assert d == pytest.approx(111195.0, abs=1.0)
