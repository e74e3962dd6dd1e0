"""Tests for frames, slant range and zenith angle."""
from __future__ import annotations

import math
from datetime import datetime, timezone

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from satpass.core.geometry import (
    SurfacePoint,
    ecef_to_geodetic,
    evaluate,
    gmst,
    ground_distance_km,
    normalize_longitude,
    slant_geometry,
    teme_to_ecef,
)
from satpass.core.propagation import SatelliteState, julian_date


T0 = datetime(2024, 2, 14, 13, 10, tzinfo=timezone.utc)


def _state_from_ecef(ecef: np.ndarray, t: datetime = T0) -> SatelliteState:
    """Place a satellite at an Earth-fixed position by undoing the GMST rotation."""
    jd, fr = julian_date(t)
    teme = Rotation.from_euler("z", float(gmst(jd, fr))).apply(ecef)
    return SatelliteState(position_km=teme, velocity_km_s=np.zeros(3), epoch=t)


class TestNormalizeLongitude:
    @pytest.mark.parametrize("lon, expected", [
        (-30.0, 330.0),
        (370.0, 10.0),
        (360.0, 0.0),
        (0.0, 0.0),
        (-180.0, 180.0),
        (275.2, 275.2),
        (-720.5, 359.5),
    ])
    def test_values(self, lon: float, expected: float) -> None:
        assert normalize_longitude(lon) == pytest.approx(expected)

    def test_idempotent(self) -> None:
        for lon in np.linspace(-1000.0, 1000.0, 97):
            once = normalize_longitude(float(lon))
            assert 0.0 <= once < 360.0
            assert normalize_longitude(once) == once

    def test_surface_point_normalizes(self) -> None:
        assert SurfacePoint(20.0, -84.8).longitude_deg == pytest.approx(275.2)


def test_gmst_at_j2000():
    assert math.degrees(float(gmst(2451545.0, 0.0))) == pytest.approx(280.46061837, abs=1e-6)


def test_teme_to_ecef_rotates_each_sample_by_its_own_angle():
    jd = np.full(3, 2460355.5)
    fr = np.array([0.0, 0.1, 0.25])
    positions = np.array([[7000.0, 0.0, 0.0], [0.0, 7000.0, 100.0], [5000.0, 5000.0, -300.0]])

    ecef = teme_to_ecef(positions, jd, fr)

    assert ecef.shape == (3, 3)
    for pos, out, theta in zip(positions, ecef, gmst(jd, fr)):
        c, s = math.cos(theta), math.sin(theta)
        expected = [c * pos[0] + s * pos[1], -s * pos[0] + c * pos[1], pos[2]]
        np.testing.assert_allclose(out, expected, atol=1e-9)


def test_surface_point_on_ellipsoid():
    lat, lon, height = ecef_to_geodetic(SurfacePoint(45.0, 10.0).ecef_km())
    assert lat == pytest.approx(45.0, abs=1e-9)
    assert lon == pytest.approx(10.0, abs=1e-9)
    assert height == pytest.approx(0.0, abs=1e-6)


def test_up_is_unit_normal():
    up = SurfacePoint(-33.0, 151.0).up()
    assert np.linalg.norm(up) == pytest.approx(1.0)


class TestEvaluate:
    def test_directly_overhead(self) -> None:
        point = SurfacePoint(25.0, 280.0)
        state = _state_from_ecef(point.ecef_km() + 700.0 * point.up())

        geometry = evaluate(state, point)
        assert geometry.slant_range_km == pytest.approx(700.0, abs=1e-6)
        assert geometry.zenith_deg == pytest.approx(0.0, abs=1e-4)

    def test_on_horizon(self) -> None:
        point = SurfacePoint(0.0, 0.0)
        # Up is +x at (0, 0); +y is tangent to the surface.
        state = _state_from_ecef(point.ecef_km() + np.array([0.0, 2000.0, 0.0]))

        geometry = evaluate(state, point)
        assert geometry.slant_range_km == pytest.approx(2000.0, abs=1e-6)
        assert geometry.zenith_deg == pytest.approx(90.0, abs=1e-6)

    def test_far_side_of_earth(self) -> None:
        point = SurfacePoint(0.0, 0.0)
        state = _state_from_ecef(np.array([-7000.0, 0.0, 0.0]))

        geometry = evaluate(state, point)
        assert geometry.slant_range_km == pytest.approx(7000.0 + point.ecef_km()[0], abs=1e-6)
        assert geometry.zenith_deg == pytest.approx(180.0, abs=1e-6)

    def test_earth_rotation_is_applied(self) -> None:
        point = SurfacePoint(0.0, 90.0)
        overhead = _state_from_ecef(point.ecef_km() + 700.0 * point.up())
        # Same TEME position one hour later: the ground point has rotated away.
        later = SatelliteState(
            position_km=overhead.position_km,
            velocity_km_s=overhead.velocity_km_s,
            epoch=datetime(2024, 2, 14, 14, 10, tzinfo=timezone.utc),
        )
        assert evaluate(later, point).zenith_deg > 10.0


def test_zenith_bounds_random_geometry():
    rng = np.random.default_rng(7)
    n = 500
    directions = rng.normal(size=(n, 3))
    directions /= np.linalg.norm(directions, axis=1)[:, None]
    positions = directions * rng.uniform(6700.0, 42164.0, size=(n, 1))
    jd, fr = julian_date(T0)

    for lat, lon in rng.uniform([-90.0, -180.0], [90.0, 540.0], size=(20, 2)):
        ranges, zenith = slant_geometry(positions, np.full(n, jd), np.full(n, fr), SurfacePoint(lat, lon))
        assert np.all(ranges > 0.0)
        assert np.all((zenith >= 0.0) & (zenith <= 180.0))


def test_ground_distance_one_degree_at_equator():
    assert ground_distance_km(0.0, 0.0, 0.0, 1.0) == pytest.approx(111.32, abs=0.01)


def test_ground_distance_across_seam():
    assert ground_distance_km(10.0, 359.5, 10.0, 0.5) == pytest.approx(
        ground_distance_km(10.0, -0.5, 10.0, 0.5)
    )
