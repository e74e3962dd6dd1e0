"""Satellite-to-surface geometry on the WGS-84 ellipsoid.

The satellite is propagated in the TEME frame. Before comparing it with a
point on the ground it is rotated into an Earth-fixed frame by the
Greenwich mean sidereal time of the sample (UT1 taken as UTC, polar motion
ignored). The ground point, its local vertical, the sub-satellite point and
ground distances all use the same WGS-84 oblate spheroid.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray
from pyproj import Geod
from scipy.spatial.transform import Rotation

from satpass.core.propagation import SatelliteState, julian_date
from satpass.utils.constants import EARTH_E2, EARTH_RADIUS_KM, JD_J2000

_GEOD = Geod(ellps="WGS84")


def normalize_longitude(lon: float) -> float:
    """Map a longitude in degrees onto [0, 360)."""
    lon = math.fmod(lon, 360.0)
    if lon < 0.0:
        lon += 360.0
    # fmod of a tiny negative value can round up to exactly 360
    return 0.0 if lon >= 360.0 else lon


@dataclass(frozen=True)
class SurfacePoint:
    """A point at sea level, latitude geodetic, longitude degrees east."""

    latitude_deg: float
    longitude_deg: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "longitude_deg", normalize_longitude(self.longitude_deg))

    def ecef_km(self) -> NDArray[np.float64]:
        lat = math.radians(self.latitude_deg)
        lon = math.radians(self.longitude_deg)
        n = EARTH_RADIUS_KM / math.sqrt(1.0 - EARTH_E2 * math.sin(lat) ** 2)
        return np.array([
            n * math.cos(lat) * math.cos(lon),
            n * math.cos(lat) * math.sin(lon),
            n * (1.0 - EARTH_E2) * math.sin(lat),
        ])

    def up(self) -> NDArray[np.float64]:
        """Unit outward normal to the ellipsoid."""
        lat = math.radians(self.latitude_deg)
        lon = math.radians(self.longitude_deg)
        return np.array([
            math.cos(lat) * math.cos(lon),
            math.cos(lat) * math.sin(lon),
            math.sin(lat),
        ])


@dataclass
class Geometry:
    """Line-of-sight geometry between a satellite and a surface point.

    Attributes:
        slant_range_km: Straight-line distance in km.
        zenith_deg: Angle from local vertical to the satellite; 0 overhead,
            90 on the horizon.
    """

    slant_range_km: float
    zenith_deg: float


def gmst(jd: ArrayLike, fr: ArrayLike) -> NDArray[np.float64]:
    """Greenwich mean sidereal time in radians (IAU-82)."""
    tut1 = ((np.asarray(jd, dtype=np.float64) - JD_J2000) + np.asarray(fr, dtype=np.float64)) / 36525.0
    seconds = (
        -6.2e-6 * tut1 ** 3
        + 0.093104 * tut1 ** 2
        + (876600.0 * 3600.0 + 8640184.812866) * tut1
        + 67310.54841
    )
    return np.mod(np.radians(seconds / 240.0), 2.0 * np.pi)


def teme_to_ecef(positions: ArrayLike, jd: ArrayLike, fr: ArrayLike) -> NDArray[np.float64]:
    """Rotate TEME positions, shape (n, 3), into the Earth-fixed frame."""
    theta = np.atleast_1d(gmst(jd, fr))
    return Rotation.from_euler("z", -theta[:, None]).apply(np.atleast_2d(positions))


def ecef_to_geodetic(position: ArrayLike) -> tuple[float, float, float]:
    """Earth-fixed position (km) to geodetic latitude, longitude [0, 360) and height (km)."""
    x, y, z = (float(c) for c in position)
    p = math.hypot(x, y)
    lon = math.degrees(math.atan2(y, x))
    lat = math.atan2(z, p * (1.0 - EARTH_E2))
    for _ in range(6):
        n = EARTH_RADIUS_KM / math.sqrt(1.0 - EARTH_E2 * math.sin(lat) ** 2)
        lat = math.atan2(z + EARTH_E2 * n * math.sin(lat), p)
    n = EARTH_RADIUS_KM / math.sqrt(1.0 - EARTH_E2 * math.sin(lat) ** 2)
    height = p * math.cos(lat) + z * math.sin(lat) - n * (1.0 - EARTH_E2 * math.sin(lat) ** 2)
    return math.degrees(lat), normalize_longitude(lon), height


def slant_geometry(
    positions_teme: ArrayLike,
    jd: ArrayLike,
    fr: ArrayLike,
    point: SurfacePoint,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Slant range (km) and zenith angle (deg) for many satellite samples.

    Args:
        positions_teme: TEME positions, shape (n, 3).
        jd: Whole Julian dates of the samples, shape (n,).
        fr: Julian date fractions of the samples, shape (n,).
        point: The ground point.

    Returns:
        Tuple of (slant_range_km, zenith_deg), each shape (n,).
    """
    sat = teme_to_ecef(positions_teme, jd, fr)
    line_of_sight = sat - point.ecef_km()
    ranges = np.linalg.norm(line_of_sight, axis=1)
    cos_zenith = (line_of_sight @ point.up()) / ranges
    zenith = np.degrees(np.arccos(np.clip(cos_zenith, -1.0, 1.0)))
    return ranges, zenith


def evaluate(state: SatelliteState, point: SurfacePoint) -> Geometry:
    """Slant range and zenith angle from ``point`` to the satellite.

    Earth rotation is taken at ``state.epoch``.
    """
    jd, fr = julian_date(state.epoch)
    ranges, zenith = slant_geometry(state.position_km, [jd], [fr], point)
    return Geometry(slant_range_km=float(ranges[0]), zenith_deg=float(zenith[0]))


def subsatellite_point(state: SatelliteState) -> tuple[float, float, float]:
    """Geodetic latitude, longitude and height (km) of the satellite."""
    jd, fr = julian_date(state.epoch)
    return ecef_to_geodetic(teme_to_ecef(state.position_km, [jd], [fr])[0])


def ground_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Geodesic distance on the WGS-84 ellipsoid in km."""
    _, _, dist_m = _GEOD.inv(lon1, lat1, lon2, lat2)
    return dist_m / 1000.0
