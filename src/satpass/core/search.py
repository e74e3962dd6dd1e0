"""Closest-approach search: when does the satellite pass nearest a storm fix?"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import numpy as np

from satpass.core.geometry import (
    SurfacePoint,
    evaluate,
    ground_distance_km,
    slant_geometry,
    subsatellite_point,
)
from satpass.core.propagation import Orbit
from satpass.core.tle import ElementSet
from satpass.utils.constants import (
    DEFAULT_COARSE_STEP_S,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TOLERANCE_S,
)

if TYPE_CHECKING:
    from satpass.data.bdeck import Fix

logger = logging.getLogger(__name__)

# Refinement bracket, in units of the halved step.
_REFINE_STENCIL = np.arange(-2, 3, dtype=np.float64)


@dataclass
class ClosestApproach:
    """Minimum slant range between a satellite and a fix within a window.

    Attributes:
        norad_id: Satellite that was searched.
        time: Time of closest approach (UTC).
        offset_s: Seconds from the fix time to the closest approach.
        distance_km: Slant range at closest approach in km.
        zenith_deg: Satellite zenith angle seen from the fix at that time.
        subsatellite_lat_deg: Geodetic latitude of the nadir point.
        subsatellite_lon_deg: Longitude of the nadir point, [0, 360).
        ground_distance_km: Geodesic distance from the fix to the nadir point.
    """

    norad_id: int
    time: datetime
    offset_s: float
    distance_km: float
    zenith_deg: float
    subsatellite_lat_deg: float
    subsatellite_lon_deg: float
    ground_distance_km: float


def _slant_ranges(orbit: Orbit, base_time: datetime, offsets: np.ndarray, point: SurfacePoint) -> np.ndarray:
    eph = orbit.propagate_offsets(base_time, offsets)
    ranges, _ = slant_geometry(eph.position_km, eph.jd, eph.fr, point)
    return ranges


def search(
    elements: ElementSet | Orbit,
    fix: Fix,
    half_window_hours: float,
    *,
    coarse_step_s: float = DEFAULT_COARSE_STEP_S,
    tolerance_s: float = DEFAULT_TOLERANCE_S,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> ClosestApproach:
    """Find the time of minimum slant range around a fix.

    The window is ``[fix.time - half_window_hours, fix.time + half_window_hours]``,
    both ends inclusive. Two stages:

    1. Coarse sampling at evenly spaced instants (spacing at most
       ``coarse_step_s``) covering both window ends.
    2. Refinement by repeated halving: each pass resamples the bracket of
       one previous step either side of the current best, clipped to the
       window, until the step drops to ``tolerance_s`` or
       ``max_iterations`` passes have run.

    The current best is always one of the refined samples, so the
    reported distance never exceeds the best coarse sample.

    Args:
        elements: Element set, or an :class:`Orbit` already built from one.
        fix: Storm fix (time, latitude, longitude).
        half_window_hours: Half-width of the search window in hours.
        coarse_step_s: Maximum coarse sample spacing in seconds.
        tolerance_s: Target time resolution in seconds.
        max_iterations: Cap on refinement passes.

    Returns:
        The closest approach found.

    Raises:
        PropagationDegenerate: If the elements cannot be propagated
            anywhere in the window.
    """
    orbit = elements if isinstance(elements, Orbit) else Orbit(elements)
    point = SurfacePoint(fix.latitude_deg, fix.longitude_deg)

    half_s = half_window_hours * 3600.0
    n_samples = int(math.ceil(2.0 * half_s / coarse_step_s)) + 1
    offsets = np.linspace(-half_s, half_s, n_samples)
    step = 2.0 * half_s / (n_samples - 1) if n_samples > 1 else 0.0

    ranges = _slant_ranges(orbit, fix.time, offsets, point)
    i = int(np.argmin(ranges))
    best_offset, best_range = float(offsets[i]), float(ranges[i])
    logger.debug(
        "NORAD %d coarse minimum %.1f km at %+.0f s (%d samples)",
        orbit.norad_id, best_range, best_offset, n_samples,
    )

    iterations = 0
    while step > tolerance_s and iterations < max_iterations:
        step /= 2.0
        candidates = np.clip(best_offset + _REFINE_STENCIL * step, -half_s, half_s)
        ranges = _slant_ranges(orbit, fix.time, candidates, point)
        i = int(np.argmin(ranges))
        if ranges[i] < best_range:
            best_offset, best_range = float(candidates[i]), float(ranges[i])
        iterations += 1

    tca = fix.time + timedelta(seconds=best_offset)
    state = orbit.state_at(tca)
    geometry = evaluate(state, point)
    sub_lat, sub_lon, _ = subsatellite_point(state)

    result = ClosestApproach(
        norad_id=orbit.norad_id,
        time=tca,
        offset_s=best_offset,
        distance_km=geometry.slant_range_km,
        zenith_deg=geometry.zenith_deg,
        subsatellite_lat_deg=sub_lat,
        subsatellite_lon_deg=sub_lon,
        ground_distance_km=ground_distance_km(
            point.latitude_deg, point.longitude_deg, sub_lat, sub_lon
        ),
    )
    logger.debug(
        "NORAD %d closest approach %.1f km, zenith %.1f deg at %s after %d refinements",
        orbit.norad_id, result.distance_km, result.zenith_deg, tca.isoformat(), iterations,
    )
    return result
