"""Orbital propagation via SGP4."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone

import numpy as np
from numpy.typing import NDArray
from sgp4.api import SGP4_ERRORS, Satrec, WGS72, jday

from satpass.core.tle import ElementSet
from satpass.exceptions import PropagationDegenerate
from satpass.utils.constants import EARTH_RADIUS_KM, SECONDS_PER_DAY, XPDOTP

logger = logging.getLogger(__name__)

_SGP4_EPOCH_ORIGIN = datetime(1949, 12, 31, tzinfo=timezone.utc)


@dataclass
class SatelliteState:
    """Position and velocity in TEME frame.

    Attributes:
        position_km: [x, y, z] position in km.
        velocity_km_s: [vx, vy, vz] velocity in km/s.
        epoch: Time of this state vector.
    """

    position_km: NDArray[np.float64]  # shape (3,)
    velocity_km_s: NDArray[np.float64]  # shape (3,)
    epoch: datetime


@dataclass
class Ephemeris:
    """States sampled at offsets from a base time.

    Attributes:
        offsets_s: Seconds from the base time, shape (n,).
        jd: Whole Julian date of each sample, shape (n,).
        fr: Julian date fraction of each sample, shape (n,).
        position_km: TEME positions, shape (n, 3).
        velocity_km_s: TEME velocities, shape (n, 3).
    """

    offsets_s: NDArray[np.float64]
    jd: NDArray[np.float64]
    fr: NDArray[np.float64]
    position_km: NDArray[np.float64]
    velocity_km_s: NDArray[np.float64]


def julian_date(t: datetime) -> tuple[float, float]:
    """Split a datetime into the (jd, fr) pair sgp4 expects."""
    if t.tzinfo is not None:
        t = t.astimezone(timezone.utc)
    return jday(t.year, t.month, t.day, t.hour, t.minute, t.second + t.microsecond / 1e6)


def _element_problem(elements: ElementSet) -> str | None:
    values = (
        elements.inclination_deg, elements.raan_deg, elements.eccentricity,
        elements.arg_perigee_deg, elements.mean_anomaly_deg,
        elements.mean_motion_rev_per_day, elements.bstar,
    )
    if not all(math.isfinite(v) for v in values):
        return "non-finite orbital element"
    if not 0.0 <= elements.eccentricity < 1.0:
        return f"eccentricity {elements.eccentricity} outside [0, 1)"
    if elements.mean_motion_rev_per_day <= 0.0:
        return f"mean motion {elements.mean_motion_rev_per_day} rev/day is not positive"
    return None


class Orbit:
    """SGP4 model for one element set.

    The underlying ``Satrec`` carries every derived constant (secular
    rates, drag coefficients) and is initialized once; all queries reuse
    it without modification. Elements that cannot describe an orbit do
    not fail here: every propagation from them raises
    :class:`PropagationDegenerate`.

    Args:
        elements: The element set to model.
    """

    def __init__(self, elements: ElementSet) -> None:
        self.elements = elements
        self.problem = _element_problem(elements)
        self._satrec: Satrec | None = None

        if self.problem is None:
            epoch = elements.epoch
            if epoch.tzinfo is None:
                epoch = epoch.replace(tzinfo=timezone.utc)
            sat = Satrec()
            sat.sgp4init(
                WGS72,
                "i",
                elements.norad_id,
                (epoch - _SGP4_EPOCH_ORIGIN).total_seconds() / SECONDS_PER_DAY,
                elements.bstar,
                elements.mean_motion_dot / (XPDOTP * 1440.0),
                elements.mean_motion_ddot / (XPDOTP * 1440.0 * 1440.0),
                elements.eccentricity,
                math.radians(elements.arg_perigee_deg),
                math.radians(elements.inclination_deg),
                math.radians(elements.mean_anomaly_deg),
                elements.mean_motion_rev_per_day / XPDOTP,
                math.radians(elements.raan_deg),
            )
            if sat.error != 0:
                self.problem = f"initialization failed: {SGP4_ERRORS.get(sat.error, sat.error)}"
            self._satrec = sat

        if self.problem is not None:
            logger.warning("NORAD %d elements are degenerate: %s", elements.norad_id, self.problem)

    @property
    def norad_id(self) -> int:
        return self.elements.norad_id

    def _degenerate(self, reason: str) -> PropagationDegenerate:
        logger.warning("SGP4 propagation failed for NORAD %d: %s", self.norad_id, reason)
        return PropagationDegenerate(self.norad_id, reason)

    def _check(self, errors: NDArray, positions: NDArray, when: str) -> None:
        bad = np.flatnonzero(errors != 0)
        if bad.size:
            code = int(errors[bad[0]])
            raise self._degenerate(f"{SGP4_ERRORS.get(code, f'error code {code}')} {when}")
        if not np.all(np.isfinite(positions)):
            raise self._degenerate(f"non-finite position {when}")
        radius = np.linalg.norm(positions, axis=-1)
        if np.any(radius < EARTH_RADIUS_KM):
            raise self._degenerate(f"position below the Earth's surface {when}")

    def state_at(self, t: datetime) -> SatelliteState:
        """Propagate to a single time.

        Raises:
            PropagationDegenerate: If the elements are degenerate or SGP4
                yields a non-physical state at ``t``.
        """
        if self._satrec is None or self.problem is not None:
            raise self._degenerate(self.problem or "no SGP4 model")

        jd, fr = julian_date(t)
        error_code, pos, vel = self._satrec.sgp4(jd, fr)
        position = np.array(pos, dtype=np.float64)
        self._check(np.array([error_code]), position, f"at {t.isoformat()}")

        return SatelliteState(
            position_km=position,
            velocity_km_s=np.array(vel, dtype=np.float64),
            epoch=t,
        )

    def propagate_offsets(self, base_time: datetime, offsets_s: NDArray[np.float64]) -> Ephemeris:
        """Propagate to many offsets (seconds) from ``base_time`` in one call.

        Uses ``Satrec.sgp4_array`` for C-level batch propagation.

        Raises:
            PropagationDegenerate: If any sample is non-physical.
        """
        if self._satrec is None or self.problem is not None:
            raise self._degenerate(self.problem or "no SGP4 model")

        offsets_s = np.atleast_1d(np.asarray(offsets_s, dtype=np.float64))
        base_jd, base_fr = julian_date(base_time)
        jd = np.full(offsets_s.shape, base_jd)
        fr = base_fr + offsets_s / SECONDS_PER_DAY

        errors, positions, velocities = self._satrec.sgp4_array(jd, fr)
        self._check(
            np.asarray(errors), np.asarray(positions),
            f"within {offsets_s.min():+.0f}..{offsets_s.max():+.0f} s of {base_time.isoformat()}",
        )

        return Ephemeris(
            offsets_s=offsets_s,
            jd=jd,
            fr=fr,
            position_km=np.asarray(positions, dtype=np.float64),
            velocity_km_s=np.asarray(velocities, dtype=np.float64),
        )


def propagate(elements: ElementSet | Orbit, t: datetime) -> SatelliteState:
    """Propagate an element set to a single UTC time using SGP4.

    Args:
        elements: An element set, or an :class:`Orbit` already built from one.
        t: UTC datetime to propagate to; before or after the epoch.

    Returns:
        The satellite state at ``t``.

    Raises:
        PropagationDegenerate: If SGP4 cannot produce a physical state.
    """
    orbit = elements if isinstance(elements, Orbit) else Orbit(elements)
    return orbit.state_at(t)
