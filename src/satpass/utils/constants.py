from __future__ import annotations

"""Physical constants and default thresholds for pass searches.

All values in km / s / degrees unless otherwise noted.
"""

import math

# --- Earth parameters (WGS-84) ---
EARTH_RADIUS_KM: float = 6378.137
"""Equatorial radius of Earth in km."""

EARTH_FLATTENING: float = 1.0 / 298.257223563
"""WGS-84 flattening."""

EARTH_E2: float = EARTH_FLATTENING * (2.0 - EARTH_FLATTENING)
"""First eccentricity squared of the WGS-84 ellipsoid."""

XPDOTP: float = 1440.0 / (2.0 * math.pi)
"""Converts mean motion from rad/min to rev/day."""

# --- Time ---
SECONDS_PER_DAY: float = 86400.0

JD_J2000: float = 2451545.0

# --- Default search settings ---
DEFAULT_STEP_HOURS: float = 6.0
"""Full width of the search window centered on each fix, in hours."""

DEFAULT_MIN_INTENSITY_KT: float = 100.0
"""Minimum storm intensity for a reportable pass, in knots."""

DEFAULT_MAX_DISTANCE_KM: float = 1165.0
"""Maximum slant range for a reportable pass, in km."""

DEFAULT_COARSE_STEP_S: float = 10.0
"""Spacing of the coarse samples across the window, in seconds."""

DEFAULT_TOLERANCE_S: float = 0.5
"""Time resolution the refinement narrows down to, in seconds."""

DEFAULT_MAX_ITERATIONS: int = 32
"""Cap on refinement passes."""

SYNOPTIC_HOURS: int = 6
"""Best-track cadence kept by the b-deck reader."""
