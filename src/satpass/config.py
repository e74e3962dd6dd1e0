"""Search and reporting settings."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from satpass.exceptions import InvalidConfiguration
from satpass.utils.constants import (
    DEFAULT_COARSE_STEP_S,
    DEFAULT_MAX_DISTANCE_KM,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MIN_INTENSITY_KT,
    DEFAULT_STEP_HOURS,
    DEFAULT_TOLERANCE_S,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchConfig:
    """Settings consumed by the pass pipeline.

    Attributes:
        step_hours: Full width of the search window, centered on each fix.
        min_intensity_kt: Storms weaker than this are not reported.
        max_distance_km: Passes farther than this are not reported.
        coarse_step_s: Spacing of the coarse samples in seconds.
        tolerance_s: Time resolution of the refined minimum in seconds.
        max_iterations: Cap on refinement passes.
        workers: Number of fixes searched concurrently.
    """

    step_hours: float = DEFAULT_STEP_HOURS
    min_intensity_kt: float = DEFAULT_MIN_INTENSITY_KT
    max_distance_km: float = DEFAULT_MAX_DISTANCE_KM
    coarse_step_s: float = DEFAULT_COARSE_STEP_S
    tolerance_s: float = DEFAULT_TOLERANCE_S
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    workers: int = 1

    @property
    def half_window_hours(self) -> float:
        return self.step_hours / 2.0

    def validate(self) -> SearchConfig:
        """Check every setting and return self.

        Raises:
            InvalidConfiguration: If a window or sampling setting is not
                positive, or a threshold is negative or not finite.
        """
        positive = {
            "step_hours": self.step_hours,
            "coarse_step_s": self.coarse_step_s,
            "tolerance_s": self.tolerance_s,
            "max_iterations": self.max_iterations,
            "workers": self.workers,
        }
        for name, value in positive.items():
            if not math.isfinite(value) or value <= 0:
                logger.error("Invalid configuration: %s=%r", name, value)
                raise InvalidConfiguration(f"{name} must be > 0, got {value!r}")

        thresholds = {
            "min_intensity_kt": self.min_intensity_kt,
            "max_distance_km": self.max_distance_km,
        }
        for name, value in thresholds.items():
            if not math.isfinite(value) or value < 0:
                logger.error("Invalid configuration: %s=%r", name, value)
                raise InvalidConfiguration(f"{name} must be >= 0, got {value!r}")

        return self
