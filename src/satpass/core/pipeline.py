"""Pass pipeline: search every fix, filter by thresholds, account for every fix."""
from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from satpass.config import SearchConfig
from satpass.core.propagation import Orbit
from satpass.core.search import ClosestApproach, search
from satpass.core.tle import ElementSet, select_elements
from satpass.data.bdeck import BestTrack, Fix
from satpass.exceptions import NoElementsAvailable, PropagationDegenerate

logger = logging.getLogger(__name__)


def is_reportable(
    intensity: float,
    distance_km: float,
    min_intensity: float,
    max_distance_km: float,
) -> bool:
    """True when the storm is strong enough and the pass close enough.

    Both bounds are inclusive.
    """
    return intensity >= min_intensity and distance_km <= max_distance_km


class FixStatus(enum.Enum):
    """How a fix was accounted for."""

    REPORTED = "reported"
    FILTERED = "filtered"
    SKIPPED = "skipped"


@dataclass
class PassEvent:
    """A reportable closest approach.

    Attributes:
        fix: The best-track fix that was searched.
        approach: Closest approach found around the fix.
        storm_at_tca: Track position interpolated to the time of closest
            approach, when the track covers that time.
    """

    fix: Fix
    approach: ClosestApproach
    storm_at_tca: Fix | None = None


@dataclass
class FixOutcome:
    """What happened to one fix."""

    fix: Fix
    status: FixStatus
    approach: ClosestApproach | None = None
    event: PassEvent | None = None
    reason: str = ""


@dataclass
class RunResult:
    """Outcomes of a run, one per fix, in fix order."""

    outcomes: list[FixOutcome] = field(default_factory=list)

    @property
    def events(self) -> list[PassEvent]:
        return [o.event for o in self.outcomes if o.event is not None]

    def _count(self, status: FixStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    @property
    def reported(self) -> int:
        return self._count(FixStatus.REPORTED)

    @property
    def filtered(self) -> int:
        return self._count(FixStatus.FILTERED)

    @property
    def skipped(self) -> int:
        return self._count(FixStatus.SKIPPED)


def _process_fix(
    fix: Fix,
    orbit: Orbit,
    config: SearchConfig,
    track: BestTrack | None,
) -> FixOutcome:
    try:
        approach = search(
            orbit,
            fix,
            config.half_window_hours,
            coarse_step_s=config.coarse_step_s,
            tolerance_s=config.tolerance_s,
            max_iterations=config.max_iterations,
        )
    except PropagationDegenerate as e:
        logger.warning("Skipping fix at %s: %s", fix.time.isoformat(), e)
        return FixOutcome(fix=fix, status=FixStatus.SKIPPED, reason=str(e))

    if not is_reportable(
        fix.intensity_kt, approach.distance_km, config.min_intensity_kt, config.max_distance_km
    ):
        logger.debug(
            "Fix at %s filtered: %.0f kt, %.1f km",
            fix.time.isoformat(), fix.intensity_kt, approach.distance_km,
        )
        return FixOutcome(fix=fix, status=FixStatus.FILTERED, approach=approach)

    storm_at_tca = track.interpolate(approach.time) if track is not None else None
    event = PassEvent(fix=fix, approach=approach, storm_at_tca=storm_at_tca)
    return FixOutcome(fix=fix, status=FixStatus.REPORTED, approach=approach, event=event)


def run(
    elements: Sequence[ElementSet],
    fixes: Sequence[Fix],
    config: SearchConfig | None = None,
    track: BestTrack | None = None,
) -> RunResult:
    """Search every fix for its closest approach and apply the thresholds.

    Global problems (bad configuration, no element sets) raise before any
    fix is searched. A fix whose element set cannot be propagated is
    recorded as skipped and the run continues.

    Args:
        elements: Element sets of the satellite, any order.
        fixes: Storm fixes in chronological order.
        config: Search settings; defaults to :class:`SearchConfig()`.
        track: Full best track, used to place the storm at each
            reported time of closest approach.

    Returns:
        One outcome per fix, in the order of ``fixes``.

    Raises:
        InvalidConfiguration: If ``config`` fails validation.
        NoElementsAvailable: If ``elements`` is empty.
    """
    config = (config or SearchConfig()).validate()
    elements = list(elements)
    if not elements:
        raise NoElementsAvailable("No orbital element sets loaded")

    logger.info(
        "Searching %d fixes against %d element sets (%.1fh window, %.0f kt, %.0f km)",
        len(fixes), len(elements), config.step_hours,
        config.min_intensity_kt, config.max_distance_km,
    )

    jobs = [(fix, select_elements(elements, fix.time)) for fix in fixes]

    if config.workers > 1:
        # Satrec keeps scratch state between calls, so threads never share one.
        def work(job: tuple[Fix, ElementSet]) -> FixOutcome:
            return _process_fix(job[0], Orbit(job[1]), config, track)

        with ThreadPoolExecutor(max_workers=config.workers) as executor:
            outcomes = list(executor.map(work, jobs))
    else:
        orbits: dict[int, Orbit] = {}
        outcomes = []
        for fix, chosen in jobs:
            orbit = orbits.get(id(chosen))
            if orbit is None:
                orbit = orbits[id(chosen)] = Orbit(chosen)
            outcomes.append(_process_fix(fix, orbit, config, track))

    result = RunResult(outcomes=outcomes)
    logger.info(
        "Processed %d fixes: %d reported, %d filtered, %d skipped",
        result.processed, result.reported, result.filtered, result.skipped,
    )
    return result
