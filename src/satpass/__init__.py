"""
satpass: satellite passes over tropical cyclones.

Correlates a satellite's TLE history with a storm's best track to find
when the satellite passes closest to the storm center, and reports the
passes that meet intensity and distance thresholds.
"""

from __future__ import annotations

__version__ = "0.1.0"

from satpass.config import SearchConfig
from satpass.core.tle import ElementSet, parse_tle, load_tle_file, select_elements
from satpass.core.propagation import propagate, Orbit, SatelliteState
from satpass.core.geometry import SurfacePoint, Geometry, evaluate, normalize_longitude
from satpass.core.search import search, ClosestApproach
from satpass.core.pipeline import run, is_reportable, PassEvent, FixOutcome, FixStatus, RunResult
from satpass.data.bdeck import BestTrack, Fix
from satpass.data.spacetrack import SpaceTrackClient
from satpass.exceptions import (
    SatpassError,
    NoElementsAvailable,
    PropagationDegenerate,
    InvalidConfiguration,
)

__all__ = [
    "__version__",
    "SearchConfig",
    "ElementSet",
    "parse_tle",
    "load_tle_file",
    "select_elements",
    "propagate",
    "Orbit",
    "SatelliteState",
    "SurfacePoint",
    "Geometry",
    "evaluate",
    "normalize_longitude",
    "search",
    "ClosestApproach",
    "run",
    "is_reportable",
    "PassEvent",
    "FixOutcome",
    "FixStatus",
    "RunResult",
    "BestTrack",
    "Fix",
    "SpaceTrackClient",
    "SatpassError",
    "NoElementsAvailable",
    "PropagationDegenerate",
    "InvalidConfiguration",
]
