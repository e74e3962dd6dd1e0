"""TLE (Two-Line Element) parsing and element-set selection.

This module parses TLEs using the sgp4 library into immutable
:class:`ElementSet` records, and picks the set whose epoch is nearest
to a requested time.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from sgp4.api import Satrec, WGS72

from satpass.exceptions import NoElementsAvailable
from satpass.utils.constants import XPDOTP

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElementSet:
    """A parsed Two-Line Element set.

    Attributes:
        name: Satellite name (line 0, if provided).
        norad_id: NORAD catalog number.
        epoch: Epoch as a UTC datetime.
        inclination_deg: Orbital inclination in degrees.
        raan_deg: Right ascension of ascending node in degrees.
        eccentricity: Orbital eccentricity (dimensionless).
        arg_perigee_deg: Argument of perigee in degrees.
        mean_anomaly_deg: Mean anomaly in degrees.
        mean_motion_rev_per_day: Mean motion in revolutions per day.
        bstar: BSTAR drag term (1/earth radii).
        mean_motion_dot: First derivative of mean motion over two, rev/day².
        mean_motion_ddot: Second derivative of mean motion over six, rev/day³.
        line1: Raw TLE line 1 (empty for hand-built sets).
        line2: Raw TLE line 2 (empty for hand-built sets).
    """

    name: str
    norad_id: int
    epoch: datetime
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_per_day: float
    bstar: float = 0.0
    mean_motion_dot: float = 0.0
    mean_motion_ddot: float = 0.0
    line1: str = ""
    line2: str = ""

    @classmethod
    def from_lines(cls, line1: str, line2: str, name: str = "") -> ElementSet:
        """Parse an element set from two (or three) lines.

        Args:
            line1: TLE line 1 (69 characters).
            line2: TLE line 2 (69 characters).
            name: Optional satellite name (line 0).

        Returns:
            A parsed ElementSet.

        Raises:
            ValueError: If the TLE lines are malformed.
        """
        line1 = line1.strip()
        line2 = line2.strip()

        if len(line1) != 69 or not line1.startswith("1"):
            logger.error("Invalid TLE line 1: %r", line1)
            raise ValueError(f"Invalid TLE line 1: {line1!r}")
        if len(line2) != 69 or not line2.startswith("2"):
            logger.error("Invalid TLE line 2: %r", line2)
            raise ValueError(f"Invalid TLE line 2: {line2!r}")

        sat = Satrec.twoline2rv(line1, line2, WGS72)

        year = int(line1[18:20])
        year = year + 2000 if year < 57 else year + 1900
        day_of_year = float(line1[20:32])
        epoch = datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(
            days=day_of_year - 1
        )

        norad_id = int(line1[2:7].strip())

        logger.debug("Parsed TLE for NORAD %d (epoch %s)", norad_id, epoch.isoformat())

        return cls(
            name=name.strip(),
            norad_id=norad_id,
            epoch=epoch,
            inclination_deg=math.degrees(sat.inclo),
            raan_deg=math.degrees(sat.nodeo),
            eccentricity=sat.ecco,
            arg_perigee_deg=math.degrees(sat.argpo),
            mean_anomaly_deg=math.degrees(sat.mo),
            mean_motion_rev_per_day=sat.no_kozai * XPDOTP,
            bstar=sat.bstar,
            mean_motion_dot=sat.ndot * XPDOTP * 1440.0,
            mean_motion_ddot=sat.nddot * XPDOTP * 1440.0 * 1440.0,
            line1=line1,
            line2=line2,
        )

    def __str__(self) -> str:
        header = f"0 {self.name}\n" if self.name else ""
        return f"{header}{self.line1}\n{self.line2}"


def parse_tle(text: str) -> list[ElementSet]:
    """Parse one or more TLEs from text.

    Handles both 2-line and 3-line (with name) formats.

    Args:
        text: Raw TLE text, one or more TLE sets separated by newlines.

    Returns:
        A list of parsed element sets, in file order.
    """
    lines = [l.rstrip() for l in text.strip().splitlines() if l.strip()]
    elements: list[ElementSet] = []
    i = 0

    while i < len(lines):
        if lines[i].startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            elements.append(ElementSet.from_lines(lines[i], lines[i + 1]))
            i += 2
        elif (
            not lines[i].startswith("1 ")
            and not lines[i].startswith("2 ")
            and i + 2 < len(lines)
            and lines[i + 1].startswith("1 ")
            and lines[i + 2].startswith("2 ")
        ):
            elements.append(ElementSet.from_lines(lines[i + 1], lines[i + 2], name=lines[i]))
            i += 3
        else:
            logger.debug("Skipping unrecognized TLE line: %r", lines[i])
            i += 1

    logger.debug("Parsed %d TLEs from text", len(elements))
    return elements


def load_tle_file(path: str | Path) -> list[ElementSet]:
    """Read and parse a TLE file."""
    return parse_tle(Path(path).read_text())


def _as_utc(t: datetime) -> datetime:
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t


def select_elements(elements: Iterable[ElementSet], target_time: datetime) -> ElementSet:
    """Pick the element set whose epoch is nearest to ``target_time``.

    When two epochs are equally far away the earlier one wins, so the
    choice does not depend on the order of ``elements``.

    Args:
        elements: Candidate element sets, in any order.
        target_time: Time the selected set will be propagated to.

    Returns:
        The nearest-epoch element set.

    Raises:
        NoElementsAvailable: If ``elements`` is empty.
    """
    target_time = _as_utc(target_time)
    best: ElementSet | None = None
    best_key: tuple[float, datetime] | None = None

    for candidate in elements:
        epoch = _as_utc(candidate.epoch)
        key = (abs((epoch - target_time).total_seconds()), epoch)
        if best_key is None or key < best_key:
            best, best_key = candidate, key

    if best is None:
        raise NoElementsAvailable("No orbital element sets to select from")

    logger.debug(
        "Selected NORAD %d epoch %s for %s",
        best.norad_id, best.epoch.isoformat(), target_time.isoformat(),
    )
    return best
