"""ATCF best-track (b-deck) reading.

A b-deck line is comma separated::

    AL, 09, 2023082900,   , BEST,   0, 241N,  844W, 100,  958, HU, 34, NEQ, ...

Only the date-time (field 3), latitude (7), longitude (8) and maximum
sustained wind (9) are used. Rows at non-synoptic hours are dropped, as are
the extra wind-radii rows repeated for the same time.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from satpass.core.geometry import normalize_longitude
from satpass.utils.constants import SYNOPTIC_HOURS

logger = logging.getLogger(__name__)

_MISSING_WIND = 999


@dataclass(frozen=True)
class Fix:
    """A single best-track storm position.

    Attributes:
        time: Fix time (UTC).
        latitude_deg: Latitude in degrees, north positive.
        longitude_deg: Longitude in degrees east, normalized to [0, 360).
        intensity_kt: Maximum sustained wind in knots.
    """

    time: datetime
    latitude_deg: float
    longitude_deg: float
    intensity_kt: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "longitude_deg", normalize_longitude(self.longitude_deg))


def _parse_coordinate(text: str, positive: str, negative: str) -> float:
    """Parse an ATCF tenths-of-degree coordinate like ``241N`` or ``844W``."""
    text = text.strip().upper()
    if not text or text[-1] not in (positive, negative):
        raise ValueError(f"Bad coordinate {text!r}")
    value = int(text[:-1]) / 10.0
    return -value if text[-1] == negative else value


def parse_bdeck_line(line: str) -> Fix:
    """Parse one b-deck line into a Fix.

    Raises:
        ValueError: If the line lacks the date, position or wind fields.
    """
    fields = [f.strip() for f in line.split(",")]
    if len(fields) < 8:
        raise ValueError(f"Too few fields in b-deck line: {line!r}")

    time = datetime.strptime(fields[2], "%Y%m%d%H").replace(tzinfo=timezone.utc)
    latitude = _parse_coordinate(fields[6], "N", "S")
    longitude = _parse_coordinate(fields[7], "E", "W")

    wind_text = fields[8] if len(fields) > 8 else ""
    wind = int(wind_text) if wind_text.isdigit() else 0
    if wind == _MISSING_WIND:
        wind = 0

    return Fix(time=time, latitude_deg=latitude, longitude_deg=longitude, intensity_kt=float(wind))


@dataclass
class BestTrack:
    """Synoptic-hour fixes of one storm, in chronological order."""

    fixes: list[Fix] = field(default_factory=list)

    @classmethod
    def from_text(cls, text: str) -> BestTrack:
        """Parse b-deck text, keeping one fix per synoptic time.

        Malformed lines are logged and skipped.
        """
        fixes: list[Fix] = []
        seen: set[datetime] = set()

        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                fix = parse_bdeck_line(line)
            except ValueError as e:
                logger.warning("Skipping b-deck line %d: %s", lineno, e)
                continue
            if fix.time.hour % SYNOPTIC_HOURS != 0 or fix.time.minute != 0:
                continue
            if fix.time in seen:
                continue
            seen.add(fix.time)
            fixes.append(fix)

        fixes.sort(key=lambda f: f.time)
        logger.debug("Parsed %d synoptic fixes from b-deck", len(fixes))
        return cls(fixes=fixes)

    @classmethod
    def from_file(cls, path: str | Path) -> BestTrack:
        return cls.from_text(Path(path).read_text())

    def __len__(self) -> int:
        return len(self.fixes)

    def __iter__(self):
        return iter(self.fixes)

    def interpolate(self, time: datetime) -> Fix | None:
        """Storm position and intensity at ``time``, linear between fixes.

        Longitude is interpolated along the short way round the 0/360 seam.

        Returns:
            An interpolated Fix, or None when ``time`` is outside the track.
        """
        if not self.fixes:
            return None
        times = [f.time for f in self.fixes]
        if time < times[0] or time > times[-1]:
            return None

        i = bisect.bisect_left(times, time)
        if times[i] == time:
            return self.fixes[i]

        before, after = self.fixes[i - 1], self.fixes[i]
        factor = (time - before.time).total_seconds() / (after.time - before.time).total_seconds()

        dlon = after.longitude_deg - before.longitude_deg
        if dlon > 180.0:
            dlon -= 360.0
        elif dlon < -180.0:
            dlon += 360.0

        return Fix(
            time=time,
            latitude_deg=before.latitude_deg + factor * (after.latitude_deg - before.latitude_deg),
            longitude_deg=before.longitude_deg + factor * dlon,
            intensity_kt=before.intensity_kt + factor * (after.intensity_kt - before.intensity_kt),
        )
