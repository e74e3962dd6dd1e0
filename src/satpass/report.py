"""Console formatting of pass events."""

from __future__ import annotations

from datetime import datetime

from satpass.core.pipeline import PassEvent, RunResult

_GRANULE_PREFIX = {
    "aqua": "MYD021KM",
    "terra": "MOD021KM",
}


def modis_granule_name(scan_time: datetime, platform: str | None) -> str:
    """MODIS L1B 1 km granule name covering ``scan_time``.

    Granules start every 5 minutes, so the time is floored to the most
    recent 5-minute mark. Returns a single blank for unknown platforms.
    """
    prefix = _GRANULE_PREFIX.get((platform or "").lower())
    if prefix is None:
        return " "
    scan_time = scan_time.replace(minute=(scan_time.minute // 5) * 5, second=0, microsecond=0)
    return f"{prefix}{scan_time:.A%Y%j.%H%M}"


def format_event(event: PassEvent, platform: str | None = None) -> str:
    approach = event.approach
    return (
        f"{approach.time:%Y-%m-%d %H:%M:%S} - "
        f"Distance: {approach.distance_km:4.0f} km  "
        f"Zenith: {approach.zenith_deg:4.1f}° "
        f"Intensity: {event.fix.intensity_kt:3.0f} kt   "
        f"{modis_granule_name(approach.time, platform)}"
    )


def format_summary(result: RunResult) -> str:
    return (
        f"{result.processed} fixes processed: {result.reported} reported, "
        f"{result.filtered} filtered out, {result.skipped} skipped"
    )


def format_storm_position(event: PassEvent) -> str | None:
    """Interpolated storm center and intensity at the closest approach."""
    storm = event.storm_at_tca
    if storm is None:
        return None
    lat = storm.latitude_deg
    lon = storm.longitude_deg if storm.longitude_deg <= 180.0 else storm.longitude_deg - 360.0
    return (
        f"storm at {event.approach.time:%Y-%m-%d %H:%M:%S}: "
        f"{abs(lat):4.1f}{'N' if lat >= 0 else 'S'} "
        f"{abs(lon):5.1f}{'E' if lon >= 0 else 'W'} "
        f"{storm.intensity_kt:3.0f} kt"
    )
