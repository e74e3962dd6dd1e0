"""Command-line entry point: ``satpass TLE_FILE BDECK_FILE``."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import timedelta
from pathlib import Path

import requests

from satpass import __version__
from satpass.config import SearchConfig
from satpass.core.pipeline import FixStatus, run
from satpass.core.tle import load_tle_file
from satpass.data.bdeck import BestTrack
from satpass.data.spacetrack import SpaceTrackClient
from satpass.exceptions import InvalidConfiguration, NoElementsAvailable
from satpass.report import format_event, format_storm_position, format_summary
from satpass.utils.constants import (
    DEFAULT_MAX_DISTANCE_KM,
    DEFAULT_MIN_INTENSITY_KT,
    DEFAULT_STEP_HOURS,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="satpass",
        description="Compute satellite passes over tropical cyclones from b-deck tracks.",
    )
    parser.add_argument("tle_path", metavar="TLE_FILE", type=Path)
    parser.add_argument("bdeck_path", metavar="BDECK_FILE", type=Path)
    parser.add_argument(
        "-s", "--step-hours", type=float, default=DEFAULT_STEP_HOURS, metavar="HOURS",
        help="search window width, centered on each fix (default: %(default)s)",
    )
    parser.add_argument(
        "-i", "--intensity", type=float, default=DEFAULT_MIN_INTENSITY_KT, metavar="KT",
        help="minimum storm intensity to report (default: %(default)s)",
    )
    parser.add_argument(
        "-d", "--distance", type=float, default=DEFAULT_MAX_DISTANCE_KM, metavar="KM",
        help="maximum slant range to report (default: %(default)s)",
    )
    platform = parser.add_mutually_exclusive_group()
    platform.add_argument("--aqua", action="store_const", const="aqua", dest="platform",
                          help="print Aqua MODIS granule names")
    platform.add_argument("--terra", action="store_const", const="terra", dest="platform",
                          help="print Terra MODIS granule names")
    parser.add_argument(
        "--workers", type=int, default=1, metavar="N",
        help="number of fixes searched concurrently (default: %(default)s)",
    )
    parser.add_argument(
        "--norad-id", type=int, metavar="ID",
        help="download the element history for this satellite from Space-Track "
             "into TLE_FILE first (credentials from SPACETRACK_IDENTITY / SPACETRACK_PASSWORD)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="warnings and errors only")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _download_elements(norad_id: int, track: BestTrack, path: Path) -> None:
    identity = os.environ.get("SPACETRACK_IDENTITY")
    password = os.environ.get("SPACETRACK_PASSWORD")
    if not identity or not password:
        raise InvalidConfiguration(
            "--norad-id needs SPACETRACK_IDENTITY and SPACETRACK_PASSWORD in the environment"
        )
    client = SpaceTrackClient(identity=identity, password=password)
    start = track.fixes[0].time - timedelta(days=1)
    end = track.fixes[-1].time + timedelta(days=2)
    elements = client.fetch_tle_history(norad_id, start, end)
    path.write_text("".join(f"{e.line1}\n{e.line2}\n" for e in elements))
    logger.info("Wrote %d element sets to %s", len(elements), path)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    config = SearchConfig(
        step_hours=args.step_hours,
        min_intensity_kt=args.intensity,
        max_distance_km=args.distance,
        workers=args.workers,
    )

    try:
        config.validate()
        track = BestTrack.from_file(args.bdeck_path)
        if args.norad_id is not None and track.fixes:
            _download_elements(args.norad_id, track, args.tle_path)
        elements = load_tle_file(args.tle_path)
    except InvalidConfiguration as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except (OSError, ValueError, requests.RequestException) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    try:
        result = run(elements, track.fixes, config, track=track)
    except NoElementsAvailable as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    for outcome in result.outcomes:
        if outcome.event is not None:
            print(format_event(outcome.event, args.platform))
            storm = format_storm_position(outcome.event)
            if storm is not None:
                logger.info(storm)
        elif outcome.status is FixStatus.SKIPPED:
            print(f"skipped {outcome.fix.time:%Y-%m-%d %H:%M}: {outcome.reason}", file=sys.stderr)

    print(format_summary(result), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
