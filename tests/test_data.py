"""Tests for data ingestion: b-deck parsing and Space-Track client."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from satpass.data.bdeck import BestTrack, Fix, parse_bdeck_line
from satpass.data.spacetrack import SpaceTrackClient


# Idalia (AL10 2023), trimmed: 34/50/64 kt radii rows repeat each time,
# plus an off-synoptic landfall entry.
IDALIA_BDECK = """\
AL, 10, 2023082818,   , BEST,   0, 210N,  850W,  60,  989, TS,  34, NEQ,  100,   80,   40,   90, 1006,  200,  25,  70,   0,   L,   0,    ,   0,   0,     IDALIA, D,
AL, 10, 2023082818,   , BEST,   0, 210N,  850W,  60,  989, TS,  50, NEQ,   30,    0,    0,    0, 1006,  200,  25,  70,   0,   L,   0,    ,   0,   0,     IDALIA, D,
AL, 10, 2023082900,   , BEST,   0, 218N,  852W,  65,  985, HU,  34, NEQ,  110,   90,   40,   90, 1006,  200,  20,  80,   0,   L,   0,    ,   0,   0,     IDALIA, D,
AL, 10, 2023082906,   , BEST,   0, 229N,  851W,  75,  978, HU,  34, NEQ,  120,  100,   50,  100, 1006,  200,  15,  90,   0,   L,   0,    ,   0,   0,     IDALIA, D,
AL, 10, 2023083011,  L, BEST,   0, 299N,  836W, 105,  942, HU,  34, NEQ,  130,  120,   70,  100, 1008,  210,  15, 125,   0,   L,   0,    ,   0,   0,     IDALIA, D,
AL, 10, 2023083012,   , BEST,   0, 302N,  834W, 100,  949, HU,  34, NEQ,  130,  120,   70,  100, 1008,  210,  15, 125,   0,   L,   0,    ,   0,   0,     IDALIA, D,
"""


class TestParseBdeckLine:
    def test_western_hemisphere(self):
        fix = parse_bdeck_line(IDALIA_BDECK.splitlines()[0])
        assert fix.time == datetime(2023, 8, 28, 18, tzinfo=timezone.utc)
        assert fix.latitude_deg == pytest.approx(21.0)
        assert fix.longitude_deg == pytest.approx(275.0)
        assert fix.intensity_kt == 60.0

    def test_southern_eastern_hemisphere(self):
        fix = parse_bdeck_line("SH, 05, 2024011218,   , BEST,   0, 155S, 1180E,  45,  990, TS")
        assert fix.latitude_deg == pytest.approx(-15.5)
        assert fix.longitude_deg == pytest.approx(118.0)

    def test_missing_wind_is_zero(self):
        fix = parse_bdeck_line("WP, 02, 2024011200,   , BEST,   0, 100N, 1500E, 999, 1008, TD")
        assert fix.intensity_kt == 0.0

    def test_blank_wind_is_zero(self):
        fix = parse_bdeck_line("WP, 02, 2024011200,   , BEST,   0, 100N, 1500E")
        assert fix.intensity_kt == 0.0

    @pytest.mark.parametrize("line", [
        "",
        "AL, 10, 2023082818",
        "AL, 10, 20230828XX,   , BEST,   0, 210N,  850W,  60",
        "AL, 10, 2023082818,   , BEST,   0, 210Q,  850W,  60",
    ])
    def test_malformed_raises(self, line: str):
        with pytest.raises(ValueError):
            parse_bdeck_line(line)


class TestBestTrack:
    def test_keeps_one_synoptic_fix_per_time(self):
        track = BestTrack.from_text(IDALIA_BDECK)
        assert [f.time.hour for f in track] == [18, 0, 6, 12]
        assert len(track) == 4

    def test_skips_malformed_lines(self, caplog):
        text = "garbage line\n" + IDALIA_BDECK
        with caplog.at_level("WARNING"):
            track = BestTrack.from_text(text)
        assert len(track) == 4
        assert "Skipping b-deck line 1" in caplog.text

    def test_from_file(self, tmp_path):
        path = tmp_path / "bal102023.dat"
        path.write_text(IDALIA_BDECK)
        assert len(BestTrack.from_file(path)) == 4

    def test_fix_longitude_normalized(self):
        assert Fix(datetime(2023, 8, 29, tzinfo=timezone.utc), 20.0, -85.0, 60.0).longitude_deg == 275.0


class TestInterpolate:
    @pytest.fixture
    def track(self) -> BestTrack:
        return BestTrack.from_text(IDALIA_BDECK)

    def test_exact_fix(self, track: BestTrack):
        t = datetime(2023, 8, 29, 0, tzinfo=timezone.utc)
        assert track.interpolate(t) is track.fixes[1]

    def test_midpoint(self, track: BestTrack):
        fix = track.interpolate(datetime(2023, 8, 29, 3, tzinfo=timezone.utc))
        assert fix.latitude_deg == pytest.approx((21.8 + 22.9) / 2)
        assert fix.longitude_deg == pytest.approx(360.0 - (85.2 + 85.1) / 2)
        assert fix.intensity_kt == pytest.approx(70.0)

    def test_outside_track(self, track: BestTrack):
        assert track.interpolate(datetime(2023, 8, 28, 12, tzinfo=timezone.utc)) is None
        assert track.interpolate(datetime(2023, 8, 31, tzinfo=timezone.utc)) is None

    def test_across_prime_meridian(self):
        t0 = datetime(2024, 9, 1, 0, tzinfo=timezone.utc)
        track = BestTrack(fixes=[
            Fix(t0, 40.0, 359.0, 50.0),
            Fix(t0.replace(hour=6), 41.0, 1.0, 50.0),
        ])
        fix = track.interpolate(t0.replace(hour=3))
        assert fix.longitude_deg == pytest.approx(0.0, abs=1e-9)

    def test_empty_track(self):
        assert BestTrack().interpolate(datetime(2024, 1, 1, tzinfo=timezone.utc)) is None


# ---------------------------------------------------------------------------
# SpaceTrack client mocked HTTP tests
# ---------------------------------------------------------------------------

AQUA_TLE_TEXT = (
    "1 27424U 02022A   23240.51053241  .00001060  00000-0  24210-3 0  9990\n"
    "2 27424  98.2806 184.3950 0001341  79.7213  32.1779 14.58012367135100\n"
    "1 27424U 02022A   23241.50073785  .00001012  00000-0  23139-3 0  9994\n"
    "2 27424  98.2806 185.3694 0001341  80.7720  31.4024 14.58012977135246\n"
)


def _make_response(status_code: int = 200, text: str = "") -> MagicMock:
    """Helper to create a mock response."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    resp.raise_for_status = MagicMock()
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(response=resp)
    return resp


def test_fetch_tle_history_success():
    client = SpaceTrackClient(identity="user", password="pass")
    start = datetime(2023, 8, 27, tzinfo=timezone.utc)
    end = datetime(2023, 9, 2, tzinfo=timezone.utc)
    with patch.object(client._session, "post", return_value=_make_response(200, "OK")):
        with patch.object(client._session, "get", return_value=_make_response(200, AQUA_TLE_TEXT)) as get:
            elements = client.fetch_tle_history(27424, start, end)

    assert [e.norad_id for e in elements] == [27424, 27424]
    assert elements[0].epoch < elements[1].epoch
    url = get.call_args[0][0]
    assert "class/gp_history/NORAD_CAT_ID/27424" in url
    assert "EPOCH/2023-08-27--2023-09-02" in url


def test_fetch_tle_history_empty():
    client = SpaceTrackClient(identity="user", password="pass")
    with patch.object(client._session, "post", return_value=_make_response(200, "OK")):
        with patch.object(client._session, "get", return_value=_make_response(200, "")):
            assert client.fetch_tle_history(27424, datetime(2023, 8, 27), datetime(2023, 9, 2)) == []


def test_fetch_tle_success():
    client = SpaceTrackClient(identity="user", password="pass")
    with patch.object(client._session, "post", return_value=_make_response(200, "OK")):
        with patch.object(client._session, "get", return_value=_make_response(200, AQUA_TLE_TEXT)):
            assert client.fetch_tle(27424).norad_id == 27424


def test_fetch_tle_not_found():
    client = SpaceTrackClient(identity="user", password="pass")
    with patch.object(client._session, "post", return_value=_make_response(200, "OK")):
        with patch.object(client._session, "get", return_value=_make_response(200, "")):
            with pytest.raises(ValueError, match="No TLE found"):
                client.fetch_tle(99999)


def test_reauthenticates_on_401():
    client = SpaceTrackClient(identity="user", password="pass")
    resp_401 = MagicMock()
    resp_401.status_code = 401
    with patch.object(client._session, "post", return_value=_make_response(200, "OK")) as post:
        with patch.object(client._session, "get", side_effect=[resp_401, _make_response(200, AQUA_TLE_TEXT)]):
            elements = client.fetch_tle_history(27424, datetime(2023, 8, 27), datetime(2023, 9, 2))
    assert len(elements) == 2
    assert post.call_count == 2


def test_login_failure_raises():
    client = SpaceTrackClient(identity="user", password="wrong")
    with patch.object(client._session, "post", return_value=_make_response(200, '{"Login":"Failed","error":"bad"}')):
        with pytest.raises(requests.HTTPError, match="authentication failed"):
            client.fetch_tle(27424)


def test_rate_limit_raises():
    client = SpaceTrackClient(identity="user", password="pass")
    with patch.object(client._session, "post", return_value=_make_response(200, "OK")):
        with patch.object(client._session, "get", return_value=_make_response(429, "Rate limited")):
            with pytest.raises(requests.HTTPError):
                client.fetch_tle_history(27424, datetime(2023, 8, 27), datetime(2023, 9, 2))
