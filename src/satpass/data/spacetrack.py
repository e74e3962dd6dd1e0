"""Space-Track.org API client.

Provides authenticated access to the Space-Track catalog for fetching
the element-set history of a satellite over a storm's lifetime.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

import requests

from satpass.core.tle import ElementSet, parse_tle

logger = logging.getLogger(__name__)


@dataclass
class SpaceTrackClient:
    """Client for the Space-Track.org REST API.

    Requires a Space-Track account. Register at https://www.space-track.org.

    Attributes:
        identity: Space-Track username/email.
        password: Space-Track password.
    """

    identity: str
    password: str
    _session: requests.Session = field(default_factory=requests.Session, repr=False)
    _authenticated: bool = field(default=False, repr=False)

    BASE_URL = "https://www.space-track.org"
    LOGIN_URL = f"{BASE_URL}/ajaxauth/login"

    def _login(self) -> None:
        """Authenticate with Space-Track.

        Stores session cookies for subsequent requests.

        Raises:
            requests.HTTPError: If authentication fails.
        """
        response = self._session.post(
            self.LOGIN_URL,
            data={"identity": self.identity, "password": self.password},
        )
        response.raise_for_status()

        if "error" in response.text.lower() or response.status_code != 200:
            logger.error("Space-Track authentication failed")
            raise requests.HTTPError(f"Space-Track authentication failed: {response.text}")

        logger.debug("Space-Track authentication successful")
        self._authenticated = True

    def _request(self, url: str) -> str:
        """Make authenticated request to Space-Track.

        Raises:
            requests.HTTPError: If the request fails.
        """
        if not self._authenticated:
            self._login()

        response = self._session.get(url)

        # Session expired: re-authenticate once
        if response.status_code == 401:
            self._authenticated = False
            self._login()
            response = self._session.get(url)

        response.raise_for_status()
        return response.text

    def fetch_tle(self, norad_id: int) -> ElementSet:
        """Fetch the latest element set for a NORAD catalog number.

        Raises:
            ValueError: If no TLE is found for the given NORAD ID.
            requests.HTTPError: If the request fails.
        """
        url = (
            f"{self.BASE_URL}/basicspacedata/query/class/gp/"
            f"NORAD_CAT_ID/{norad_id}/orderby/EPOCH desc/limit/1/format/tle"
        )
        elements = parse_tle(self._request(url))
        if not elements:
            raise ValueError(f"No TLE found for NORAD ID {norad_id}")
        return elements[0]

    def fetch_tle_history(self, norad_id: int, start: datetime, end: datetime) -> list[ElementSet]:
        """Fetch every element set with an epoch between ``start`` and ``end``.

        Args:
            norad_id: NORAD catalog number.
            start: Earliest epoch (date resolution).
            end: Latest epoch (date resolution; Space-Track reads it as
                midnight starting that day).

        Returns:
            Element sets in epoch order; empty if none were published.

        Raises:
            requests.HTTPError: If the request fails.
        """
        url = (
            f"{self.BASE_URL}/basicspacedata/query/class/gp_history/"
            f"NORAD_CAT_ID/{norad_id}/"
            f"EPOCH/{start:%Y-%m-%d}--{end:%Y-%m-%d}/"
            f"orderby/EPOCH asc/format/tle"
        )
        response_text = self._request(url)
        if not response_text.strip():
            logger.info("No element history for NORAD %d between %s and %s", norad_id, start, end)
            return []

        elements = parse_tle(response_text)
        logger.info("Fetched %d element sets for NORAD %d", len(elements), norad_id)
        return elements
