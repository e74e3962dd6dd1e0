"""Errors raised by satpass."""

from __future__ import annotations


class SatpassError(Exception):
    """Base class for all satpass errors."""


class NoElementsAvailable(SatpassError):
    """No orbital element set is available to propagate from."""


class PropagationDegenerate(SatpassError):
    """An element set produced a non-physical satellite state.

    Attributes:
        norad_id: Catalog number of the offending element set.
        reason: Human-readable description of what went wrong.
    """

    def __init__(self, norad_id: int, reason: str) -> None:
        self.norad_id = norad_id
        self.reason = reason
        super().__init__(f"NORAD {norad_id}: {reason}")


class InvalidConfiguration(SatpassError, ValueError):
    """A search window or threshold setting is out of range."""
