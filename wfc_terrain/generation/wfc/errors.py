"""Exceptions for the WFC solver."""

from __future__ import annotations

from typing import TYPE_CHECKING, Hashable

if TYPE_CHECKING:
    from .solver import Failure


class WFCError(Exception):
    """Base exception for WFC errors."""

    pass


class ConfigError(WFCError, ValueError):
    """Tile catalog or solver configuration is malformed.

    Raised before any solving starts. Never retried.
    """

    pass


class Contradiction(WFCError):
    """A cell's domain was reduced to zero tiles during propagation."""

    def __init__(self, coord: Hashable):
        super().__init__(f"Contradiction at {coord!r}: no tile fits")
        self.coord = coord


class SolveFailed(WFCError):
    """A solve ended without a result (exhausted, cancelled or timed out)."""

    def __init__(self, failure: "Failure"):
        super().__init__(failure.message)
        self.failure = failure
