from __future__ import annotations


class StatsError(Exception):
    """Base class for statistics engine failures."""


class DataAccessError(StatsError):
    """A query against the congregation store failed."""


class StatsUnavailableError(StatsError):
    """The dashboard snapshot could not be computed."""

    def __init__(self, message: str = "Statistik tidak tersedia") -> None:
        super().__init__(message)
