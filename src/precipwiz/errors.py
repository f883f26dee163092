from __future__ import annotations


class PrecipWizError(Exception):
    """Base class for errors raised by precipwiz."""


class DataLoadError(PrecipWizError):
    def __init__(self, year: int | None, reason: str):
        self.year = year
        self.reason = reason
        where = f"year {year}" if year is not None else "input"
        super().__init__(f"Cannot load {where}: {reason}")


class TopologyError(PrecipWizError):
    """World boundary topology could not be fetched or decoded."""
