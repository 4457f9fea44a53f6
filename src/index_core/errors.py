"""Domain errors raised by the index engine.

All of these are local, recoverable conditions: batch helpers catch them per
unit of work (one index, one period) and report them instead of aborting.
"""

from __future__ import annotations


class IndexCoreError(Exception):
    """Base class for index engine errors."""

    def __init__(self, message: str, index_symbol: str | None = None) -> None:
        super().__init__(message)
        self.index_symbol = index_symbol


class InsufficientInceptionData(IndexCoreError):
    """No constituent had usable price / market-cap data at inception."""


class NoValidPrices(IndexCoreError):
    """Every constituent is missing from a valuation-day price snapshot."""


class InsufficientData(IndexCoreError):
    """Fewer than 2 data points exist in the requested analytics window."""

    def __init__(
        self,
        message: str,
        index_symbol: str | None = None,
        period_days: int | None = None,
        data_points: int = 0,
    ) -> None:
        super().__init__(message, index_symbol)
        self.period_days = period_days
        self.data_points = data_points


class UnknownIndexError(IndexCoreError):
    """Lookup of an index symbol that has no definition."""
