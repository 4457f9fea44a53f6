"""Crypto index engine: capped market-cap weighting, divisor valuation, risk analytics."""

__version__ = "0.1.0"
