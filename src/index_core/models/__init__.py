"""Pydantic domain models."""

from index_core.models.index import (
    ConstituentSet,
    InceptionPortfolio,
    IndexDefinition,
    IndexSnapshot,
    Methodology,
)
from index_core.models.market import PriceObservation, normalize_timestamp

__all__ = [
    "ConstituentSet",
    "InceptionPortfolio",
    "IndexDefinition",
    "IndexSnapshot",
    "Methodology",
    "PriceObservation",
    "normalize_timestamp",
]
