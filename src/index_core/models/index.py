"""Index definition, inception portfolio and snapshot models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Methodology(str, Enum):
    """How an index is valued."""

    CAPPED_MARKET_CAP_WEIGHTED = "MCW"
    BENCHMARK_PRICE = "BENCHMARK"


class ConstituentSet(BaseModel):
    """Ordered symbols of one base index (e.g. "N100", "DEFI")."""

    model_config = ConfigDict(frozen=True)

    name: str
    symbols: tuple[str, ...]


class IndexDefinition(BaseModel):
    """One investable index.

    For ``BENCHMARK`` indexes ``base_index`` is the tracked asset symbol.
    """

    model_config = ConfigDict(frozen=True)

    index_symbol: str
    name: str = ""
    description: str | None = None
    methodology: Methodology = Methodology.CAPPED_MARKET_CAP_WEIGHTED
    base_index: str
    # None inherits engine.base_value / engine.weight_cap
    base_value: float | None = Field(default=None, gt=0)
    inception_ts: datetime
    weight_cap: float | None = Field(default=None, gt=0)
    is_active: bool = True

    @property
    def is_benchmark(self) -> bool:
        return self.methodology == Methodology.BENCHMARK_PRICE


class InceptionPortfolio(BaseModel):
    """Fixed shares and divisor of a capped index.

    Invariant: sum(shares[s] * inception_price[s]) / divisor == base_value.
    Never mutated; a rebalance produces a new instance.
    """

    model_config = ConfigDict(frozen=True)

    index_symbol: str
    ts: datetime
    shares: dict[str, float]
    divisor: float = Field(gt=0)
    weights: dict[str, float] = Field(default_factory=dict)
    base_value: float = 1000.0


class IndexSnapshot(BaseModel):
    """One computed index value at one timestamp."""

    model_config = ConfigDict(frozen=True)

    index_symbol: str
    ts: datetime
    value: float
    coverage_ratio: float | None = Field(default=None, ge=0, le=1)
