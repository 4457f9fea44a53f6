"""Price snapshot builder: one bulk read per index, then pure valuation."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from index_core.config.schema import EngineConfig
from index_core.db.queries import DAILY_WINDOW, INCEPTION_WINDOW, load_price_window
from index_core.index.divisor import inception_portfolio_for
from index_core.index.valuation import value_benchmark, value_index_detailed
from index_core.models import (
    ConstituentSet,
    InceptionPortfolio,
    IndexDefinition,
    IndexSnapshot,
    PriceObservation,
    normalize_timestamp,
)


def build_price_snapshot(
    session: Session,
    constituents: ConstituentSet,
    ts: datetime,
) -> dict[str, PriceObservation]:
    """Observations of the constituents for the calendar day of *ts*."""
    return load_price_window(session, constituents.symbols, normalize_timestamp(ts), DAILY_WINDOW)


def build_inception(
    session: Session,
    definition: IndexDefinition,
    constituents: ConstituentSet,
    config: EngineConfig | None = None,
) -> InceptionPortfolio:
    """Inception portfolio from prices within a day of the inception timestamp.

    Raises:
        InsufficientInceptionData: no constituent is priced around inception.
    """
    prices = load_price_window(
        session,
        constituents.symbols,
        normalize_timestamp(definition.inception_ts),
        INCEPTION_WINDOW,
    )
    return inception_portfolio_for(definition, constituents, prices, config)


def compute_snapshot(
    definition: IndexDefinition,
    prices: dict[str, PriceObservation],
    ts: datetime,
    portfolio: InceptionPortfolio | None = None,
) -> IndexSnapshot:
    """Index value at *ts* from a price snapshot.

    A benchmark takes the raw price of its asset; a capped index needs its
    inception portfolio.

    Raises:
        NoValidPrices: nothing in *prices* can value the index.
    """
    price_by_symbol = {symbol: obs.price for symbol, obs in prices.items()}
    if definition.is_benchmark:
        value = value_benchmark(definition.base_index, price_by_symbol)
        return IndexSnapshot(index_symbol=definition.index_symbol, ts=ts, value=value, coverage_ratio=1.0)

    if portfolio is None:
        raise ValueError(f"Index {definition.index_symbol} needs an inception portfolio")
    valuation = value_index_detailed(
        portfolio.shares, portfolio.divisor, price_by_symbol, definition.index_symbol,
    )
    return IndexSnapshot(
        index_symbol=definition.index_symbol,
        ts=ts,
        value=valuation.value,
        coverage_ratio=valuation.coverage_ratio,
    )
