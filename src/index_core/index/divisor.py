"""Inception shares and divisor for capped market-cap weighted indexes.

At inception a notional investment is split by capped weight into a fixed
number of shares per constituent; the divisor maps that portfolio's value to
the index base value:

    shares[s] = notional * weight[s] / price[s]
    divisor   = sum(shares[s] * price[s]) / base_value

Shares and divisor are then frozen for the life of the index. A
reconstitution replaces both, chaining the divisor so the index level does
not jump.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime

import structlog

from index_core.config.schema import EngineConfig
from index_core.errors import InsufficientInceptionData
from index_core.index.valuation import value_index
from index_core.index.weights import (
    DEFAULT_MAX_WEIGHT,
    MAX_CAPPING_ITERATIONS,
    calculate_capped_weights,
)
from index_core.models import (
    ConstituentSet,
    InceptionPortfolio,
    IndexDefinition,
    PriceObservation,
)

log = structlog.get_logger("divisor")

DEFAULT_BASE_VALUE = 1000.0
DEFAULT_NOTIONAL = 1_000_000.0


def _allocate_shares(
    constituents: Sequence[str],
    prices: Mapping[str, PriceObservation],
    max_weight: float,
    notional: float,
    max_iterations: int,
) -> tuple[dict[str, float], dict[str, float], float]:
    """Return (shares, weights, portfolio value) for the usable constituents."""
    usable = {
        symbol: prices[symbol]
        for symbol in constituents
        if symbol in prices and prices[symbol].price > 0 and prices[symbol].market_cap > 0
    }
    weights = calculate_capped_weights(
        {symbol: obs.market_cap for symbol, obs in usable.items()},
        max_weight=max_weight,
        max_iterations=max_iterations,
    )

    shares: dict[str, float] = {}
    portfolio_value = 0.0
    for symbol in constituents:
        weight = weights.get(symbol, 0.0)
        obs = usable.get(symbol)
        if obs is None or weight <= 0:
            continue
        shares[symbol] = notional * weight / obs.price
        portfolio_value += shares[symbol] * obs.price
    return shares, weights, portfolio_value


def build_inception_portfolio(
    index_symbol: str,
    constituents: Sequence[str],
    prices: Mapping[str, PriceObservation],
    ts: datetime,
    *,
    max_weight: float = DEFAULT_MAX_WEIGHT,
    base_value: float = DEFAULT_BASE_VALUE,
    notional: float = DEFAULT_NOTIONAL,
    max_iterations: int = MAX_CAPPING_ITERATIONS,
) -> InceptionPortfolio:
    """Fix shares and divisor from inception-day prices and capped weights.

    Constituents without a positive price and market cap are left out.

    Raises:
        InsufficientInceptionData: no constituent is usable, or the
            resulting portfolio value is zero.
    """
    shares, weights, portfolio_value = _allocate_shares(
        constituents, prices, max_weight, notional, max_iterations,
    )
    if not shares or portfolio_value <= 0:
        raise InsufficientInceptionData(
            f"No usable inception data for {index_symbol} "
            f"({len(constituents)} constituents, {len(prices)} prices)",
            index_symbol,
        )

    divisor = portfolio_value / base_value
    log.info(
        "inception_portfolio_built",
        index=index_symbol,
        constituents=len(shares),
        dropped=len(constituents) - len(shares),
        divisor=divisor,
    )
    return InceptionPortfolio(
        index_symbol=index_symbol,
        ts=ts,
        shares=shares,
        divisor=divisor,
        weights={s: weights[s] for s in shares},
        base_value=base_value,
    )


def inception_portfolio_for(
    definition: IndexDefinition,
    constituent_set: ConstituentSet,
    prices: Mapping[str, PriceObservation],
    config: EngineConfig | None = None,
) -> InceptionPortfolio:
    """build_inception_portfolio driven by an index definition and engine config."""
    config = config or EngineConfig()
    return build_inception_portfolio(
        definition.index_symbol,
        constituent_set.symbols,
        prices,
        definition.inception_ts,
        max_weight=config.cap_for(definition),
        base_value=config.base_value_for(definition),
        notional=config.notional_investment,
        max_iterations=config.max_capping_iterations,
    )


def adjust_divisor(
    old_divisor: float,
    old_portfolio_value: float,
    new_portfolio_value: float,
) -> float:
    """Chain a divisor across a constituent change: old * new / old value."""
    if old_portfolio_value <= 0:
        raise ValueError("old_portfolio_value must be positive")
    return old_divisor * new_portfolio_value / old_portfolio_value


def rebalance_portfolio(
    current: InceptionPortfolio,
    constituents: Sequence[str],
    prices: Mapping[str, PriceObservation],
    ts: datetime,
    *,
    max_weight: float = DEFAULT_MAX_WEIGHT,
    notional: float = DEFAULT_NOTIONAL,
    max_iterations: int = MAX_CAPPING_ITERATIONS,
) -> InceptionPortfolio:
    """Replace shares and divisor at *ts* without moving the index level.

    The new portfolio is re-weighted from *prices*; its divisor is chained so
    that valuing either portfolio at *ts* gives the same index value.

    Raises:
        InsufficientInceptionData: no constituent is usable at *ts*.
        NoValidPrices: the current portfolio cannot be valued at *ts*.
    """
    level = value_index(
        current.shares,
        current.divisor,
        {symbol: obs.price for symbol, obs in prices.items()},
    )
    old_value = level * current.divisor

    shares, weights, new_value = _allocate_shares(
        constituents, prices, max_weight, notional, max_iterations,
    )
    if not shares or new_value <= 0:
        raise InsufficientInceptionData(
            f"No usable rebalance data for {current.index_symbol}",
            current.index_symbol,
        )

    divisor = adjust_divisor(current.divisor, old_value, new_value)
    log.info(
        "portfolio_rebalanced",
        index=current.index_symbol,
        level=level,
        old_divisor=current.divisor,
        new_divisor=divisor,
    )
    return InceptionPortfolio(
        index_symbol=current.index_symbol,
        ts=ts,
        shares=shares,
        divisor=divisor,
        weights={s: weights[s] for s in shares},
        base_value=current.base_value,
    )
