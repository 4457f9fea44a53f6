"""Index valuation: pure functions of fixed shares, a divisor and prices."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from index_core.errors import NoValidPrices
from index_core.models import PriceObservation


@dataclass(frozen=True)
class IndexValuation:
    """Index value plus how much of the inception portfolio was priced."""

    value: float
    coverage_ratio: float
    missing_symbols: tuple[str, ...] = ()


def price_map(observations: Iterable[PriceObservation]) -> dict[str, float]:
    """symbol -> price, keeping the first observation seen per symbol."""
    prices: dict[str, float] = {}
    for obs in observations:
        if obs.symbol not in prices:
            prices[obs.symbol] = obs.price
    return prices


def value_index_detailed(
    shares: Mapping[str, float],
    divisor: float,
    prices: Mapping[str, float],
    index_symbol: str | None = None,
) -> IndexValuation:
    """sum(shares * price) / divisor over the priced constituents.

    A constituent with no positive price contributes nothing (no
    interpolation); it is reported in ``missing_symbols``. Raises
    NoValidPrices when no constituent is priced.
    """
    if divisor <= 0:
        raise ValueError(f"divisor must be positive, got {divisor}")

    portfolio_value = 0.0
    missing: list[str] = []
    for symbol, count in shares.items():
        price = prices.get(symbol, 0.0)
        if price > 0:
            portfolio_value += count * price
        else:
            missing.append(symbol)

    if not shares or len(missing) == len(shares):
        raise NoValidPrices(
            f"No valid prices for any of {len(shares)} constituents",
            index_symbol,
        )

    priced = len(shares) - len(missing)
    return IndexValuation(
        value=portfolio_value / divisor,
        coverage_ratio=priced / len(shares),
        missing_symbols=tuple(missing),
    )


def value_index(
    shares: Mapping[str, float],
    divisor: float,
    prices: Mapping[str, float],
) -> float:
    """Index value from fixed shares and divisor; see value_index_detailed."""
    return value_index_detailed(shares, divisor, prices).value


def value_benchmark(symbol: str, prices: Mapping[str, float]) -> float:
    """A benchmark index is valued at the raw observed price of its asset."""
    price = prices.get(symbol, 0.0)
    if price <= 0:
        raise NoValidPrices(f"No price for benchmark {symbol}", symbol)
    return price
