"""Constituent weights: pure functions, no DB.

Capped market-cap weighting uses iterative water-filling: constituents over
the cap are pinned at it and the excess flows to the constituents still below
it, in proportion to their current weight, until nothing exceeds the cap.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

import structlog

from index_core.models import PriceObservation

log = structlog.get_logger("weights")

DEFAULT_MAX_WEIGHT = 0.25
MAX_CAPPING_ITERATIONS = 10
# Weights are renormalized when their sum drifts further than this from 1.
NORMALIZATION_TOLERANCE = 1e-4
# Slack when comparing a weight to the cap.
CAP_EPSILON = 1e-12


@dataclass(frozen=True)
class ConstituentWeight:
    """One constituent's market data and weight, ranked by market cap."""

    symbol: str
    price: float
    market_cap: float
    weight: float
    rank: int


def calculate_market_cap_weights(market_caps: Mapping[str, float]) -> dict[str, float]:
    """Uncapped weights: market cap / total market cap."""
    total = sum(market_caps.values())
    if total <= 0:
        return {}
    return {symbol: mc / total for symbol, mc in market_caps.items()}


def calculate_equal_weights(symbols: Iterable[str]) -> dict[str, float]:
    """1/N for each distinct symbol."""
    unique = list(dict.fromkeys(symbols))
    if not unique:
        return {}
    weight = 1.0 / len(unique)
    return {symbol: weight for symbol in unique}


def _renormalize(weights: dict[str, float]) -> None:
    total = sum(weights.values())
    if total > 0 and abs(total - 1.0) > NORMALIZATION_TOLERANCE:
        for symbol in weights:
            weights[symbol] /= total


def calculate_capped_weights(
    market_caps: Mapping[str, float],
    max_weight: float = DEFAULT_MAX_WEIGHT,
    max_iterations: int = MAX_CAPPING_ITERATIONS,
) -> dict[str, float]:
    """Market-cap weights with no constituent above *max_weight*.

    Returns an empty dict for empty input or zero total market cap. When the
    cap cannot hold for every constituent (``n * max_weight < 1``) the
    constituents end up equally weighted, so a single constituent always
    gets weight 1.0. Weights always sum to 1.

    The loop is bounded by *max_iterations*; hitting the bound with a weight
    still over the cap is logged and the current weights are returned.
    """
    if max_weight <= 0:
        raise ValueError(f"max_weight must be positive, got {max_weight}")

    weights = calculate_market_cap_weights(market_caps)
    if not weights:
        return weights

    for iteration in range(max_iterations):
        over = [s for s, w in weights.items() if w > max_weight + CAP_EPSILON]
        if not over:
            return weights

        excess = 0.0
        for symbol in over:
            excess += weights[symbol] - max_weight
            weights[symbol] = max_weight

        # Constituents already held at the cap take no share of the excess.
        receivers = [s for s, w in weights.items() if w < max_weight - CAP_EPSILON]
        if not receivers:
            log.info(
                "capping_infeasible",
                constituents=len(weights),
                max_weight=max_weight,
            )
            equal = 1.0 / len(weights)
            return {symbol: equal for symbol in weights}

        receivers_total = sum(weights[s] for s in receivers)
        if receivers_total > 0:
            for symbol in receivers:
                weights[symbol] += excess * weights[symbol] / receivers_total
        else:
            share = excess / len(receivers)
            for symbol in receivers:
                weights[symbol] += share

        _renormalize(weights)
        log.debug("capping_iteration", iteration=iteration, capped=len(over), excess=excess)

    worst = max(weights.values())
    if worst > max_weight + CAP_EPSILON:
        log.warning(
            "capping_not_converged",
            iterations=max_iterations,
            max_weight=max_weight,
            worst_weight=worst,
        )
    return weights


def compute_constituent_weights(
    observations: Iterable[PriceObservation],
    max_weight: float = DEFAULT_MAX_WEIGHT,
    max_iterations: int = MAX_CAPPING_ITERATIONS,
) -> list[ConstituentWeight]:
    """Capped weights for the usable observations, largest market cap first.

    Observations with a non-positive market cap are skipped; the first
    observation per symbol wins.
    """
    by_symbol: dict[str, PriceObservation] = {}
    for obs in observations:
        if obs.market_cap > 0 and obs.symbol not in by_symbol:
            by_symbol[obs.symbol] = obs

    weights = calculate_capped_weights(
        {s: o.market_cap for s, o in by_symbol.items()},
        max_weight=max_weight,
        max_iterations=max_iterations,
    )
    ranked = sorted(by_symbol.values(), key=lambda o: o.market_cap, reverse=True)
    return [
        ConstituentWeight(
            symbol=obs.symbol,
            price=obs.price,
            market_cap=obs.market_cap,
            weight=weights.get(obs.symbol, 0.0),
            rank=i + 1,
        )
        for i, obs in enumerate(ranked)
    ]
