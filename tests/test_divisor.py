"""Tests for inception shares, divisor and chained rebalancing."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from index_core.config.schema import EngineConfig
from index_core.errors import InsufficientInceptionData
from index_core.index.divisor import (
    adjust_divisor,
    build_inception_portfolio,
    inception_portfolio_for,
    rebalance_portfolio,
)
from index_core.index.valuation import value_index
from index_core.models import ConstituentSet, IndexDefinition, PriceObservation

INCEPTION = datetime(2024, 11, 25, 12, tzinfo=timezone.utc)


def _prices(entries: dict[str, tuple[float, float]], ts: datetime = INCEPTION) -> dict[str, PriceObservation]:
    return {
        symbol: PriceObservation(symbol=symbol, price=price, market_cap=mc, ts=ts)
        for symbol, (price, mc) in entries.items()
    }


INCEPTION_PRICES = _prices({"A": (60.0, 600.0), "B": (3.0, 300.0), "C": (0.5, 100.0)})


def _as_price_dict(prices: dict[str, PriceObservation]) -> dict[str, float]:
    return {s: o.price for s, o in prices.items()}


class TestBuildInceptionPortfolio:
    def test_value_at_inception_equals_base_value(self):
        p = build_inception_portfolio("TRIO", ["A", "B", "C"], INCEPTION_PRICES, INCEPTION, max_weight=0.4)
        value = value_index(p.shares, p.divisor, _as_price_dict(INCEPTION_PRICES))
        assert value == pytest.approx(1000.0, rel=1e-6)

    def test_shares_follow_capped_weights(self):
        p = build_inception_portfolio(
            "TRIO", ["A", "B", "C"], INCEPTION_PRICES, INCEPTION, max_weight=0.4, notional=1_000_000,
        )
        assert p.weights == {"A": pytest.approx(0.4), "B": pytest.approx(0.4), "C": pytest.approx(0.2)}
        assert p.shares["A"] == pytest.approx(400_000 / 60.0)
        assert p.shares["C"] == pytest.approx(200_000 / 0.5)
        assert p.divisor == pytest.approx(1000.0)

    def test_custom_base_value(self):
        p = build_inception_portfolio("TRIO", ["A", "B", "C"], INCEPTION_PRICES, INCEPTION, base_value=100.0)
        assert value_index(p.shares, p.divisor, _as_price_dict(INCEPTION_PRICES)) == pytest.approx(100.0)
        assert p.base_value == 100.0

    def test_constituent_without_price_is_dropped(self):
        p = build_inception_portfolio("TRIO", ["A", "B", "C", "D"], INCEPTION_PRICES, INCEPTION, max_weight=0.4)
        assert set(p.shares) == {"A", "B", "C"}

    def test_zero_market_cap_is_dropped(self):
        prices = _prices({"A": (10.0, 500.0), "B": (1.0, 0.0)})
        p = build_inception_portfolio("X", ["A", "B"], prices, INCEPTION)
        assert set(p.shares) == {"A"}
        assert p.weights["A"] == pytest.approx(1.0)

    def test_no_usable_constituent_raises(self):
        with pytest.raises(InsufficientInceptionData) as exc_info:
            build_inception_portfolio("EMPTY", ["X", "Y"], INCEPTION_PRICES, INCEPTION)
        assert exc_info.value.index_symbol == "EMPTY"

    def test_later_value_moves_with_prices(self):
        p = build_inception_portfolio("TRIO", ["A", "B", "C"], INCEPTION_PRICES, INCEPTION, max_weight=0.4)
        doubled = {s: o.price * 2 for s, o in INCEPTION_PRICES.items()}
        assert value_index(p.shares, p.divisor, doubled) == pytest.approx(2000.0)


class TestInceptionPortfolioFor:
    def test_uses_definition_cap_and_base(self):
        definition = IndexDefinition(
            index_symbol="TRIO-MCW", base_index="TRIO", inception_ts=INCEPTION, weight_cap=0.4, base_value=500,
        )
        constituents = ConstituentSet(name="TRIO", symbols=("A", "B", "C"))
        p = inception_portfolio_for(definition, constituents, INCEPTION_PRICES, EngineConfig())
        assert p.index_symbol == "TRIO-MCW"
        assert p.ts == INCEPTION
        assert max(p.weights.values()) <= 0.4 + 1e-9
        assert value_index(p.shares, p.divisor, _as_price_dict(INCEPTION_PRICES)) == pytest.approx(500.0)

    def test_inherits_engine_cap_and_base(self):
        definition = IndexDefinition(index_symbol="TRIO-MCW", base_index="TRIO", inception_ts=INCEPTION)
        constituents = ConstituentSet(name="TRIO", symbols=("A", "B", "C"))
        p = inception_portfolio_for(
            definition, constituents, INCEPTION_PRICES, EngineConfig(weight_cap=0.4, base_value=100),
        )
        assert p.weights == pytest.approx({"A": 0.4, "B": 0.4, "C": 0.2})
        assert p.base_value == 100
        assert value_index(p.shares, p.divisor, _as_price_dict(INCEPTION_PRICES)) == pytest.approx(100.0)


class TestRebalance:
    def test_adjust_divisor_scales_with_portfolio_value(self):
        assert adjust_divisor(2.0, 1000.0, 1500.0) == pytest.approx(3.0)

    def test_adjust_divisor_rejects_zero_old_value(self):
        with pytest.raises(ValueError):
            adjust_divisor(2.0, 0.0, 1500.0)

    def test_level_continuous_across_rebalance(self):
        p = build_inception_portfolio("TRIO", ["A", "B", "C"], INCEPTION_PRICES, INCEPTION, max_weight=0.4)
        later = INCEPTION + timedelta(days=30)
        prices = _prices({"A": (90.0, 900.0), "B": (2.0, 200.0), "C": (1.0, 200.0), "D": (5.0, 300.0)}, later)
        before = value_index(p.shares, p.divisor, _as_price_dict(prices))

        rebalanced = rebalance_portfolio(p, ["A", "B", "C", "D"], prices, later, max_weight=0.4)
        after = value_index(rebalanced.shares, rebalanced.divisor, _as_price_dict(prices))

        assert after == pytest.approx(before, rel=1e-9)
        assert set(rebalanced.shares) == {"A", "B", "C", "D"}
        assert rebalanced.ts == later
        assert p.shares.keys() == {"A", "B", "C"}
