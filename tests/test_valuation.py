"""Tests for index valuation from fixed shares and a divisor."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from index_core.errors import NoValidPrices
from index_core.index.valuation import (
    price_map,
    value_benchmark,
    value_index,
    value_index_detailed,
)
from index_core.models import PriceObservation

SHARES = {"A": 10.0, "B": 20.0, "C": 5.0}
DIVISOR = 0.5


class TestValueIndex:
    def test_sum_of_shares_times_prices_over_divisor(self):
        value = value_index(SHARES, DIVISOR, {"A": 1.0, "B": 2.0, "C": 4.0})
        assert value == pytest.approx((10 + 40 + 20) / 0.5)

    def test_deterministic(self):
        prices = {"A": 1.1, "B": 2.3, "C": 0.7}
        assert value_index(SHARES, DIVISOR, prices) == value_index(SHARES, DIVISOR, prices)

    def test_missing_constituent_contributes_zero(self):
        value = value_index(SHARES, DIVISOR, {"A": 1.0, "B": 2.0})
        assert value == pytest.approx(50 / 0.5)

    def test_zero_price_treated_as_missing(self):
        detail = value_index_detailed(SHARES, DIVISOR, {"A": 1.0, "B": 0.0, "C": 4.0})
        assert detail.missing_symbols == ("B",)

    def test_extra_prices_ignored(self):
        value = value_index(SHARES, DIVISOR, {"A": 1.0, "B": 2.0, "C": 4.0, "ZZZ": 1e9})
        assert value == pytest.approx(140.0)

    def test_all_missing_raises(self):
        with pytest.raises(NoValidPrices):
            value_index(SHARES, DIVISOR, {"X": 1.0})

    def test_empty_shares_raises(self):
        with pytest.raises(NoValidPrices):
            value_index({}, DIVISOR, {"A": 1.0})

    def test_non_positive_divisor_rejected(self):
        with pytest.raises(ValueError):
            value_index(SHARES, 0.0, {"A": 1.0})


class TestValueIndexDetailed:
    def test_full_coverage(self):
        detail = value_index_detailed(SHARES, DIVISOR, {"A": 1.0, "B": 1.0, "C": 1.0})
        assert detail.coverage_ratio == 1.0
        assert detail.missing_symbols == ()

    def test_partial_coverage(self):
        detail = value_index_detailed(SHARES, DIVISOR, {"A": 1.0, "C": 1.0})
        assert detail.coverage_ratio == pytest.approx(2 / 3)
        assert detail.missing_symbols == ("B",)

    def test_error_carries_index_symbol(self):
        with pytest.raises(NoValidPrices) as exc_info:
            value_index_detailed(SHARES, DIVISOR, {}, index_symbol="TRIO-MCW")
        assert exc_info.value.index_symbol == "TRIO-MCW"


class TestValueBenchmark:
    def test_raw_price(self):
        assert value_benchmark("BTC", {"BTC": 97000.5, "ETH": 3400}) == 97000.5

    def test_missing_price_raises(self):
        with pytest.raises(NoValidPrices) as exc_info:
            value_benchmark("BTC", {"ETH": 3400})
        assert exc_info.value.index_symbol == "BTC"


class TestPriceMap:
    def test_first_observation_wins(self):
        ts = datetime(2025, 1, 1, 12, tzinfo=timezone.utc)
        observations = [
            PriceObservation(symbol="A", price=1.0, market_cap=10, ts=ts),
            PriceObservation(symbol="A", price=2.0, market_cap=10, ts=ts),
            PriceObservation(symbol="B", price=3.0, market_cap=10, ts=ts),
        ]
        assert price_map(observations) == {"A": 1.0, "B": 3.0}
