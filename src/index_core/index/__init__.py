"""Index calculation: capped weights, inception shares and divisor, valuation."""

from index_core.index.divisor import (
    adjust_divisor,
    build_inception_portfolio,
    inception_portfolio_for,
    rebalance_portfolio,
)
from index_core.index.valuation import (
    IndexValuation,
    price_map,
    value_benchmark,
    value_index,
    value_index_detailed,
)
from index_core.index.weights import (
    ConstituentWeight,
    calculate_capped_weights,
    calculate_equal_weights,
    calculate_market_cap_weights,
    compute_constituent_weights,
)

__all__ = [
    "ConstituentWeight",
    "IndexValuation",
    "adjust_divisor",
    "build_inception_portfolio",
    "calculate_capped_weights",
    "calculate_equal_weights",
    "calculate_market_cap_weights",
    "compute_constituent_weights",
    "inception_portfolio_for",
    "price_map",
    "rebalance_portfolio",
    "value_benchmark",
    "value_index",
    "value_index_detailed",
]
