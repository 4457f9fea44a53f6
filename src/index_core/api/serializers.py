"""Wire format of analytics results: camelCase keys, rounded numbers."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from index_core.analytics.engine import IndexAnalytics
from index_core.analytics.formulas import BetaMetrics, SortinoMetrics
from index_core.index.weights import ConstituentWeight


def round_to(value: float, decimals: int) -> float:
    return round(value, decimals)


def _iso(ts: datetime | None) -> str | None:
    return ts.isoformat() if ts is not None else None


def sortino_value(sortino: SortinoMetrics, cap: float) -> float:
    """An unbounded Sortino ratio is rendered as *cap*."""
    if sortino.unbounded or sortino.ratio is None:
        return cap
    return round_to(sortino.ratio, 2)


def format_beta(beta: BetaMetrics) -> dict[str, float]:
    return {
        "beta": round_to(beta.beta, 3),
        "correlation": round_to(beta.correlation, 3),
        "rSquared": round_to(beta.r_squared, 3),
    }


def format_period_analytics(analytics: IndexAnalytics, sortino_cap: float = 999.99) -> dict[str, Any]:
    dd = analytics.max_drawdown
    payload: dict[str, Any] = {
        "volatility": {
            "daily": round_to(analytics.volatility.daily, 6),
            "annualized": round_to(analytics.volatility.annualized, 4),
        },
        "sharpeRatio": {
            "value": round_to(analytics.sharpe.ratio, 2),
            "annualizedReturn": round_to(analytics.sharpe.annualized_return, 4),
            "annualizedVolatility": round_to(analytics.sharpe.annualized_volatility, 4),
            "riskFreeRate": analytics.sharpe.risk_free_rate,
        },
        "sortinoRatio": {
            "value": sortino_value(analytics.sortino, sortino_cap),
            "unbounded": analytics.sortino.unbounded,
            "annualizedReturn": round_to(analytics.sortino.annualized_return, 4),
            "downsideDeviation": round_to(analytics.sortino.downside_deviation, 4),
            "riskFreeRate": analytics.sortino.risk_free_rate,
        },
        "maxDrawdown": {
            "percentage": round_to(dd.max_drawdown * 100, 2),
            "peakDate": _iso(dd.peak_ts),
            "troughDate": _iso(dd.trough_ts),
            "peakValue": dd.peak_value,
            "troughValue": dd.trough_value,
            "durationDays": dd.duration_days,
        },
        "totalReturn": round_to(analytics.total_return * 100, 2),
        "dataPoints": analytics.data_points,
        "startDate": _iso(analytics.start_ts),
        "endDate": _iso(analytics.end_ts),
    }
    for symbol, beta in analytics.betas.items():
        payload[f"betaVs{symbol}"] = format_beta(beta)
    return payload


def format_holding(holding: ConstituentWeight, name: str | None = None) -> dict[str, Any]:
    return {
        "rank": holding.rank,
        "symbol": holding.symbol,
        "name": name,
        "price": holding.price,
        "marketCap": holding.market_cap,
        "weight": round_to(holding.weight * 100, 2),
    }
