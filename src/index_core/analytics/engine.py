"""Per-index analytics over a stored value series.

Everything here is a pure function of the series handed in: the caller does
one bulk read per index (see ``index_core.db.queries``) and passes the
points. The analysis window ends at ``as_of``, which defaults to the last
point of the series, so the same inputs always produce the same result.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import structlog

from index_core.analytics.formulas import (
    BetaMetrics,
    DrawdownMetrics,
    SeriesPoint,
    SharpeMetrics,
    SortinoMetrics,
    VolatilityMetrics,
    calculate_beta,
    calculate_max_drawdown,
    calculate_sharpe_ratio,
    calculate_sortino_ratio,
    calculate_volatility,
    daily_returns,
    total_return,
)
from index_core.config.schema import EngineConfig
from index_core.errors import IndexCoreError, InsufficientData

log = structlog.get_logger("analytics")

PERIODS: dict[str, int] = {"30d": 30, "90d": 90, "1Y": 365}


def period_label(days: int) -> str:
    """Human label for a window length: 30d, 90d, 1Y, or ``<n>d``."""
    if days <= 30:
        return "30d"
    if days <= 90:
        return "90d"
    if days <= 365:
        return "1Y"
    return f"{days}d"


@dataclass(frozen=True)
class IndexAnalytics:
    index_symbol: str
    period_days: int
    period_label: str
    start_ts: datetime
    end_ts: datetime
    data_points: int
    total_return: float
    volatility: VolatilityMetrics
    sharpe: SharpeMetrics
    sortino: SortinoMetrics
    max_drawdown: DrawdownMetrics
    # benchmark symbol -> metrics; benchmarks without data are absent
    betas: dict[str, BetaMetrics] = field(default_factory=dict)


@dataclass(frozen=True)
class AnalyticsOutcome:
    """Result of one (index, period) unit of work."""

    index_symbol: str
    period_days: int
    analytics: IndexAnalytics | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.analytics is not None


@dataclass(frozen=True)
class MultiPeriodAnalytics:
    index_symbol: str
    periods: dict[str, AnalyticsOutcome]

    def available(self) -> dict[str, IndexAnalytics]:
        return {
            label: outcome.analytics
            for label, outcome in self.periods.items()
            if outcome.analytics is not None
        }


def window(
    series: Sequence[SeriesPoint],
    period_days: int,
    as_of: datetime | None = None,
) -> list[SeriesPoint]:
    """Points with ``as_of - period_days <= ts <= as_of``, oldest first."""
    ordered = sorted(series, key=lambda p: p.ts)
    if not ordered:
        return []
    end = as_of or ordered[-1].ts
    start = end - timedelta(days=period_days)
    return [p for p in ordered if start <= p.ts <= end]


def compute_analytics(
    index_symbol: str,
    series: Sequence[SeriesPoint],
    period_days: int,
    benchmarks: Mapping[str, Sequence[SeriesPoint]] | None = None,
    config: EngineConfig | None = None,
    as_of: datetime | None = None,
) -> IndexAnalytics:
    """Risk/return analytics of one index over the trailing *period_days*.

    Beta is computed against every benchmark series except the index's own
    and except benchmarks with fewer than 2 points in the window.

    Raises:
        InsufficientData: fewer than 2 points fall in the window.
    """
    config = config or EngineConfig()
    points = window(series, period_days, as_of)
    if len(points) < 2:
        raise InsufficientData(
            f"Insufficient data for {index_symbol}. Found {len(points)} data "
            f"points, need at least 2.",
            index_symbol,
            period_days=period_days,
            data_points=len(points),
        )

    # benchmark windows end where the index window ends
    end = points[-1].ts if as_of is None else as_of
    values = [p.value for p in points]
    returns = daily_returns(values)
    days = config.trading_days_per_year

    betas: dict[str, BetaMetrics] = {}
    for symbol, benchmark_series in (benchmarks or {}).items():
        if symbol == index_symbol:
            continue
        benchmark_points = window(benchmark_series, period_days, end)
        if len(benchmark_points) < 2:
            continue
        betas[symbol] = calculate_beta(
            returns, daily_returns([p.value for p in benchmark_points]),
        )

    return IndexAnalytics(
        index_symbol=index_symbol,
        period_days=period_days,
        period_label=period_label(period_days),
        start_ts=points[0].ts,
        end_ts=points[-1].ts,
        data_points=len(points),
        total_return=total_return(values),
        volatility=calculate_volatility(returns, days),
        sharpe=calculate_sharpe_ratio(returns, config.risk_free_rate, days),
        sortino=calculate_sortino_ratio(
            returns, config.risk_free_rate, days, config.downside_threshold,
        ),
        max_drawdown=calculate_max_drawdown(points),
        betas=betas,
    )


def analyze(
    index_symbol: str,
    series: Sequence[SeriesPoint],
    period_days: int,
    benchmarks: Mapping[str, Sequence[SeriesPoint]] | None = None,
    config: EngineConfig | None = None,
    as_of: datetime | None = None,
) -> AnalyticsOutcome:
    """compute_analytics wrapped into a success/failure outcome."""
    try:
        analytics = compute_analytics(
            index_symbol, series, period_days, benchmarks, config, as_of,
        )
    except IndexCoreError as exc:
        log.info("analytics_unavailable", index=index_symbol, period_days=period_days, reason=str(exc))
        return AnalyticsOutcome(index_symbol, period_days, error=str(exc))
    return AnalyticsOutcome(index_symbol, period_days, analytics=analytics)


def compute_all_periods(
    index_symbol: str,
    series: Sequence[SeriesPoint],
    benchmarks: Mapping[str, Sequence[SeriesPoint]] | None = None,
    config: EngineConfig | None = None,
    as_of: datetime | None = None,
) -> MultiPeriodAnalytics:
    """Analytics for each standard period; each period succeeds or fails alone."""
    if as_of is None and series:
        as_of = max(p.ts for p in series)
    return MultiPeriodAnalytics(
        index_symbol=index_symbol,
        periods={
            label: analyze(index_symbol, series, days, benchmarks, config, as_of)
            for label, days in PERIODS.items()
        },
    )


def compare_indexes(
    series_by_index: Mapping[str, Sequence[SeriesPoint]],
    period_days: int,
    benchmarks: Mapping[str, Sequence[SeriesPoint]] | None = None,
    config: EngineConfig | None = None,
    as_of: datetime | None = None,
) -> dict[str, AnalyticsOutcome]:
    """One outcome per index for the same period, keyed by index symbol."""
    return {
        symbol: analyze(symbol, series, period_days, benchmarks, config, as_of)
        for symbol, series in series_by_index.items()
    }


def format_analytics_summary(analytics: IndexAnalytics) -> str:
    """Plain-text report of one analytics result."""
    sortino = analytics.sortino
    sortino_text = "Inf" if sortino.unbounded else f"{sortino.ratio:.2f}"
    lines = [
        f"=== {analytics.index_symbol} Analytics ({analytics.period_label}) ===",
        f"Period: {analytics.start_ts.date().isoformat()} to {analytics.end_ts.date().isoformat()}",
        "",
        "Performance:",
        f"  Total Return: {analytics.total_return * 100:.2f}%",
        f"  Annualized Return: {analytics.sharpe.annualized_return * 100:.2f}%",
        "",
        "Risk Metrics:",
        f"  Volatility (Annualized): {analytics.volatility.annualized * 100:.2f}%",
        f"  Max Drawdown: {analytics.max_drawdown.max_drawdown_percent}",
        "",
        "Risk-Adjusted Returns:",
        f"  Sharpe Ratio: {analytics.sharpe.ratio:.2f}",
        f"  Sortino Ratio: {sortino_text}",
        "",
    ]
    for symbol, beta in analytics.betas.items():
        lines.append(
            f"Beta vs {symbol}: {beta.beta:.2f} (R-squared: {beta.r_squared * 100:.1f}%)"
        )
    return "\n".join(lines)
