"""Pure risk/return formulas, no DB access.

Returns are daily simple returns. Annualization uses 365 periods per year
by default since crypto markets have no closed sessions.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

import numpy as np

TRADING_DAYS_PER_YEAR = 365
DEFAULT_RISK_FREE_RATE = 0.05

# Dispersion below this is float residue (e.g. constant growth), treated as 0.
ZERO_TOLERANCE = 1e-12


@dataclass(frozen=True)
class SeriesPoint:
    """One (timestamp, value) observation of an index or benchmark."""

    ts: datetime
    value: float


@dataclass(frozen=True)
class VolatilityMetrics:
    daily: float
    annualized: float
    data_points: int


@dataclass(frozen=True)
class SharpeMetrics:
    ratio: float
    annualized_return: float
    annualized_volatility: float
    risk_free_rate: float


@dataclass(frozen=True)
class SortinoMetrics:
    """Sortino ratio; ``ratio`` is None exactly when ``unbounded`` is set.

    Unbounded means no downside deviation while the annualized return beats
    the risk-free rate. How to render that is left to the caller.
    """

    ratio: float | None
    annualized_return: float
    downside_deviation: float
    risk_free_rate: float
    unbounded: bool = False


@dataclass(frozen=True)
class DrawdownMetrics:
    max_drawdown: float = 0.0
    peak_ts: datetime | None = None
    trough_ts: datetime | None = None
    peak_value: float | None = None
    trough_value: float | None = None
    duration_days: int | None = None

    @property
    def max_drawdown_percent(self) -> str:
        return f"{self.max_drawdown * 100:.2f}%"


@dataclass(frozen=True)
class BetaMetrics:
    beta: float = 0.0
    correlation: float = 0.0
    covariance: float = 0.0
    benchmark_variance: float = 0.0
    r_squared: float = 0.0


def daily_returns(values: Sequence[float]) -> list[float]:
    """(v[i] - v[i-1]) / v[i-1]; 0 where the previous value is 0."""
    returns = []
    for i in range(1, len(values)):
        prev = values[i - 1]
        returns.append(0.0 if prev == 0 else (values[i] - prev) / prev)
    return returns


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def sample_std(values: Sequence[float]) -> float:
    """Standard deviation with ddof=1; 0 for fewer than 2 values."""
    if len(values) < 2:
        return 0.0
    return float(np.std(np.asarray(values, dtype=np.float64), ddof=1))


def sample_variance(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    return float(np.var(np.asarray(values, dtype=np.float64), ddof=1))


def sample_covariance(x: Sequence[float], y: Sequence[float]) -> float:
    """Covariance with n-1 denominator; 0 on length mismatch or n < 2."""
    if len(x) != len(y) or len(x) < 2:
        return 0.0
    ax = np.asarray(x, dtype=np.float64)
    ay = np.asarray(y, dtype=np.float64)
    return float(np.sum((ax - ax.mean()) * (ay - ay.mean())) / (len(ax) - 1))


def calculate_volatility(
    returns: Sequence[float],
    trading_days: int = TRADING_DAYS_PER_YEAR,
) -> VolatilityMetrics:
    """Daily sample std of returns and its annualization (x sqrt(days))."""
    daily = sample_std(returns)
    return VolatilityMetrics(
        daily=daily,
        annualized=daily * math.sqrt(trading_days),
        data_points=len(returns),
    )


def calculate_sharpe_ratio(
    returns: Sequence[float],
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    trading_days: int = TRADING_DAYS_PER_YEAR,
) -> SharpeMetrics:
    """(mean * days - rf) / annualized volatility; 0 when volatility is 0."""
    if len(returns) == 0:
        return SharpeMetrics(0.0, 0.0, 0.0, risk_free_rate)

    annualized_return = mean(returns) * trading_days
    volatility = calculate_volatility(returns, trading_days)
    if volatility.annualized < ZERO_TOLERANCE:
        return SharpeMetrics(0.0, annualized_return, 0.0, risk_free_rate)

    return SharpeMetrics(
        ratio=(annualized_return - risk_free_rate) / volatility.annualized,
        annualized_return=annualized_return,
        annualized_volatility=volatility.annualized,
        risk_free_rate=risk_free_rate,
    )


def downside_deviation(returns: Sequence[float], threshold: float = 0.0) -> float:
    """sqrt(mean(min(r - threshold, 0)^2)) over the full sample."""
    if len(returns) == 0:
        return 0.0
    arr = np.asarray(returns, dtype=np.float64)
    shortfall = np.minimum(arr - threshold, 0.0)
    return float(np.sqrt(np.mean(shortfall**2)))


def calculate_sortino_ratio(
    returns: Sequence[float],
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    trading_days: int = TRADING_DAYS_PER_YEAR,
    threshold: float = 0.0,
) -> SortinoMetrics:
    """(mean * days - rf) / annualized downside deviation."""
    if len(returns) == 0:
        return SortinoMetrics(0.0, 0.0, 0.0, risk_free_rate)

    annualized_return = mean(returns) * trading_days
    annualized_dd = downside_deviation(returns, threshold) * math.sqrt(trading_days)

    if annualized_dd < ZERO_TOLERANCE:
        if annualized_return > risk_free_rate:
            return SortinoMetrics(None, annualized_return, 0.0, risk_free_rate, unbounded=True)
        return SortinoMetrics(0.0, annualized_return, 0.0, risk_free_rate)

    return SortinoMetrics(
        ratio=(annualized_return - risk_free_rate) / annualized_dd,
        annualized_return=annualized_return,
        downside_deviation=annualized_dd,
        risk_free_rate=risk_free_rate,
    )


def calculate_max_drawdown(points: Sequence[SeriesPoint]) -> DrawdownMetrics:
    """Worst peak-to-trough decline in one forward scan.

    The running peak starts at the first value. Fewer than 2 points give a
    zero drawdown with no dates; a series that never declines reports the
    first point as both peak and trough.
    """
    if len(points) < 2:
        return DrawdownMetrics()

    first = points[0]
    peak, peak_ts = first.value, first.ts
    worst = 0.0
    worst_peak, worst_peak_ts = first.value, first.ts
    worst_trough, worst_trough_ts = first.value, first.ts

    for point in points:
        if point.value > peak:
            peak, peak_ts = point.value, point.ts
        if peak <= 0:
            continue
        drawdown = (point.value - peak) / peak
        if drawdown < worst:
            worst = drawdown
            worst_peak, worst_peak_ts = peak, peak_ts
            worst_trough, worst_trough_ts = point.value, point.ts

    duration = round((worst_trough_ts - worst_peak_ts).total_seconds() / 86400)
    return DrawdownMetrics(
        max_drawdown=worst,
        peak_ts=worst_peak_ts,
        trough_ts=worst_trough_ts,
        peak_value=worst_peak,
        trough_value=worst_trough,
        duration_days=duration,
    )


def calculate_beta(
    index_returns: Sequence[float],
    benchmark_returns: Sequence[float],
) -> BetaMetrics:
    """Beta, correlation and R^2 of index vs benchmark returns.

    Both series are truncated to the shorter length, aligned from the start.
    """
    n = min(len(index_returns), len(benchmark_returns))
    if n < 2:
        return BetaMetrics()

    index_slice = list(index_returns[:n])
    benchmark_slice = list(benchmark_returns[:n])

    cov = sample_covariance(index_slice, benchmark_slice)
    benchmark_var = sample_variance(benchmark_slice)
    index_var = sample_variance(index_slice)

    if benchmark_var < ZERO_TOLERANCE**2:
        return BetaMetrics(covariance=cov)

    correlation = 0.0
    if index_var >= ZERO_TOLERANCE**2:
        correlation = cov / (math.sqrt(index_var) * math.sqrt(benchmark_var))

    return BetaMetrics(
        beta=cov / benchmark_var,
        correlation=correlation,
        covariance=cov,
        benchmark_variance=benchmark_var,
        r_squared=correlation**2,
    )


def total_return(values: Sequence[float]) -> float:
    """(last - first) / first; 0 for fewer than 2 values or a zero start."""
    if len(values) < 2 or values[0] == 0:
        return 0.0
    return (values[-1] - values[0]) / values[0]
