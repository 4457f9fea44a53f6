"""Returns and risk analytics over index value series."""

from index_core.analytics.cache import MetricsCache
from index_core.analytics.engine import (
    PERIODS,
    AnalyticsOutcome,
    IndexAnalytics,
    MultiPeriodAnalytics,
    compare_indexes,
    compute_all_periods,
    compute_analytics,
    format_analytics_summary,
    period_label,
)
from index_core.analytics.formulas import SeriesPoint

__all__ = [
    "PERIODS",
    "AnalyticsOutcome",
    "IndexAnalytics",
    "MetricsCache",
    "MultiPeriodAnalytics",
    "SeriesPoint",
    "compare_indexes",
    "compute_all_periods",
    "compute_analytics",
    "format_analytics_summary",
    "period_label",
]
