#!/usr/bin/env python3
"""Print risk analytics for every active index straight from the database.

Usage: python scripts/analytics_report.py [--config config.yaml] [--period 30d|90d|1Y]
"""

import argparse

from index_core.analytics import PERIODS, compare_indexes, format_analytics_summary
from index_core.config.loader import load_config
from index_core.db.engine import init_engine_from_config, session_scope
from index_core.db.queries import load_snapshot_series
from index_core.logging.setup import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Index analytics report")
    parser.add_argument("--config", default=None, help="Defaults to $INDEX_CONFIG, then config.yaml")
    parser.add_argument("--period", default="90d", choices=sorted(PERIODS))
    args = parser.parse_args()

    config = load_config(args.config)
    setup_logging(level="WARNING", log_format="console")
    init_engine_from_config(config.database)

    with session_scope() as session:
        series = {d.index_symbol: load_snapshot_series(session, d.index_symbol) for d in config.active_indexes()}

    benchmarks = {symbol: series[symbol] for symbol in config.engine.benchmarks if symbol in series}
    outcomes = compare_indexes(series, PERIODS[args.period], benchmarks, config.engine)

    ranked = sorted(
        (o for o in outcomes.values() if o.success),
        key=lambda o: o.analytics.sharpe.ratio,
        reverse=True,
    )
    for outcome in ranked:
        print(format_analytics_summary(outcome.analytics))
        print()
    for outcome in outcomes.values():
        if not outcome.success:
            print(f"{outcome.index_symbol}: {outcome.error}")


if __name__ == "__main__":
    main()
