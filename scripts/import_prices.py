#!/usr/bin/env python3
"""Load daily price observations from a CSV export into index_data.prices.

Expected columns: symbol, price, market_cap, timestamp, and optionally name,
volume_24h, change_24h, change_7d, change_30d. Timestamps are normalized to
12:00 UTC; rows already stored for the same (symbol, day) are skipped.

Usage: python scripts/import_prices.py prices.csv [--config config.yaml]
"""

import argparse
import csv
from datetime import datetime

from index_core.config.loader import load_config
from index_core.db.engine import init_engine_from_config, session_scope
from index_core.db.queries import insert_prices
from index_core.logging.setup import get_logger, setup_logging
from index_core.models import PriceObservation, normalize_timestamp

log = get_logger("import_prices")

OPTIONAL_FLOATS = ("volume_24h", "change_24h", "change_7d", "change_30d")


def parse_row(row: dict[str, str]) -> PriceObservation:
    extras = {key: float(row[key]) for key in OPTIONAL_FLOATS if row.get(key)}
    return PriceObservation(
        symbol=row["symbol"].strip().upper(),
        name=row.get("name") or None,
        price=float(row["price"]),
        market_cap=float(row["market_cap"]),
        ts=normalize_timestamp(datetime.fromisoformat(row["timestamp"].replace("Z", "+00:00"))),
        **extras,
    )


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("csv_path")
    parser.add_argument("--config", default=None, help="Defaults to $INDEX_CONFIG, then config.yaml")
    args = parser.parse_args()

    config = load_config(args.config)
    setup_logging(level=config.logging.level, log_format=config.logging.format)
    init_engine_from_config(config.database)

    with open(args.csv_path, newline="") as f:
        observations = [parse_row(row) for row in csv.DictReader(f)]

    with session_scope() as session:
        added = insert_prices(session, observations)
    log.info("prices_imported", rows=len(observations), added=added, skipped=len(observations) - added)


if __name__ == "__main__":
    main()
