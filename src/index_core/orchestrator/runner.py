"""Orchestrator runner: daily valuation of every active index on a schedule."""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from index_core.config.loader import load_config
from index_core.config.schema import AppConfig, EngineConfig
from index_core.db.engine import init_engine_from_config, session_scope
from index_core.db.queries import load_snapshot_rows, snapshot_exists, sync_index_configs
from index_core.errors import IndexCoreError
from index_core.logging.setup import bind_run_context, get_logger, setup_logging
from index_core.models import (
    ConstituentSet,
    InceptionPortfolio,
    IndexDefinition,
    normalize_timestamp,
)
from index_core.orchestrator.persistence import persist_snapshot, record_collection
from index_core.orchestrator.snapshot import (
    build_inception,
    build_price_snapshot,
    compute_snapshot,
)

log = get_logger(__name__)

# Stored values closer than this (relative) are left untouched on recalculation.
RECALC_TOLERANCE = 0.0001


@dataclass(frozen=True)
class ValuationOutcome:
    """Result of valuing one index for one day."""

    index_symbol: str
    ts: datetime
    value: float | None = None
    coverage_ratio: float | None = None
    skipped: bool = False
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class RecalculationResult:
    index_symbol: str
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0


def should_run(last_run: datetime | None, now: datetime, min_interval: timedelta) -> bool:
    """True when no run happened yet or *min_interval* has elapsed since *last_run*."""
    return last_run is None or now - last_run >= min_interval


def _value_one(
    session: Session,
    definition: IndexDefinition,
    constituents: ConstituentSet,
    ts: datetime,
    engine_config: EngineConfig,
) -> ValuationOutcome:
    if snapshot_exists(session, definition.index_symbol, ts):
        log.info("snapshot_skipped", index=definition.index_symbol, ts=ts.isoformat())
        return ValuationOutcome(definition.index_symbol, ts, skipped=True)

    portfolio: InceptionPortfolio | None = None
    if not definition.is_benchmark:
        portfolio = build_inception(session, definition, constituents, engine_config)

    prices = build_price_snapshot(session, constituents, ts)
    snapshot = compute_snapshot(definition, prices, ts, portfolio)
    row_id = persist_snapshot(session, snapshot)
    log.info(
        "snapshot_stored",
        index=definition.index_symbol,
        value=snapshot.value,
        coverage=snapshot.coverage_ratio,
        snapshot_id=row_id,
    )
    return ValuationOutcome(
        definition.index_symbol, ts, value=snapshot.value, coverage_ratio=snapshot.coverage_ratio,
    )


def run_daily_valuation(
    session: Session,
    config: AppConfig,
    now: datetime,
) -> list[ValuationOutcome]:
    """Value every active index for the calendar day of *now*.

    Indexes already valued for the day are skipped. A domain failure of one
    index (no inception data, no prices) is recorded and the run continues.
    One collection_log row summarizes the run.
    """
    started = time.monotonic()
    ts = normalize_timestamp(now)
    outcomes: list[ValuationOutcome] = []

    for definition in config.active_indexes():
        constituents = config.constituents_for(definition)
        try:
            outcome = _value_one(session, definition, constituents, ts, config.engine)
        except IndexCoreError as exc:
            session.rollback()
            log.warning("valuation_failed", index=definition.index_symbol, error=str(exc))
            outcome = ValuationOutcome(definition.index_symbol, ts, error=str(exc))
        outcomes.append(outcome)

    errors = [f"{o.index_symbol}: {o.error}" for o in outcomes if o.error]
    succeeded = sum(1 for o in outcomes if o.success)
    record_collection(
        session,
        ts=ts,
        succeeded=succeeded,
        errors=errors,
        duration_ms=int((time.monotonic() - started) * 1000),
    )
    log.info(
        "valuation_run_complete",
        ts=ts.isoformat(),
        stored=succeeded,
        skipped=sum(1 for o in outcomes if o.skipped),
        failed=len(errors),
    )
    return outcomes


def recalculate_history(
    session: Session,
    definition: IndexDefinition,
    constituents: ConstituentSet,
    engine_config: EngineConfig | None = None,
) -> RecalculationResult:
    """Re-value every stored snapshot of a capped index from a fresh inception.

    Only values that moved by more than 0.01% are rewritten. Days without any
    constituent price are left as stored.

    Raises:
        InsufficientInceptionData: the inception portfolio cannot be built.
    """
    if definition.is_benchmark:
        raise ValueError(f"{definition.index_symbol} is a benchmark, nothing to recalculate")

    portfolio = build_inception(session, definition, constituents, engine_config)
    updated = unchanged = skipped = 0

    for row in load_snapshot_rows(session, definition.index_symbol):
        ts = normalize_timestamp(row.ts)
        prices = build_price_snapshot(session, constituents, ts)
        try:
            snapshot = compute_snapshot(definition, prices, ts, portfolio)
        except IndexCoreError:
            skipped += 1
            continue

        old_value = float(row.value)
        if old_value and abs(snapshot.value - old_value) / old_value <= RECALC_TOLERANCE:
            unchanged += 1
            continue
        row.value = snapshot.value
        row.coverage_ratio = snapshot.coverage_ratio
        updated += 1

    session.commit()
    log.info(
        "history_recalculated",
        index=definition.index_symbol,
        updated=updated,
        unchanged=unchanged,
        skipped=skipped,
    )
    return RecalculationResult(definition.index_symbol, updated, unchanged, skipped)


async def run_loop(config: AppConfig) -> None:
    """Main orchestrator loop: value all indexes once per scheduling interval."""
    init_engine_from_config(config.database)
    min_interval = timedelta(seconds=config.schedule.min_interval_s)
    log.info(
        "orchestrator_started",
        indexes=[d.index_symbol for d in config.active_indexes()],
        min_interval_s=config.schedule.min_interval_s,
    )

    with session_scope() as session:
        sync_index_configs(
            session,
            config.indexes,
            {d.index_symbol: len(config.constituents_for(d).symbols) for d in config.indexes},
        )

    last_run: datetime | None = None
    while True:
        now = datetime.now(timezone.utc)
        if should_run(last_run, now, min_interval):
            bind_run_context(uuid.uuid4().hex[:12])
            try:
                with session_scope() as session:
                    run_daily_valuation(session, config, now)
                last_run = now
            except Exception:
                log.exception("tick_error")

        await asyncio.sleep(config.schedule.tick_s)


def main(config_path: str | None = None) -> None:
    """Entry point: load config, set up logging, run the async loop."""
    config = load_config(config_path)
    setup_logging(level=config.logging.level, log_format=config.logging.format)
    asyncio.run(run_loop(config))
