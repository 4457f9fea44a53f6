"""Tests for the orchestrator: snapshot builder, persistence, daily runs."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from index_core.db.tables import CollectionLogRow, IndexSnapshotRow, PriceRow
from index_core.errors import InsufficientInceptionData, NoValidPrices
from index_core.models import IndexSnapshot
from index_core.orchestrator.persistence import collection_status, persist_snapshot, record_collection
from index_core.orchestrator.runner import recalculate_history, run_daily_valuation, should_run
from index_core.orchestrator.snapshot import build_inception, build_price_snapshot, compute_snapshot

INCEPTION = datetime(2024, 11, 25, 12, tzinfo=timezone.utc)
DAY1 = INCEPTION + timedelta(days=1)
DAY2 = INCEPTION + timedelta(days=2)

# price, market cap
INCEPTION_MARKET = {
    "AAA": (60.0, 600.0),
    "BBB": (3.0, 300.0),
    "CCC": (0.5, 100.0),
    "BTC": (95000.0, 1.9e12),
    "ETH": (3400.0, 4.1e11),
}


def _seed_prices(session, market: dict[str, tuple[float, float]], ts: datetime, scale: float = 1.0) -> None:
    for symbol, (price, mc) in market.items():
        session.add(PriceRow(symbol=symbol, price=price * scale, market_cap=mc * scale, ts=ts))
    session.commit()


def _snapshots(session, index_name: str) -> list[IndexSnapshotRow]:
    return list(
        session.execute(
            select(IndexSnapshotRow).where(IndexSnapshotRow.index_name == index_name).order_by(IndexSnapshotRow.ts)
        ).scalars()
    )


# ── Snapshot builder ────────────────────────────────────────────


class TestBuildInception:
    def test_value_at_inception_is_base(self, db_session, app_config):
        _seed_prices(db_session, INCEPTION_MARKET, INCEPTION + timedelta(hours=3))
        definition = app_config.get_index("TRIO-MCW")
        constituents = app_config.constituents_for(definition)

        portfolio = build_inception(db_session, definition, constituents, app_config.engine)
        prices = build_price_snapshot(db_session, constituents, INCEPTION)
        snapshot = compute_snapshot(definition, prices, INCEPTION, portfolio)
        assert snapshot.value == pytest.approx(1000.0)
        assert snapshot.coverage_ratio == 1.0
        assert max(portfolio.weights.values()) <= 0.4 + 1e-9

    def test_no_inception_prices_raises(self, db_session, app_config):
        definition = app_config.get_index("TRIO-MCW")
        with pytest.raises(InsufficientInceptionData):
            build_inception(db_session, definition, app_config.constituents_for(definition))

    def test_benchmark_uses_raw_price(self, db_session, app_config):
        _seed_prices(db_session, INCEPTION_MARKET, DAY1)
        definition = app_config.get_index("BTC")
        prices = build_price_snapshot(db_session, app_config.constituents_for(definition), DAY1)
        assert compute_snapshot(definition, prices, DAY1).value == pytest.approx(95000.0)

    def test_benchmark_without_price_raises(self, app_config):
        with pytest.raises(NoValidPrices):
            compute_snapshot(app_config.get_index("ETH"), {}, DAY1)


# ── Persistence ─────────────────────────────────────────────────


class TestPersistence:
    def test_persist_snapshot_returns_id(self, db_session):
        row_id = persist_snapshot(db_session, IndexSnapshot(index_symbol="X", ts=DAY1, value=1000.0))
        assert isinstance(row_id, int)
        assert row_id > 0

    @pytest.mark.parametrize("succeeded,failed,status", [(3, 0, "success"), (0, 0, "success"), (2, 1, "partial"), (0, 2, "failed")])
    def test_collection_status(self, succeeded, failed, status):
        assert collection_status(succeeded, failed) == status

    def test_record_collection(self, db_session):
        row = record_collection(db_session, ts=DAY1, succeeded=2, errors=["ETH: no price"], duration_ms=15)
        assert row.status == "partial"
        assert row.tokens_count == 2
        assert row.error_message == "ETH: no price"


# ── Daily valuation ─────────────────────────────────────────────


class TestRunDailyValuation:
    def test_values_every_active_index(self, db_session, app_config):
        _seed_prices(db_session, INCEPTION_MARKET, INCEPTION)
        _seed_prices(db_session, INCEPTION_MARKET, DAY1, scale=2.0)

        outcomes = run_daily_valuation(db_session, app_config, DAY1.replace(hour=8, minute=30))
        by_symbol = {o.index_symbol: o for o in outcomes}

        assert all(o.success for o in outcomes)
        assert by_symbol["TRIO-MCW"].value == pytest.approx(2000.0)
        assert by_symbol["BTC"].value == pytest.approx(190000.0)
        assert by_symbol["TRIO-MCW"].ts == DAY1

        rows = _snapshots(db_session, "TRIO-MCW")
        assert len(rows) == 1
        assert float(rows[0].value) == pytest.approx(2000.0)

        log_rows = db_session.execute(select(CollectionLogRow)).scalars().all()
        assert len(log_rows) == 1
        assert log_rows[0].status == "success"
        assert log_rows[0].tokens_count == 3

    def test_second_run_same_day_skips(self, db_session, app_config):
        _seed_prices(db_session, INCEPTION_MARKET, INCEPTION)
        _seed_prices(db_session, INCEPTION_MARKET, DAY1)

        run_daily_valuation(db_session, app_config, DAY1)
        outcomes = run_daily_valuation(db_session, app_config, DAY1 + timedelta(hours=5))

        assert all(o.skipped for o in outcomes)
        assert len(_snapshots(db_session, "TRIO-MCW")) == 1

    def test_missing_prices_reported_without_blocking_others(self, db_session, app_config):
        _seed_prices(db_session, INCEPTION_MARKET, INCEPTION)
        _seed_prices(db_session, {"BTC": (97000.0, 1.9e12)}, DAY1)

        outcomes = {o.index_symbol: o for o in run_daily_valuation(db_session, app_config, DAY1)}

        assert outcomes["BTC"].success
        assert not outcomes["ETH"].success
        assert not outcomes["TRIO-MCW"].success
        assert "No valid prices" in outcomes["TRIO-MCW"].error

        log_row = db_session.execute(select(CollectionLogRow)).scalar_one()
        assert log_row.status == "partial"
        assert "ETH" in log_row.error_message

    def test_partial_constituent_prices_lower_coverage(self, db_session, app_config):
        _seed_prices(db_session, INCEPTION_MARKET, INCEPTION)
        _seed_prices(db_session, {k: v for k, v in INCEPTION_MARKET.items() if k != "CCC"}, DAY1)

        outcomes = {o.index_symbol: o for o in run_daily_valuation(db_session, app_config, DAY1)}
        trio = outcomes["TRIO-MCW"]
        assert trio.coverage_ratio == pytest.approx(2 / 3)
        # CCC held 20% at inception and now contributes nothing
        assert trio.value == pytest.approx(800.0)

    def test_missing_inception_data_reported(self, db_session, app_config):
        _seed_prices(db_session, INCEPTION_MARKET, DAY2)
        outcomes = {o.index_symbol: o for o in run_daily_valuation(db_session, app_config, DAY2)}
        assert outcomes["BTC"].success
        assert "No usable inception data" in outcomes["TRIO-MCW"].error


class TestRecalculateHistory:
    def test_rewrites_only_changed_values(self, db_session, app_config):
        _seed_prices(db_session, INCEPTION_MARKET, INCEPTION)
        _seed_prices(db_session, INCEPTION_MARKET, DAY1, scale=1.5)
        _seed_prices(db_session, INCEPTION_MARKET, DAY2, scale=2.0)
        db_session.add_all([
            IndexSnapshotRow(index_name="TRIO-MCW", value=1400.0, ts=DAY1),
            IndexSnapshotRow(index_name="TRIO-MCW", value=2000.05, ts=DAY2),
            IndexSnapshotRow(index_name="TRIO-MCW", value=900.0, ts=DAY2 + timedelta(days=1)),
        ])
        db_session.commit()

        definition = app_config.get_index("TRIO-MCW")
        result = recalculate_history(
            db_session, definition, app_config.constituents_for(definition), app_config.engine,
        )

        assert (result.updated, result.unchanged, result.skipped) == (1, 1, 1)
        values = [float(r.value) for r in _snapshots(db_session, "TRIO-MCW")]
        assert values[0] == pytest.approx(1500.0)
        assert values[1] == pytest.approx(2000.05)
        assert values[2] == pytest.approx(900.0)

    def test_benchmark_rejected(self, db_session, app_config):
        definition = app_config.get_index("BTC")
        with pytest.raises(ValueError):
            recalculate_history(db_session, definition, app_config.constituents_for(definition))


class TestShouldRun:
    NOW = datetime(2025, 1, 1, 12, tzinfo=timezone.utc)

    def test_first_run(self):
        assert should_run(None, self.NOW, timedelta(hours=1))

    def test_too_soon(self):
        assert not should_run(self.NOW - timedelta(minutes=59), self.NOW, timedelta(hours=1))

    def test_interval_elapsed(self):
        assert should_run(self.NOW - timedelta(hours=1), self.NOW, timedelta(hours=1))
