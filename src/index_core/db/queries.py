"""DB query bridge: bulk reads and writes around the pure index engine."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from index_core.analytics.formulas import SeriesPoint
from index_core.db.tables import IndexConfigRow, IndexSnapshotRow, PriceRow
from index_core.models import IndexDefinition, IndexSnapshot, PriceObservation

# Half-widths of the lookup windows around a normalized timestamp.
INCEPTION_WINDOW = timedelta(hours=24)
DAILY_WINDOW = timedelta(hours=12)

RETURN_HORIZONS = {"returns_1d": 1, "returns_7d": 7, "returns_30d": 30}


def _to_float(val: Decimal | float | None, default: float | None = 0.0) -> float | None:
    """Safely cast a Decimal/float/None to float."""
    if val is None:
        return default
    return float(val)


def _as_utc(ts: datetime) -> datetime:
    """Stored timestamps come back naive from some backends; they are UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _to_observation(row: PriceRow) -> PriceObservation:
    return PriceObservation(
        symbol=row.symbol,
        name=row.name,
        price=_to_float(row.price),
        market_cap=_to_float(row.market_cap),
        volume_24h=_to_float(row.volume_24h, None),
        change_24h=_to_float(row.change_24h, None),
        change_7d=_to_float(row.change_7d, None),
        change_30d=_to_float(row.change_30d, None),
        ts=_as_utc(row.ts),
    )


def load_price_window(
    session: Session,
    symbols: Iterable[str],
    center: datetime,
    half_width: timedelta = DAILY_WINDOW,
) -> dict[str, PriceObservation]:
    """First observation per symbol within ``center ± half_width``.

    Rows with a non-positive price are ignored so a later valid row in the
    window can still be used.
    """
    symbols = list(symbols)
    if not symbols:
        return {}
    rows = session.execute(
        select(PriceRow)
        .where(
            PriceRow.symbol.in_(symbols),
            PriceRow.ts >= center - half_width,
            PriceRow.ts <= center + half_width,
            PriceRow.price > 0,
        )
        .order_by(PriceRow.ts.asc(), PriceRow.id.asc())
    ).scalars()

    prices: dict[str, PriceObservation] = {}
    for row in rows:
        if row.symbol not in prices:
            prices[row.symbol] = _to_observation(row)
    return prices


def latest_prices(session: Session, symbols: Iterable[str]) -> dict[str, PriceObservation]:
    """Observations at the most recent stored timestamp for *symbols*."""
    symbols = list(symbols)
    latest_ts = session.execute(
        select(PriceRow.ts).where(PriceRow.symbol.in_(symbols)).order_by(PriceRow.ts.desc()).limit(1)
    ).scalar()
    if latest_ts is None:
        return {}
    return load_price_window(session, symbols, _as_utc(latest_ts), DAILY_WINDOW)


def load_snapshot_series(
    session: Session,
    index_name: str,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[SeriesPoint]:
    """Stored values of one index, oldest first."""
    stmt = select(IndexSnapshotRow.ts, IndexSnapshotRow.value).where(
        IndexSnapshotRow.index_name == index_name
    )
    if start is not None:
        stmt = stmt.where(IndexSnapshotRow.ts >= start)
    if end is not None:
        stmt = stmt.where(IndexSnapshotRow.ts <= end)
    rows = session.execute(stmt.order_by(IndexSnapshotRow.ts.asc())).all()
    return [SeriesPoint(ts=_as_utc(ts), value=_to_float(value)) for ts, value in rows]


def load_snapshot_rows(session: Session, index_name: str) -> list[IndexSnapshotRow]:
    return list(
        session.execute(
            select(IndexSnapshotRow)
            .where(IndexSnapshotRow.index_name == index_name)
            .order_by(IndexSnapshotRow.ts.asc())
        ).scalars()
    )


def latest_snapshot(session: Session, index_name: str) -> IndexSnapshot | None:
    row = session.execute(
        select(IndexSnapshotRow)
        .where(IndexSnapshotRow.index_name == index_name)
        .order_by(IndexSnapshotRow.ts.desc())
        .limit(1)
    ).scalar()
    if row is None:
        return None
    return IndexSnapshot(
        index_symbol=row.index_name,
        ts=_as_utc(row.ts),
        value=_to_float(row.value),
        coverage_ratio=_to_float(row.coverage_ratio, None),
    )


def snapshot_exists(
    session: Session,
    index_name: str,
    ts: datetime,
    half_width: timedelta = DAILY_WINDOW,
) -> bool:
    """True if *index_name* already has a value within ``ts ± half_width``."""
    found = session.execute(
        select(IndexSnapshotRow.id).where(
            IndexSnapshotRow.index_name == index_name,
            IndexSnapshotRow.ts >= ts - half_width,
            IndexSnapshotRow.ts <= ts + half_width,
        ).limit(1)
    ).scalar()
    return found is not None


def _value_at(session: Session, index_name: str, ts: datetime) -> float | None:
    value = session.execute(
        select(IndexSnapshotRow.value).where(
            IndexSnapshotRow.index_name == index_name,
            IndexSnapshotRow.ts >= ts - DAILY_WINDOW,
            IndexSnapshotRow.ts <= ts + DAILY_WINDOW,
        ).order_by(IndexSnapshotRow.ts.asc()).limit(1)
    ).scalar()
    return _to_float(value, None)


def trailing_returns(session: Session, index_name: str, ts: datetime, value: float) -> dict[str, float | None]:
    """1d/7d/30d simple returns of *value* vs stored values of the same index."""
    returns: dict[str, float | None] = {}
    for column, days in RETURN_HORIZONS.items():
        previous = _value_at(session, index_name, ts - timedelta(days=days))
        returns[column] = (value - previous) / previous if previous else None
    return returns


def insert_snapshot(session: Session, snapshot: IndexSnapshot) -> IndexSnapshotRow:
    """Add a snapshot row (with trailing returns); caller commits."""
    row = IndexSnapshotRow(
        index_name=snapshot.index_symbol,
        value=snapshot.value,
        coverage_ratio=snapshot.coverage_ratio,
        ts=snapshot.ts,
        **trailing_returns(session, snapshot.index_symbol, snapshot.ts, snapshot.value),
    )
    session.add(row)
    session.flush()
    return row


def insert_prices(session: Session, observations: Iterable[PriceObservation]) -> int:
    """Add price rows, skipping any (symbol, ts) already stored. Returns rows added."""
    added = 0
    for obs in observations:
        exists = session.execute(
            select(PriceRow.id).where(PriceRow.symbol == obs.symbol, PriceRow.ts == obs.ts)
        ).scalar()
        if exists is not None:
            continue
        session.add(PriceRow(
            symbol=obs.symbol,
            name=obs.name,
            price=obs.price,
            market_cap=obs.market_cap,
            volume_24h=obs.volume_24h,
            change_24h=obs.change_24h,
            change_7d=obs.change_7d,
            change_30d=obs.change_30d,
            ts=obs.ts,
        ))
        added += 1
    session.flush()
    return added


def sync_index_configs(
    session: Session,
    definitions: Iterable[IndexDefinition],
    token_counts: dict[str, int],
) -> None:
    """Upsert one index_configs row per definition."""
    existing = {row.symbol: row for row in session.execute(select(IndexConfigRow)).scalars()}
    for definition in definitions:
        row = existing.get(definition.index_symbol)
        if row is None:
            row = IndexConfigRow(symbol=definition.index_symbol)
            session.add(row)
        row.name = definition.name or definition.index_symbol
        row.description = definition.description
        row.methodology = definition.methodology.value
        row.base_index = definition.base_index
        row.token_count = token_counts.get(definition.index_symbol, 0)
        row.is_active = definition.is_active
    session.flush()
