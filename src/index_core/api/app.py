"""FastAPI application serving index values and risk analytics."""

from datetime import datetime, timedelta, timezone
from typing import Generator, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from index_core.analytics import PERIODS, MetricsCache, compute_all_periods
from index_core.analytics.engine import analyze
from index_core.api.serializers import format_holding, format_period_analytics
from index_core.config.loader import load_config
from index_core.config.schema import AppConfig
from index_core.db.engine import get_session as _get_session, init_engine_from_config
from index_core.db.queries import latest_prices, latest_snapshot, load_snapshot_series
from index_core.errors import UnknownIndexError
from index_core.index.weights import compute_constituent_weights
from index_core.models import normalize_timestamp

logger = structlog.get_logger()

app = FastAPI(
    title="Crypto Index API",
    description="Capped market-cap weighted crypto indexes and their risk analytics",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Load config once at startup
config = load_config()

_analytics_cache = MetricsCache(ttl_seconds=config.api.cache_ttl_s)

# API period parameter -> analytics period label
API_PERIODS = {"30d": "30d", "90d": "90d", "1y": "1Y"}


def get_config() -> AppConfig:
    return config


def get_cache() -> MetricsCache:
    return _analytics_cache


def get_db() -> Generator[Session, None, None]:
    """Dependency to get DB session."""
    gen = _get_session()
    session = next(gen)
    try:
        yield session
    finally:
        try:
            next(gen)
        except StopIteration:
            pass


def validate_period(period: Optional[str]) -> str:
    """Normalize the period parameter; anything unrecognized means all periods."""
    if not period:
        return "all"
    normalized = period.lower()
    if normalized in API_PERIODS:
        return normalized
    return "all"


@app.on_event("startup")
async def startup_event():
    """Initialize database engine on startup."""
    init_engine_from_config(config.database)
    logger.info("Database engine initialized")


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


# ═══════════════════════════════════════════════════════════════
# Analytics
# ═══════════════════════════════════════════════════════════════


def _benchmark_series(session: Session, cfg: AppConfig) -> dict:
    return {symbol: load_snapshot_series(session, symbol) for symbol in cfg.engine.benchmarks}


def _index_analytics(session: Session, cfg: AppConfig, symbol: str, period: str, benchmarks: dict) -> dict:
    series = load_snapshot_series(session, symbol)
    cap = cfg.engine.sortino_cap
    if period == "all":
        multi = compute_all_periods(symbol, series, benchmarks, cfg.engine)
        return {
            api_key: format_period_analytics(multi.periods[label].analytics, cap)
            for api_key, label in API_PERIODS.items()
            if multi.periods[label].success
        }

    outcome = analyze(symbol, series, PERIODS[API_PERIODS[period]], benchmarks, cfg.engine)
    return {period: format_period_analytics(outcome.analytics, cap) if outcome.success else None}


@app.get("/api/analytics")
async def get_analytics(
    index: Optional[str] = None,
    period: Optional[str] = None,
    session: Session = Depends(get_db),
    cfg: AppConfig = Depends(get_config),
    cache: MetricsCache = Depends(get_cache),
):
    """Risk analytics per active index for one period or all of them."""
    period = validate_period(period)
    active = sorted(cfg.active_indexes(), key=lambda d: d.index_symbol)
    if not active:
        raise HTTPException(status_code=404, detail="No active indexes found")

    targets = [d for d in active if d.index_symbol == index] if index else active
    if index and not targets:
        available = ", ".join(d.index_symbol for d in active)
        raise HTTPException(
            status_code=404,
            detail=f"Index {index!r} not found. Available indexes: {available}",
        )

    benchmarks = None
    data = {}
    for definition in targets:
        cache_key = f"analytics:{definition.index_symbol}:{period}"
        periods = cache.get(cache_key)
        if periods is None:
            if benchmarks is None:
                benchmarks = _benchmark_series(session, cfg)
            periods = _index_analytics(session, cfg, definition.index_symbol, period, benchmarks)
            cache.set(cache_key, periods)
        data[definition.index_symbol] = {
            "indexName": definition.index_symbol,
            "displayName": definition.name or definition.index_symbol,
            "periods": periods,
        }

    has_data = any(p is not None for entry in data.values() for p in entry["periods"].values())
    if not has_data:
        raise HTTPException(
            status_code=400,
            detail="Insufficient data for analytics calculation: at least 2 data points per index are required",
        )

    return {
        "success": True,
        "period": period,
        "data": data,
        "calculatedAt": datetime.now(timezone.utc).isoformat(),
    }


# ═══════════════════════════════════════════════════════════════
# Index values
# ═══════════════════════════════════════════════════════════════


@app.get("/api/index/{symbol}")
async def get_index(
    symbol: str,
    session: Session = Depends(get_db),
    cfg: AppConfig = Depends(get_config),
):
    """Latest value of one index and its top holdings by capped weight."""
    try:
        definition = cfg.get_index(symbol)
    except UnknownIndexError:
        raise HTTPException(status_code=404, detail=f"Index {symbol!r} not found")

    constituents = cfg.constituents_for(definition)
    snapshot = latest_snapshot(session, symbol)
    prices = latest_prices(session, constituents.symbols)
    holdings = compute_constituent_weights(
        prices.values(),
        max_weight=1.0 if definition.is_benchmark else cfg.engine.cap_for(definition),
        max_iterations=cfg.engine.max_capping_iterations,
    )

    return {
        "symbol": definition.index_symbol,
        "name": definition.name or definition.index_symbol,
        "description": definition.description,
        "methodology": definition.methodology.value,
        "baseIndex": definition.base_index,
        "constituentCount": len(constituents.symbols),
        "value": round(snapshot.value, 4) if snapshot else None,
        "timestamp": snapshot.ts.isoformat() if snapshot else None,
        "coverageRatio": snapshot.coverage_ratio if snapshot else None,
        "topHoldings": [
            format_holding(h, prices[h.symbol].name)
            for h in holdings[: cfg.api.top_holdings]
        ],
    }


@app.get("/api/history")
async def get_history(
    index: Optional[str] = None,
    days: Optional[int] = 30,
    session: Session = Depends(get_db),
    cfg: AppConfig = Depends(get_config),
):
    """Stored daily values per active index; ``days=0`` returns the full history."""
    now = datetime.now(timezone.utc)
    # Whole calendar days back from today's observation
    start = normalize_timestamp(now) - timedelta(days=days) if days else None

    definitions = cfg.active_indexes()
    if index:
        definitions = [d for d in definitions if d.index_symbol == index]
        if not definitions:
            raise HTTPException(status_code=404, detail=f"Index {index!r} not found")

    indexes = []
    for definition in definitions:
        series = load_snapshot_series(session, definition.index_symbol, start)
        if not series:
            continue
        indexes.append({
            "indexName": definition.index_symbol,
            "displayName": definition.name or definition.index_symbol,
            "dataPoints": len(series),
            "history": [{"timestamp": p.ts.isoformat(), "value": round(p.value, 4)} for p in series],
        })

    return {
        "days": days,
        "startDate": start.isoformat() if start else None,
        "asOf": now.isoformat(),
        "indexes": indexes,
    }
