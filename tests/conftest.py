"""Shared test fixtures."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import BigInteger, Integer, create_engine, event
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from index_core.config.schema import AppConfig
from index_core.db.base import Base

# Import all table modules so Base.metadata sees them
import index_core.db.tables  # noqa: F401

INCEPTION = datetime(2024, 11, 25, 12, tzinfo=timezone.utc)


@pytest.fixture
def db_session():
    """In-memory SQLite session with all tables created.

    Strips the schema and patches BigInteger to Integer for SQLite compatibility.
    """
    # One shared connection so TestClient worker threads see the same database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, _rec):
        dbapi_conn.execute("PRAGMA foreign_keys=ON")

    # SQLite doesn't support schemas or BigInteger autoincrement
    for table in Base.metadata.tables.values():
        table.schema = None
        for col in table.columns:
            if isinstance(col.type, BigInteger):
                col.type = Integer()

    Base.metadata.create_all(engine)

    session = Session(engine)
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def app_config() -> AppConfig:
    """Two benchmarks and one three-asset index capped by the engine default."""
    return AppConfig.model_validate({
        "engine": {"weight_cap": 0.4},
        "constituent_sets": {"TRIO": ["AAA", "BBB", "CCC"]},
        "indexes": [
            {"index_symbol": "BTC", "name": "Bitcoin", "methodology": "BENCHMARK",
             "base_index": "BTC", "inception_ts": INCEPTION},
            {"index_symbol": "ETH", "name": "Ethereum", "methodology": "BENCHMARK",
             "base_index": "ETH", "inception_ts": INCEPTION},
            {"index_symbol": "TRIO-MCW", "name": "Trio", "methodology": "MCW",
             "base_index": "TRIO", "inception_ts": INCEPTION},
        ],
    })
