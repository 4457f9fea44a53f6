"""SQLAlchemy ORM models for daily price observations and collection runs."""

from sqlalchemy import BigInteger, Integer, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from index_core.db.base import Base

SCHEMA = "index_data"


class PriceRow(Base):
    __tablename__ = "prices"
    __table_args__ = (
        UniqueConstraint("symbol", "ts"),
        {"schema": SCHEMA},
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float] = mapped_column(Numeric, nullable=False)
    market_cap: Mapped[float] = mapped_column(Numeric, nullable=False)
    volume_24h: Mapped[float | None] = mapped_column(Numeric, nullable=True)
    change_24h: Mapped[float | None] = mapped_column(Numeric, nullable=True)
    change_7d: Mapped[float | None] = mapped_column(Numeric, nullable=True)
    change_30d: Mapped[float | None] = mapped_column(Numeric, nullable=True)
    ts: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=False)


class CollectionLogRow(Base):
    __tablename__ = "collection_log"
    __table_args__ = {"schema": SCHEMA}

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    status: Mapped[str] = mapped_column(Text, nullable=False)  # success, partial, failed
    tokens_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    ts: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=False)
