"""SQLAlchemy ORM models for index definitions and daily index values."""

from sqlalchemy import BigInteger, Boolean, Integer, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from index_core.db.base import Base

SCHEMA = "index_data"


class IndexConfigRow(Base):
    __tablename__ = "index_configs"
    __table_args__ = {"schema": SCHEMA}

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    methodology: Mapped[str] = mapped_column(Text, nullable=False)  # MCW, BENCHMARK
    base_index: Mapped[str] = mapped_column(Text, nullable=False)
    token_count: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class IndexSnapshotRow(Base):
    __tablename__ = "index_snapshots"
    __table_args__ = (
        UniqueConstraint("index_name", "ts"),
        {"schema": SCHEMA},
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    index_name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    value: Mapped[float] = mapped_column(Numeric, nullable=False)
    returns_1d: Mapped[float | None] = mapped_column(Numeric, nullable=True)
    returns_7d: Mapped[float | None] = mapped_column(Numeric, nullable=True)
    returns_30d: Mapped[float | None] = mapped_column(Numeric, nullable=True)
    coverage_ratio: Mapped[float | None] = mapped_column(Numeric, nullable=True)
    ts: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=False)
