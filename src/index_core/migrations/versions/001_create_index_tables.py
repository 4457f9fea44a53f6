"""Create index_data tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-15
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SCHEMA = "index_data"


def upgrade() -> None:
    # Schema is created by env.py before migrations run.
    op.create_table(
        "prices",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("symbol", sa.Text, nullable=False),
        sa.Column("name", sa.Text, nullable=True),
        sa.Column("price", sa.Numeric, nullable=False),
        sa.Column("market_cap", sa.Numeric, nullable=False),
        sa.Column("volume_24h", sa.Numeric, nullable=True),
        sa.Column("change_24h", sa.Numeric, nullable=True),
        sa.Column("change_7d", sa.Numeric, nullable=True),
        sa.Column("change_30d", sa.Numeric, nullable=True),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("symbol", "ts"),
        schema=SCHEMA,
    )
    op.create_index("ix_index_data_prices_symbol", "prices", ["symbol"], schema=SCHEMA)

    op.create_table(
        "index_configs",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("symbol", sa.Text, nullable=False, unique=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("methodology", sa.Text, nullable=False),
        sa.Column("base_index", sa.Text, nullable=False),
        sa.Column("token_count", sa.Integer, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        schema=SCHEMA,
    )

    op.create_table(
        "index_snapshots",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("index_name", sa.Text, nullable=False),
        sa.Column("value", sa.Numeric, nullable=False),
        sa.Column("returns_1d", sa.Numeric, nullable=True),
        sa.Column("returns_7d", sa.Numeric, nullable=True),
        sa.Column("returns_30d", sa.Numeric, nullable=True),
        sa.Column("coverage_ratio", sa.Numeric, nullable=True),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("index_name", "ts"),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_index_data_index_snapshots_index_name", "index_snapshots", ["index_name"], schema=SCHEMA,
    )

    op.create_table(
        "collection_log",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("status", sa.Text, nullable=False),
        sa.Column("tokens_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("duration_ms", sa.Integer, nullable=True),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        schema=SCHEMA,
    )


def downgrade() -> None:
    op.drop_table("collection_log", schema=SCHEMA)
    op.drop_index("ix_index_data_index_snapshots_index_name", table_name="index_snapshots", schema=SCHEMA)
    op.drop_table("index_snapshots", schema=SCHEMA)
    op.drop_table("index_configs", schema=SCHEMA)
    op.drop_index("ix_index_data_prices_symbol", table_name="prices", schema=SCHEMA)
    op.drop_table("prices", schema=SCHEMA)
