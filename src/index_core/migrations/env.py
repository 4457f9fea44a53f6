"""Alembic environment for the index_data schema.

The database URL comes from the application config (``INDEX_CONFIG`` file,
then ``INDEX_DATABASE_URL``) and falls back to ``sqlalchemy.url`` in
alembic.ini when neither is set.
"""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool, text

from index_core.config.loader import load_config
from index_core.config.schema import DatabaseConfig
from index_core.db.base import Base
from index_core.db.engine import _ensure_psycopg_driver
from index_core.db.tables.prices import SCHEMA

# Registers every table on Base.metadata
import index_core.db.tables  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url() -> str:
    app_url = load_config().database.url
    if app_url == DatabaseConfig().url:
        app_url = config.get_main_option("sqlalchemy.url") or app_url
    return _ensure_psycopg_driver(app_url)


def include_object(obj, name, type_, reflected, compare_to):
    if type_ == "table":
        return obj.schema == SCHEMA
    return True


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        include_schemas=True,
        include_object=include_object,
        version_table_schema=SCHEMA,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL without connecting."""
    _configure(url=get_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(get_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        # alembic_version lives in this schema, so it has to exist first
        connection.execute(text(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA}"))
        connection.commit()

        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
