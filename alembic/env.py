"""
alembic/env.py

Migration environment for the contract document store tables.

The URL comes from ``-x db_url=...`` when given, otherwise from
ALEMBIC_DATABASE_URL and then the application's own resolution.
"""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from db.base import Base
from db.config import normalize_postgres_url, resolve_database_url
from db.models import ContractDocument, ContractEntityDocument  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# The document tables may live in a database shared with other writers.
VERSION_TABLE = "contract_reporter_alembic_version"


def migration_url() -> str:
    override = context.get_x_argument(as_dictionary=True).get("db_url")
    url = normalize_postgres_url(override) if override else resolve_database_url(("ALEMBIC_DATABASE_URL",))
    if not url.startswith("postgresql"):
        raise RuntimeError("Contract store migrations need a PostgreSQL URL.")
    return url


def configure_context(**kwargs) -> None:
    context.configure(target_metadata=target_metadata, version_table=VERSION_TABLE, compare_type=True, **kwargs)


def run_migrations_offline() -> None:
    configure_context(url=migration_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = migration_url()
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with engine.connect() as connection:
        configure_context(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
