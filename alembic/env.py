from __future__ import annotations

import os
from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import engine_from_config, pool

from db.base import Base
from db.config import load_env_files, normalize_postgres_url, resolve_database_url
from db.models import (  # noqa: F401  registers ORM tables on Base.metadata
    Artist,
    StreamWeekly,
    Upload,
    WatchlistEntry,
    Workspace,
)

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

STREAM_TABLES = frozenset(target_metadata.tables)


def _include_object(obj, name, type_, reflected, compare_to):  # noqa: ANN001
    """
    Keep autogenerate away from tables the stream schema does not own.
    """

    if type_ == "table" and reflected and compare_to is None:
        return name in STREAM_TABLES
    return True


def _migration_url() -> str:
    """
    First configured URL among, in order: ``-x db_url=...``,
    ALEMBIC_DATABASE_URL, ``sqlalchemy.url`` in alembic.ini, then the
    application's own DATABASE_URL / CLOUD_DATABASE_URL / LOCAL_DATABASE_URL
    resolution.
    """

    load_env_files()

    candidates = (
        context.get_x_argument(as_dictionary=True).get("db_url"),
        os.getenv("ALEMBIC_DATABASE_URL"),
        config.get_main_option("sqlalchemy.url"),
    )
    explicit = next((value.strip() for value in candidates if value and value.strip()), None)
    url = normalize_postgres_url(explicit) if explicit else resolve_database_url()

    if not url.startswith("postgresql"):
        raise RuntimeError("Stream migrations only run against PostgreSQL.")
    return url


def _context_options() -> dict[str, Any]:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "compare_server_default": True,
        "include_object": _include_object,
    }


def run_migrations_offline() -> None:
    context.configure(
        url=_migration_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_context_options(),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = _migration_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, **_context_options())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
