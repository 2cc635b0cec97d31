"""
Alembic environment for the CollabCal schema.

Run from the repository root (where alembic.ini lives):

    alembic upgrade head
    alembic upgrade head --sql      # offline: print the DDL instead

The target database is COLLABCAL_DB_URL, read from the environment or the
repository .env, the same variable the application uses. alembic.ini only
provides a local PostgreSQL fallback. Autogenerate compares against the
metadata of the four tables in backend.src.models (events, participations,
schedule_entries, task_requests) including column types and server defaults.
SQLite targets get foreign key enforcement, so the cascades from events to
participations and schedule entries behave as on PostgreSQL.
"""

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

from alembic import context

REPO_ROOT = Path(__file__).resolve().parents[4]

env_path = REPO_ROOT / ".env"
if env_path.exists():
    load_dotenv(dotenv_path=env_path)

# backend.src.* imports resolve from the repository root
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from backend.src.db.database import enable_sqlite_savepoints  # noqa: E402
from backend.src.models import Base  # noqa: E402

target_metadata = Base.metadata

if os.environ.get("COLLABCAL_DB_URL"):
    config.set_main_option("sqlalchemy.url", os.environ["COLLABCAL_DB_URL"])

COMPARE_OPTIONS = {
    "compare_type": True,
    "compare_server_default": True,
}


def run_migrations_offline() -> None:
    """Emit the migration SQL as a script; no DBAPI connection is opened."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a single unpooled connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    if connectable.dialect.name == "sqlite":
        enable_sqlite_savepoints(connectable)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            **COMPARE_OPTIONS,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
