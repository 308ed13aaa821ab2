"""Alembic environment. Migrations run on a synchronous engine against DATABASE_URL."""

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from dotenv import load_dotenv

BACKEND_DIR = Path(__file__).parent.parent
load_dotenv(BACKEND_DIR / ".env")
sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import create_engine, pool  # noqa: E402

from alembic import context  # noqa: E402

from app.core.database import Base  # noqa: E402
import app.models  # noqa: E402,F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

ASYNC_DRIVERS = ("+asyncpg", "+aiosqlite")


def sync_database_url() -> str:
    url = os.getenv("DATABASE_URL", "")
    for driver in ASYNC_DRIVERS:
        url = url.replace(driver, "")
    return url


def _configure(**kwargs) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, **kwargs)


def run_migrations_offline() -> None:
    _configure(url=sync_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(sync_database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
