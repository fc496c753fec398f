"""Ambiente do Alembic: migrations rodam com driver síncrono."""

from alembic import context
from sqlalchemy import create_engine, pool

from assignment_engine.config import get_settings
from assignment_engine.domain.entities import Base

config = context.config

target_metadata = Base.metadata


def _sync_url() -> str:
    """
    URL do banco com driver síncrono.

    asyncpg -> psycopg, aiosqlite -> sqlite.
    """
    url = get_settings().async_database_url
    if url.startswith("postgresql+asyncpg"):
        return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
    if url.startswith("sqlite+aiosqlite"):
        return url.replace("sqlite+aiosqlite", "sqlite", 1)
    return url


def run_migrations_offline() -> None:
    context.configure(
        url=_sync_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(_sync_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
