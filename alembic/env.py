"""Alembic environment for the raw-SQL migrations in alembic/versions.

There is no ORM metadata to autogenerate from: every revision is hand-written
DDL. The database URL always comes from config.settings (DATABASE_URL), never
from alembic.ini, so migrations and the app cannot point at different
databases.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from config.settings import settings

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

_CONFIGURE_OPTIONS = {"target_metadata": None, "transaction_per_migration": True}


def run_offline() -> None:
    """Emit the SQL to stdout (`alembic upgrade head --sql`)."""
    context.configure(
        url=settings.DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_CONFIGURE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **_CONFIGURE_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


async def run_online() -> None:
    engine = create_async_engine(settings.DATABASE_URL)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
