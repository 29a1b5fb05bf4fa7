import asyncio
from logging.config import fileConfig
from urllib.parse import quote

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

from valhalla.client import ValhallaDB
from valhalla.config import get_settings
from valhalla.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _pool_options() -> dict:
    # Constructing the client validates AURORA_* exactly as the service does
    return ValhallaDB(get_settings()).pool_options


def _database_url() -> str:
    """Build the SQLAlchemy URL from the same settings the client uses."""
    options = _pool_options()
    return (
        f"postgresql+asyncpg://{quote(options['user'], safe='')}:"
        f"{quote(options['password'], safe='')}@{options['host']}:"
        f"{options['port']}/{options['database']}"
    )


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = _database_url()
    tls = _pool_options()["ssl"]
    connectable = async_engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        connect_args={"ssl": tls} if tls is not None else {},
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
