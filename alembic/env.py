import asyncio

from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context
from src.config import settings
from src.infrastructure.database import models  # noqa: F401  (registers tables)
from src.infrastructure.database.connection import Base, async_database_url

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=async_database_url(settings.database_url),
        target_metadata=target_metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_migrations(connection) -> None:  # type: ignore[no-untyped-def]
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = create_async_engine(async_database_url(settings.database_url))
    async with engine.connect() as connection:
        await connection.run_sync(_run_migrations)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
