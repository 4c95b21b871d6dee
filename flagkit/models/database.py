"""
Database connection and session management.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)

from flagkit.core.config import settings


def _engine_options() -> dict:
    options = {"echo": settings.database.echo}
    # SQLite pools are left at their defaults
    if not settings.database.is_sqlite:
        options.update(
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.pool_overflow,
            pool_timeout=settings.database.pool_timeout,
        )
    return options


def enable_sqlite_savepoints(async_engine: AsyncEngine) -> None:
    """
    Make SQLAlchemy emit BEGIN itself on SQLite connections.

    The sqlite3 driver only opens a transaction before the first write, so a
    SAVEPOINT issued earlier would become the outermost transaction and its
    RELEASE would commit.
    """

    @event.listens_for(async_engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


# Create async engine
engine = create_async_engine(settings.database.url, **_engine_options())
if settings.database.is_sqlite:
    enable_sqlite_savepoints(engine)

# Session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """Initialize database (create tables)."""
    from .base import Base
    from flagkit.core.features import models  # noqa: F401  registers tables

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
