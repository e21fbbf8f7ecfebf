"""Async engine and unit-of-work sessions for the catalog database."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from musiclt.config import Settings

logger = logging.getLogger(__name__)

# Seconds a SQLite connection waits on a write lock before "database is locked"
SQLITE_LOCK_TIMEOUT = 30


def _engine_options(settings: Settings) -> dict[str, Any]:
    """Engine keyword arguments for the configured backend."""
    db = settings.database
    options: dict[str, Any] = {"echo": db.echo, "pool_pre_ping": db.pool_pre_ping}

    backend = make_url(db.url).get_backend_name()
    if backend == "postgresql":
        options.update(
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout,
            pool_recycle=db.pool_recycle,
        )
    elif backend == "sqlite":
        options["connect_args"] = {
            "check_same_thread": False,
            "timeout": SQLITE_LOCK_TIMEOUT,
        }
    return options


class Database:
    """Owns the async engine and hands out transactional sessions."""

    def __init__(self, settings: Settings) -> None:
        """Initialize database with settings."""
        self.settings = settings
        self.backend = make_url(settings.database.url).get_backend_name()

        self._engine = create_async_engine(
            settings.database.url, **_engine_options(settings)
        )
        if self.backend == "sqlite":
            event.listen(self._engine.sync_engine, "connect", _sqlite_on_connect)

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    # Hey future me, session_scope() IS the unit of work. Everything inside commits together
    # or rolls back together - the artist store relies on this for atomic reconciliation.
    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session that commits on clean exit and rolls back on error."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        """Create missing tables (no migrations, the schema is created at startup)."""
        from musiclt.infrastructure.persistence.models import Base

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """Drop all tables."""
        from musiclt.infrastructure.persistence.models import Base

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def close(self) -> None:
        """Dispose the engine and its connections."""
        await self._engine.dispose()

    def get_pool_stats(self) -> dict[str, Any]:
        """Connection pool numbers for /health/db-metrics."""
        if self.backend == "sqlite":
            return {
                "pool_type": "sqlite",
                "lock_timeout_seconds": SQLITE_LOCK_TIMEOUT,
            }

        pool = self._engine.pool
        # Not every pool class implements every counter
        return {
            "pool_type": type(pool).__name__,
            "pool_size": getattr(pool, "size", lambda: 0)(),
            "checked_out": getattr(pool, "checkedout", lambda: 0)(),
            "checked_in": getattr(pool, "checkedin", lambda: 0)(),
            "overflow": getattr(pool, "overflow", lambda: 0)(),
            "max_overflow": self.settings.database.max_overflow,
        }


# Listen up, SQLite ships with foreign keys OFF. Link rows, album tracks and albums rely on
# ON DELETE CASCADE, so switch them on for every new connection.
def _sqlite_on_connect(dbapi_conn: Any, _connection_record: Any) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
