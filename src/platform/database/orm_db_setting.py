"""
SQLAlchemy async engine and session management

This module provides:
1. Base: declarative base shared by every ORM model
2. UtcDateTime: column type that always hands back timezone-aware UTC datetimes
3. Database: explicit engine + session maker handle, created once at process start
   (via the DI container) and disposed once at graceful shutdown

Locking:
- PostgreSQL (asyncpg): `SELECT ... FOR UPDATE` row locks serialize writers per row
- SQLite (aiosqlite, local dev and tests): no row locks exist, so every transaction
  starts with `BEGIN IMMEDIATE`, which takes the database write lock up front
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import DateTime, event
from sqlalchemy.engine import Dialect
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


# =============================================================================
# Base Model
# =============================================================================


class Base(DeclarativeBase):
    pass


class UtcDateTime(TypeDecorator[datetime]):
    """DateTime(timezone=True) that normalizes every value to aware UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError('Naive datetime is not allowed, use timezone-aware UTC')
        return value.astimezone(timezone.utc)

    def process_result_value(
        self, value: Optional[datetime], dialect: Dialect
    ) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:  # sqlite drops tzinfo
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


# =============================================================================
# Database Class (injected through the DI container)
# =============================================================================


def _is_sqlite(url: str) -> bool:
    return url.startswith('sqlite')


def _enable_sqlite_immediate_transactions(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, 'connect')
    def _disable_pysqlite_transaction_handling(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, 'begin')
    def _begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql('BEGIN IMMEDIATE')


class Database:
    """
    Owns the async engine for one process.

    Usage:
        database = Database(url=settings.DATABASE_URL_ASYNC)
        async with database.session() as session:
            ...
        await database.dispose()
    """

    def __init__(self, *, url: str | None = None, echo: bool = False) -> None:
        self.url = url or settings.DATABASE_URL_ASYNC
        if _is_sqlite(self.url):
            self.engine = create_async_engine(self.url, echo=echo)
            _enable_sqlite_immediate_transactions(self.engine)
        else:
            self.engine = create_async_engine(
                self.url,
                echo=echo,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_POOL_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
                pool_pre_ping=settings.DB_POOL_PRE_PING,
            )
        self.session_maker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        Logger.base.info(f'🔗 [DB] Engine created for {self.engine.url.render_as_string()}')

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session context manager; rolls back automatically on exception."""
        async with self.session_maker() as session:
            yield session

    async def create_all(self) -> None:
        """Create tables directly from the models (tests and local sqlite only)."""
        import src.service.booking.driven_adapter.model  # noqa: F401  registers the tables

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    async def dispose(self) -> None:
        await self.engine.dispose()
        Logger.base.info('🔌 [DB] Engine disposed')
