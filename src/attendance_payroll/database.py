"""Database connection and session management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from attendance_payroll.config import get_settings
from attendance_payroll.errors import InfrastructureFault
from attendance_payroll.models import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> AsyncEngine:
    """Create an async engine for the given URL.

    SQLite gets ``BEGIN IMMEDIATE`` transactions so a read-then-write unit of
    work holds the write lock from its first statement, matching the row
    locks taken on PostgreSQL. Foreign keys are switched on per connection.
    """
    if database_url.startswith("sqlite"):
        engine = create_async_engine(database_url, echo=False)
        _use_immediate_transactions(engine)
        return engine

    return create_async_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


def _use_immediate_transactions(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _configure_connection(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build a session factory with the project's session options."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Global engine and session factory
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_db(
    database_url: str | None = None,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Initialize database engine and session factory."""
    global _engine, _session_factory
    if _engine is None:
        _engine = build_engine(database_url or get_settings().database_url)
        _session_factory = make_session_factory(_engine)
    return _engine, _session_factory


async def dispose_db() -> None:
    """Dispose the global engine (application shutdown)."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def create_all(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def get_session(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Unit-of-work session: commit on success, roll back on error.

    Driver failures surface as InfrastructureFault with the driver error
    logged and chained. Constraint violations pass through untouched.
    """
    if factory is None:
        _, factory = init_db()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except IntegrityError:
            await session.rollback()
            raise
        except DBAPIError as exc:
            await session.rollback()
            logger.exception("Database operation failed")
            raise InfrastructureFault("Storage is unavailable") from exc
        except Exception:
            await session.rollback()
            raise


async def acquire_xact_lock(session: AsyncSession, key: str) -> None:
    """Take a transaction-scoped advisory lock keyed by ``key``.

    Only PostgreSQL needs this; SQLite already serializes writers through
    ``BEGIN IMMEDIATE``. Released automatically at commit or rollback.
    """
    if session.get_bind().dialect.name != "postgresql":
        return
    await session.execute(
        text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
        {"key": key},
    )
