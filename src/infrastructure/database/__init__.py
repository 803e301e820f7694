"""
Database Infrastructure
=======================

Engine, session lifecycle and shared model base.

Uses SQLAlchemy 2.0 with asyncpg for async PostgreSQL operations. One
session is one transaction: it commits when the unit of work finishes and
rolls back when it raises. Payouts rely on this to hold the program row
lock until the budget update is committed.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.config import settings


class Base(DeclarativeBase):
    """Declarative base shared by every module's ORM models."""
    pass


_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def _asyncpg_url(url: str) -> str:
    """asyncpg takes ``ssl=`` where libpq URLs carry ``sslmode=``."""
    return url.replace("sslmode=", "ssl=")


def get_engine() -> AsyncEngine:
    """
    Get the database engine.

    Raises:
        RuntimeError: If init_database() has not run
    """
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call init_database() first.")
    return _engine


def init_database(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Create the engine and session factory.

    Called during application startup and by maintenance scripts.

    Args:
        database_url: Overrides ``settings.database_url``

    Returns:
        AsyncEngine: The initialized engine
    """
    global _engine, _session_maker

    _engine = create_async_engine(
        _asyncpg_url(database_url or settings.database_url),
        echo=settings.debug,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )

    # Entities are mapped from models right after commit
    _session_maker = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    return _engine


async def close_database() -> None:
    """Dispose of pooled connections on shutdown."""
    global _engine, _session_maker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_maker = None


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Transactional session for background jobs and scripts.

    Usage:
        async with get_session_context() as session:
            monitor = build_breach_monitor(session, client, provider)
            await monitor.check_and_notify_breaches()

    Raises:
        RuntimeError: If init_database() has not run
    """
    if _session_maker is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with _session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one transactional session per request.

    Usage in FastAPI:
        @app.get("/programs")
        async def list_programs(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with get_session_context() as session:
        yield session


async def create_tables() -> None:
    """
    Create missing tables from model metadata.

    Existing tables are left as-is. Every module's models must be imported
    before this runs.
    """
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def parse_uuid(value: Optional[str]) -> Optional[UUID]:
    """Parse an identifier, returning None for absent or malformed values."""
    if value is None:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None
