"""
Async engine, session factory and unit-of-work helper.

Operations never reach for a global session: callers pass an AsyncSession
in, and the FastAPI dependency below is only the transport's way of getting one.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
)

from tradebook.config import get_config

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_SessionLocal: Optional[async_sessionmaker] = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(database_url: str, **engine_kwargs) -> AsyncEngine:
    """Create an async engine; SQLite connections get foreign keys enforced."""
    engine = create_async_engine(database_url, **engine_kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        config = get_config()
        kwargs = {"echo": config.db_echo, "pool_pre_ping": True}
        if not config.database_url.startswith("sqlite"):
            kwargs.update(
                pool_size=config.db_pool_size,
                max_overflow=config.db_max_overflow,
                pool_timeout=config.db_pool_timeout,
                pool_recycle=config.db_pool_recycle,
            )
        _engine = make_engine(config.database_url, **kwargs)
        logger.info("Database engine created (%s)", _engine.url.render_as_string(hide_password=True))
    return _engine


def get_session_factory() -> async_sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = make_sessionmaker(get_engine())
    return _SessionLocal


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request."""
    async with get_session_factory()() as session:
        yield session


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run a block as one unit of work.

    Begins (and commits or rolls back) a transaction when the session is idle.
    When the caller already has one open, the block joins it and the caller
    decides the outcome.
    """
    if session.in_transaction():
        yield session
    else:
        async with session.begin():
            yield session


async def dispose_engine() -> None:
    global _engine, _SessionLocal
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _SessionLocal = None
