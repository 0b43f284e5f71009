"""Database engine and sessions for PeriodCalc.

One async engine per process, created from ``AppConfig.db`` on first use and
disposed by ``close_db`` at the end of each CLI command.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from periodcalc.config import get_config
from periodcalc.db.models import Base

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_sessions: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it from config if needed.

    Raises:
        KeyError: If DATABASE_URL is not configured
    """
    global _engine

    if _engine is None:
        db_config = get_config().db
        url = make_url(db_config.url)

        engine_kwargs = {"echo": db_config.echo}
        # Pool sizing only applies to server databases (MSSQL source)
        if url.get_backend_name() != "sqlite":
            engine_kwargs.update({
                "pool_size": db_config.pool_size,
                "max_overflow": db_config.pool_max_overflow,
                "pool_timeout": db_config.pool_timeout,
                "pool_pre_ping": True,
            })

        _engine = create_async_engine(url, **engine_kwargs)
        logger.debug(f"Connected to {url.render_as_string(hide_password=True)}")

    return _engine


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Session scope for one fetch or persist step.

    Commits when the block succeeds, rolls back and re-raises otherwise.

    Usage:
        async with get_session() as session:
            periods = await fetch_periods(session, query)
    """
    global _sessions

    if _sessions is None:
        _sessions = async_sessionmaker(get_engine(), expire_on_commit=False)

    async with _sessions() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(drop: bool = False) -> None:
    """Create the period tables, dropping existing ones first if asked."""
    async with get_engine().begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose the engine so the next command starts from fresh config."""
    global _engine, _sessions

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessions = None
