from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from ..config import get_settings

Base = declarative_base()

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def configure_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """(Re)create the engine and session factory for a database URL."""
    global _engine, _session_factory
    url = database_url or get_settings().DATABASE_URL
    _engine = create_async_engine(url, future=True)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


def get_engine() -> AsyncEngine:
    if _engine is None:
        configure_engine()
    return _engine


async def init_db() -> None:
    """Create all tables."""
    # Register models on Base.metadata
    from . import models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the engine's connection pool."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield a database session for one request."""
    if _session_factory is None:
        configure_engine()
    async with _session_factory() as session:
        yield session
