"""
Database session configuration.

This module handles database engine creation and session management
using SQLAlchemy with async support for PostgreSQL.

The engine is process-wide state: it is created once by ``init_db`` when
the application starts and disposed by ``close_db`` on shutdown. Every
request receives its own session through ``get_db``.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from backend.app.core.config import settings

engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker] = None

# Create declarative base for models
Base = declarative_base()


def init_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Create the async engine and session factory if they do not exist yet.

    Pool sizing only applies to server databases; SQLite uses its own pool.
    """
    global engine, AsyncSessionLocal

    if engine is not None:
        return engine

    url = database_url or settings.database_url
    engine_kwargs = {"echo": settings.db_echo, "future": True}
    if not url.startswith("sqlite"):
        engine_kwargs["pool_size"] = settings.db_pool_size
        engine_kwargs["max_overflow"] = settings.db_max_overflow

    engine = create_async_engine(url, **engine_kwargs)
    AsyncSessionLocal = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    return engine


async def init_db() -> None:
    """Create the engine and all tables. Called once at startup."""
    init_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose the engine and its pooled connections. Called once at shutdown."""
    global engine, AsyncSessionLocal

    if engine is not None:
        await engine.dispose()
    engine = None
    AsyncSessionLocal = None


async def get_db():
    """
    FastAPI dependency for database sessions.

    Yields an async database session and ensures it's properly closed.
    """
    if AsyncSessionLocal is None:
        init_engine()
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
