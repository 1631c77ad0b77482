"""Async database session and engine configuration."""

from typing import Tuple

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine


def create_engine_and_session(
    database_url: str, echo: bool = False, **engine_kwargs
) -> Tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Build the async engine and its session factory.

    Args:
        database_url: SQLAlchemy async URL (postgresql+asyncpg:// or sqlite+aiosqlite://)
        echo: Log SQL statements
        **engine_kwargs: Extra arguments for create_async_engine

    Returns:
        (engine, session factory)
    """
    kwargs: dict = {"echo": echo}
    # SQLite doesn't support pool_size / max_overflow / pool_pre_ping
    if not database_url.startswith("sqlite"):
        kwargs.update(pool_size=5, max_overflow=5, pool_pre_ping=True)
    kwargs.update(engine_kwargs)

    engine = create_async_engine(database_url, **kwargs)
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return engine, session_factory
