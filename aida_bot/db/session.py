"""Async database engine and session management."""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from aida_bot.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the history store.

    SQLite URLs (used for local runs and tests) do not accept pool sizing
    arguments, so those are only passed to server databases.
    """
    url = make_url(settings.database_url)
    kwargs: dict = {"echo": settings.app_debug}
    if not url.get_backend_name().startswith("sqlite"):
        kwargs["pool_size"] = settings.database_pool_size
        kwargs["pool_pre_ping"] = True
    return create_async_engine(settings.database_url, **kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to *engine*."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
