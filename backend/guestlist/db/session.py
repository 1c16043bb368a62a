# guestlist/db/session.py
from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from guestlist.core.config import settings


def engine_options(url: str) -> dict[str, Any]:
    """
    Pool settings for a server database. SQLite (local runs, tests) keeps
    SQLAlchemy's own pool defaults.
    """
    options: dict[str, Any] = {"echo": settings.DB_ECHO}
    if make_url(url).get_backend_name() == "sqlite":
        return options
    options.update(
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=settings.DB_POOL_RECYCLE_SECONDS,
    )
    return options


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL_ASYNC_CLEAN,
    **engine_options(settings.DATABASE_URL_ASYNC_CLEAN),
)

# expire_on_commit=False: registration and ledger handlers keep using the
# event they loaded after committing the write.
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One AsyncSession per request; an uncommitted transaction is rolled back on close."""
    async with AsyncSessionLocal() as session:
        yield session
