"""SQLAlchemy async engine construction and connectivity check."""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from book_catalog.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """Build the engine; pool sizing only applies to server databases."""
    url = make_url(settings.database_dsn)
    kwargs: dict = {"pool_pre_ping": True, "echo": False}
    if url.get_backend_name() != "sqlite":
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=300,
        )
    return create_async_engine(url, **kwargs)


async def ping(engine: AsyncEngine) -> None:
    """Raise if the database cannot be reached."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
