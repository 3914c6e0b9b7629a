"""
Database Connection Module
Builds the SQLAlchemy async engine and session factory from settings.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ordering.core.config import Settings, get_settings


# Base class for all our models
class Base(DeclarativeBase):
    pass


def create_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    """
    Create the async engine.

    PostgreSQL (psycopg) in deployment; SQLite (aiosqlite) works for local
    runs and tests.
    """
    settings = settings or get_settings()
    options = {"echo": settings.database_echo}

    if settings.database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_size"] = 5  # Connection pool size
        options["max_overflow"] = 10  # Extra connections when pool is full

    return create_async_engine(settings.database_url, **options)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory - creates new database sessions."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False  # Objects remain accessible after commit
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Create all tables in database.
    Called once at application startup.
    """
    # Register the models on Base.metadata
    from ordering import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
