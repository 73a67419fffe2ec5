"""Async SQLAlchemy engine, session factory, and Base declaration."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from sqlalchemy import text

from locallink.config import Settings


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the Review Store database."""
    if settings.database_url.startswith("sqlite"):
        # SQLite connections must not outlive the event loop that opened them
        return create_async_engine(
            settings.database_url,
            echo=False,
            poolclass=NullPool,
        )
    return create_async_engine(
        settings.database_url,
        echo=False,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables (idempotent, IF NOT EXISTS)."""
    from locallink import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_db_connectivity(session_factory: async_sessionmaker[AsyncSession]) -> bool:
    """Return True if a simple SELECT 1 succeeds."""
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
