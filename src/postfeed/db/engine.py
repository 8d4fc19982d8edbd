"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode. create_async_engine for connection
pooling, AsyncSession for per-request database access. The engine is built
from Settings in create_app() and kept on app.state; get_db() hands each
request its own session.
"""

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from postfeed.config import Settings
from postfeed.db.models import Base


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the engine. SQLite gets a single shared connection."""
    if settings.database_url.startswith("sqlite"):
        return create_async_engine(
            settings.database_url,
            echo=settings.database_echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    # Connection pool: min 5, max 20 connections.
    return create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_size=5,
        max_overflow=15,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables directly (tests and local SQLite runs)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency — yields a session per request, auto-closes.

    Closing a session with an open transaction rolls it back, so a client
    disconnecting mid-request never leaves a partial write behind.
    """
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
