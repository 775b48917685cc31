"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

The engine is built from an explicit Settings object inside create_app()
and kept on app.state, so tests can run the whole app against an
in-memory SQLite database without touching module globals.
"""

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from notekeeper.config import Settings
from notekeeper.db.models import Base


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database URL."""
    if settings.database_url.startswith("sqlite"):
        # One shared connection, so an in-memory database survives across sessions.
        return create_async_engine(
            settings.database_url,
            echo=settings.debug,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    # Connection pool: min 5, max 20 connections.
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_size=5,
        max_overflow=15,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory — each request gets its own session."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_schema(engine: AsyncEngine) -> None:
    """Create missing tables from the ORM metadata."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request) -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
