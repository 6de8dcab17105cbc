"""
database.py — SQLAlchemy 2.0 async engine and session factory.

This module owns ALL database connection infrastructure.
The application factory builds exactly one engine and stores it, with its
session factory, on app.state. Nothing else creates engines directly.

Usage in routes (via dependency injection):
    from planmystay.database import get_db
    async def my_route(db: AsyncSession = Depends(get_db)): ...

Usage outside a request (session store, identity resolution):
    async with sessionmaker() as session: ...
"""
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import JSON, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

# Document-style columns: JSONB on PostgreSQL, plain JSON on SQLite (tests)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class DatabaseConnectionError(RuntimeError):
    """The database could not be reached at startup."""


# ---------------------------------------------------------------------------
# Declarative base — ALL ORM models inherit from this
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """
    SQLAlchemy declarative base.
    All ORM models in planmystay/models/ inherit from Base.
    Defined here (not in models/) to prevent circular imports in alembic/env.py.
    """
    pass


# ---------------------------------------------------------------------------
# Async engine — one per application lifetime
# ---------------------------------------------------------------------------
def create_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create the application's async engine. Pooling is left to the driver."""
    if url.startswith("sqlite"):
        # In-memory SQLite must share one connection across the whole app
        return create_async_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        url,
        echo=echo,                # Logs SQL statements in debug mode
        pool_size=5,              # Core connection pool size
        max_overflow=10,          # Extra connections under peak load
        pool_pre_ping=True,       # Detect and discard stale connections before each use
    )


# ---------------------------------------------------------------------------
# Session factory — produces AsyncSession instances
# ---------------------------------------------------------------------------
def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,   # Keep objects usable after commit without re-querying
    )


async def check_connection(engine: AsyncEngine) -> None:
    """Round-trip a trivial query; raises DatabaseConnectionError on failure."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:
        raise DatabaseConnectionError(str(exc)) from exc


# ---------------------------------------------------------------------------
# FastAPI dependency — yields session, commits or rolls back
# ---------------------------------------------------------------------------
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an AsyncSession per request.

    Automatically commits on success or rolls back on exception.
    Always closes the session after the request (via async context manager).
    """
    async with request.app.state.sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
