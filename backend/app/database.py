"""
RecipeBox Backend - Database Engine & Session Factory
======================================================

What:  Async SQLAlchemy engine, session factory and declarative base.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with connection pooling. The SQL recipe store
       receives the session factory and opens one session per operation.
Who:   Used by SQLRecipeStore, the health check, Alembic and the lifespan.
When:  Engine is created at module import; sessions are created per store call.

Connection Pooling Strategy:
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes (total max = 30)
    pool_timeout=10:   Seconds to wait for a free connection before failing
    pool_pre_ping:     Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour

    SQLite URLs (used by the test suite) skip the pool sizing options because
    SQLAlchemy picks a dialect-specific pool for them.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


def build_engine(database_url: str) -> AsyncEngine:
    """Create an async engine for `database_url` using the configured pool options."""
    pool_options = {}
    if not database_url.startswith("sqlite"):
        pool_options = {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_timeout": settings.db_pool_timeout,
            "pool_recycle": 3600,
        }

    return create_async_engine(
        database_url,
        pool_pre_ping=settings.db_pool_pre_ping,
        # SQL logging is noisy; only useful during development
        echo=settings.log_level == "DEBUG",
        **pool_options,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `bind`.

    expire_on_commit=False: ORM objects stay readable after commit, so the
    store can convert them to schemas once the transaction is closed.
    """
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


# ── Engine & Session Factory ──────────────────────────────────────────────
engine = build_engine(settings.database_url)
async_session_factory = build_session_factory(engine)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object used by Alembic for migrations and by
    create_tables() for development setups.
    """
    pass


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_tables(bind: AsyncEngine = engine) -> None:
    """
    Create all tables registered on Base.metadata.

    When:  Startup, only if CREATE_TABLES_ON_STARTUP is set, and in tests.
    Production schemas are managed by Alembic instead.
    """
    # Registers the recipe tables on Base.metadata
    from app.models import recipe  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """
    Gracefully closes all connections in the pool.

    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
