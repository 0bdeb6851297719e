"""
Real Estate API - Database Session Management
==============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   `Database` owns one async engine with connection pooling and a session
       factory. `get_db_session` yields a session per request that commits on
       success and rolls back on error.
Who:   `create_app()` builds the `Database` from `Settings` and stores it on
       `app.state.database`; routes receive sessions via `Depends`.
When:  Engine is created once at app construction; sessions per request.

Transaction Boundary:
    Services only `flush()`. The commit happens once, after the route handler
    returns, so every multi-row write of a request (a price change and its
    trace row) lands in a single transaction. A session closed without a
    commit (including a cancelled request) is rolled back by SQLAlchemy.
"""

import logging
from typing import Any, AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from realestate.config import Settings

logger = logging.getLogger(__name__)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object; Alembic autogenerate and
    `Database.create_all()` both read from it.
    """
    pass


class Database:
    """
    Engine and session factory built from a `Settings` instance.

    Pool configuration:
        pool_size / max_overflow / pool_pre_ping come from settings.
        pool_recycle=3600 recycles connections every hour.
        SQLite URLs skip pool sizing; callers may pass `poolclass` etc.
        through `engine_kwargs` (tests use StaticPool for :memory:).
    """

    def __init__(self, settings: Settings, **engine_kwargs: Any):
        options: dict = {"echo": settings.log_level == "DEBUG"}
        if not settings.is_sqlite:
            options.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=3600,
            )
        options.update(engine_kwargs)

        self.engine: AsyncEngine = create_async_engine(settings.database_url, **options)

        # expire_on_commit=False: attributes stay readable after commit
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    def session(self) -> AsyncSession:
        """Opens a new session; use as `async with database.session() as s:`."""
        return self.session_factory()

    async def create_all(self) -> None:
        """
        What:  Creates every table registered on `Base.metadata` if missing.
        When:  At startup when DB_AUTO_CREATE is set, and in the test suite.
        """
        # Register all mapped classes before touching metadata
        import realestate.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured")

    async def ping(self) -> bool:
        """Runs SELECT 1; used by the health check."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def dispose(self) -> None:
        """
        What:  Gracefully closes all connections in the pool.
        When:  Called during application shutdown (lifespan handler).
        """
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Opens a session from the app's `Database`
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back, then re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/properties/{property_id}")
        async def get_property(property_id: int, db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
