"""
Postboard Backend — Database Session Management
=================================================

What:  Async SQLAlchemy engine, session factory, and per-request sessions.
How:   `Database` owns one async engine and one session factory. It is built
       once by the app factory from `Settings` and kept on `app.state`.
       `Database.session()` yields a session that commits on success and
       rolls back on error.
Who:   The session dependency (postboard.dependencies), the health check,
       the lifespan handler and the test-suite.
When:  Engine is created with the app; sessions are created per-request.

Connection Pooling (PostgreSQL):
    pool_size / max_overflow:  from settings (default 20 + 10, total max 30)
    pool_pre_ping:             validate connections before use
    pool_recycle=3600:         recycle connections every hour

SQLite (development and tests):
    Two connection-level settings are applied on every new connection:
    1. PRAGMA foreign_keys=ON. SQLite ignores REFERENCES clauses unless
       this is set per connection, and posts.user_id must always point at
       an existing user (PostgreSQL enforces this natively).
    2. The driver's implicit BEGIN is disabled and every transaction starts
       with BEGIN IMMEDIATE. Two sessions that both read and then write
       (PostService.get_one: UPDATE views, then SELECT) would otherwise both
       take SHARED locks and deadlock on the upgrade to RESERVED; with
       IMMEDIATE the second writer waits on the busy handler instead.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from postboard.config import Settings


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic and `create_all()` use.
    """
    pass


# ── Engine Configuration ──────────────────────────────────────────────────
def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database URL."""
    if settings.is_sqlite:
        # SQLite has no server-side pool to size; the default pool is used
        engine = create_async_engine(
            settings.database_url,
            echo=settings.log_level == "DEBUG",
        )

        @event.listens_for(engine.sync_engine, "connect")
        def _configure_sqlite_connection(dbapi_connection, connection_record):
            # Autocommit at the driver level; transactions are opened by
            # _begin_immediate below. Must be set before the PRAGMA, which
            # is a no-op inside an open transaction.
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine.sync_engine, "begin")
        def _begin_immediate(conn):
            # Take the write lock up front (see module docstring)
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,          # Persistent connections (default: 20)
        max_overflow=settings.db_max_overflow,     # Extra connections for spikes (default: 10)
        pool_pre_ping=settings.db_pool_pre_ping,  # Validate before use (default: True)
        pool_recycle=3600,                         # Recycle after 1 hour
        # SQL echo only in DEBUG; it is far too noisy otherwise
        echo=settings.log_level == "DEBUG",
    )


class Database:
    """
    Engine + session factory pair for one configured store.

    expire_on_commit=False keeps attributes readable after commit, which
    response serialization relies on. Without it, touching an attribute
    after commit triggers a lazy load outside the session's transaction.
    """

    def __init__(self, settings: Settings):
        self.engine = build_engine(settings)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    # ── Session Context ───────────────────────────────────────────────────
    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Provide a session for one request.

        How it works:
            1. Creates a new session from the factory
            2. Yields it to the caller (the service performs queries)
            3. On success: commits the transaction
            4. On error: rolls back and re-raises
            5. Always: closes the session (returns connection to pool)

        Example usage:
            async with database.session() as db:
                await post_service.get_one(db, post_id)
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                # Any failure, including non-DB errors raised after a query,
                # discards the whole transaction
                await session.rollback()
                raise
            finally:
                await session.close()

    # ── Lifecycle Helpers ─────────────────────────────────────────────────
    async def create_all(self) -> None:
        """Create every table known to `Base.metadata` (development/tests)."""
        # Model modules must be imported so their tables are registered.
        import postboard.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close all pooled connections (application shutdown)."""
        await self.engine.dispose()
