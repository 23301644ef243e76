"""Database configuration and connection management."""

from collections.abc import AsyncGenerator
from typing import Any

import structlog
from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings

logger = structlog.get_logger()


def normalize_database_url(url: str) -> str:
    """Swap sync driver URLs for their async counterparts."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def build_engine(url: str, **overrides: Any) -> AsyncEngine:
    """
    Create an async engine for PostgreSQL or SQLite.

    Args:
        url: Database URL (sync or async driver form)
        **overrides: Extra keyword arguments for create_async_engine

    Returns:
        Configured async engine
    """
    url = normalize_database_url(url)
    backend = make_url(url).get_backend_name()
    lock_timeout = settings.db_lock_timeout_seconds

    options: dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
    if backend == "postgresql":
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=3600,
            connect_args={
                "server_settings": {
                    "application_name": settings.app_name,
                    "lock_timeout": str(int(lock_timeout * 1000)),
                },
            },
        )
    elif backend == "sqlite":
        options["connect_args"] = {"timeout": lock_timeout}
    if "poolclass" in overrides:
        # Sizing options are rejected by pools that do not queue connections
        options.pop("pool_size", None)
        options.pop("max_overflow", None)
    options.update(overrides)

    engine = create_async_engine(url, **options)

    if backend == "sqlite":
        _install_sqlite_locking(engine)

    return engine


def _install_sqlite_locking(engine: AsyncEngine) -> None:
    """Make every SQLite transaction take the write lock up front."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        # Stop the driver from issuing its own deferred BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


# Application engine with connection pooling
engine: AsyncEngine = build_engine(settings.database_url)

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_database_connection() -> bool:
    """Check if database connection is healthy."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("database_health_check_failed", backend=engine.dialect.name, error=str(e))
        return False
