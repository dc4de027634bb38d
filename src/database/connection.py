"""
Database connection and session management with connection pooling.

Provides the async SQLAlchemy engine and session factory. PostgreSQL
(asyncpg) is the production target; SQLite (aiosqlite) is accepted for
local development and the test suite.
"""

import logging
from typing import AsyncGenerator, Optional, Dict, Any
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
    AsyncEngine,
)
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool

from config import settings
from .models import Base
from .exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)


def normalize_database_url(database_url: str) -> str:
    """Rewrite plain postgres URLs to the asyncpg driver."""
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


class Database:
    """Database connection manager."""

    def __init__(self):
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._initialized = False

    async def initialize(self) -> bool:
        """Create the engine and all tables."""
        if self._initialized:
            return True

        database_url = settings.database_url
        if not database_url:
            logger.warning("DATABASE_URL not configured")
            return False

        try:
            database_url = normalize_database_url(database_url)
            sqlite = database_url.startswith("sqlite")

            # NullPool for SQLite and tests, bounded queue pool otherwise
            if sqlite or settings.is_test:
                pool_config: Dict[str, Any] = {"poolclass": NullPool}
                logger.info("Using NullPool (no connection pooling)")
            else:
                pool_config = {
                    "poolclass": AsyncAdaptedQueuePool,
                    "pool_size": settings.db_pool_size,
                    "max_overflow": settings.db_max_overflow,
                    "pool_timeout": settings.db_pool_timeout,
                    "pool_recycle": settings.db_pool_recycle,
                    "pool_pre_ping": True,
                }
                logger.info(
                    f"Database pool config: size={settings.db_pool_size}, "
                    f"max_overflow={settings.db_max_overflow}, "
                    f"timeout={settings.db_pool_timeout}s"
                )

            connect_args: Dict[str, Any] = {}
            if database_url.startswith("postgresql+asyncpg"):
                connect_args = {
                    "server_settings": {
                        "application_name": "project-management-api",
                        "jit": "off",
                    }
                }

            self.engine = create_async_engine(
                database_url,
                echo=settings.database_echo,
                connect_args=connect_args,
                **pool_config,
            )

            self.session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )

            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            self._initialized = True
            logger.info("Database initialized successfully")
            return True

        except Exception as e:
            logger.error(f"Database initialization failed: {e}")
            return False

    async def drop_all(self):
        """Drop every table (seed script reset and tests)."""
        if not self._initialized:
            await self.initialize()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("All tables dropped")

    async def close(self):
        """Dispose the engine. The manager can be initialized again later."""
        if self.engine:
            await self.engine.dispose()
            logger.info("Database connection closed")
        self.engine = None
        self.session_factory = None
        self._initialized = False

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session that commits on success and rolls back on error."""
        if not self._initialized:
            await self.initialize()

        if not self.session_factory:
            raise DatabaseConnectionError("Database not initialized")

        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.debug(f"Database session rolled back: {e}")
                raise

    async def health_check(self) -> dict:
        """Run SELECT 1 and report pool status."""
        try:
            if not self._initialized:
                await self.initialize()

            async with self.session() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()

            pool_status = await self.get_pool_status()

            return {
                "status": "healthy",
                "initialized": self._initialized,
                "pool": pool_status,
            }
        except Exception as e:
            return {
                "status": "unhealthy",
                "error": str(e),
            }

    async def get_pool_status(self) -> Dict[str, Any]:
        """Connection pool statistics for monitoring."""
        if not self.engine:
            return {
                "status": "not_initialized",
                "error": "Engine not created"
            }

        try:
            pool = self.engine.pool

            if isinstance(pool, NullPool):
                return {
                    "pool_type": "NullPool",
                    "status": "no_pooling",
                    "message": "Connection pooling disabled",
                }

            size = pool.size()
            checked_out = pool.checkedout()
            overflow = pool.overflow()
            max_connections = size + pool._max_overflow
            utilization = checked_out / max(max_connections, 1)

            if utilization > 0.9:
                health = "critical"
            elif utilization > 0.8:
                health = "warning"
            else:
                health = "healthy"

            return {
                "pool_type": type(pool).__name__,
                "status": health,
                "size": size,
                "checked_in": pool.checkedin(),
                "checked_out": checked_out,
                "overflow": overflow,
                "total_connections": size + overflow,
                "max_connections": max_connections,
                "utilization": f"{utilization:.1%}",
            }

        except Exception as e:
            logger.error(f"Error getting pool status: {e}")
            return {
                "status": "error",
                "error": str(e)
            }


# Singleton instance
_database: Optional[Database] = None


def get_database() -> Database:
    """Get the database singleton."""
    global _database
    if _database is None:
        _database = Database()
    return _database


async def init_database() -> bool:
    """Initialize the database."""
    db = get_database()
    return await db.initialize()


async def close_database():
    """Close the database connection (the singleton is kept for reuse)."""
    if _database:
        await _database.close()

