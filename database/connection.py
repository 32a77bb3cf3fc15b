"""Database connection and session management."""

import logging
from collections.abc import AsyncGenerator
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from core.config import settings

logger = logging.getLogger(__name__)

# asyncpg rejects these libpq-style query parameters
_ASYNCPG_UNSUPPORTED_PARAMS = ("sslmode", "channel_binding")


def normalize_database_url(url: str) -> str:
    """Rewrite a libpq-style Postgres URL for the asyncpg driver."""
    if any(f"{param}=" in url for param in _ASYNCPG_UNSUPPORTED_PARAMS):
        parsed = urlparse(url)
        query_params = parse_qs(parsed.query)
        for param in _ASYNCPG_UNSUPPORTED_PARAMS:
            query_params.pop(param, None)
        new_query = urlencode({k: v[0] for k, v in query_params.items()})
        url = urlunparse(parsed._replace(query=new_query))
        logger.info("Removed asyncpg-incompatible SSL parameters from database URL")

    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgres://"):
        # Supabase and other providers hand out postgres:// URLs
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


def build_engine_kwargs(url: str) -> dict[str, Any]:
    """Engine arguments for the configured driver and pooling mode."""
    engine_kwargs: dict[str, Any] = {
        "echo": False,
        "echo_pool": False,
    }

    if url.startswith("postgresql+asyncpg://"):
        engine_kwargs["connect_args"] = {
            # A hung statement surfaces as a handler failure, and Stripe retries
            "command_timeout": settings.database_command_timeout,
            # Supabase's transaction pooler does not support prepared statements
            "statement_cache_size": 0,
            "server_settings": {
                "timezone": "UTC",
                "application_name": "saas-billing-backend",
            },
        }

    if settings.use_null_pool:
        engine_kwargs["poolclass"] = NullPool
    else:
        engine_kwargs.update(
            {
                "pool_size": settings.database_pool_size,
                "max_overflow": settings.database_max_overflow,
                "pool_timeout": 30,
                "pool_recycle": 3600,
                "pool_pre_ping": True,
            }
        )
    return engine_kwargs


database_url = normalize_database_url(settings.database_url)
engine = create_async_engine(database_url, **build_engine_kwargs(database_url))

# Async session factory
async_session = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,  # Keep objects accessible after commit
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting database sessions.

    One session per request; rolled back on error and always closed.
    """
    async with async_session() as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Database session error: {e}")
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_database() -> None:
    """
    Initialize the database on application startup.

    In debug mode tables are created directly; otherwise the schema is owned
    by Alembic migrations and only connectivity is checked.
    """
    try:
        from database.models import Base

        async with engine.begin() as conn:
            if settings.debug:
                await conn.run_sync(Base.metadata.create_all)
                logger.info("Database tables created/verified (debug mode)")
            else:
                await conn.execute(text("SELECT 1"))
                logger.info("Database connection verified")

    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


async def close_database() -> None:
    """Close database connections on application shutdown."""
    await engine.dispose()
    logger.info("Database connections closed")


async def check_database_health() -> dict[str, str]:
    """
    Check database health for monitoring endpoints.

    Returns:
        dict: Database health status
    """
    try:
        async with async_session() as session:
            result = await session.execute(text("SELECT 1"))
            if result.scalar() == 1:
                return {"status": "healthy", "message": "Database connection OK"}
            return {"status": "unhealthy", "message": "Database query failed"}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "unhealthy", "message": "Database error"}
