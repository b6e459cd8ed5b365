"""Async SQLAlchemy engine for the progress tables.

When DATABASE_URL is configured, provides:
- async engine for PostgreSQL via asyncpg
- ping_database() for the readiness probe
- FastAPI lifespan hook for startup/shutdown

When DATABASE_URL is unset, engine is None and the app runs on the
in-memory repos in app/repos/registry.py.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


engine: AsyncEngine | None
if SETTINGS.database_url:
    engine = create_async_engine(
        SETTINGS.database_url,
        echo=SETTINGS.is_dev,  # log SQL in dev only
        pool_size=5,
        max_overflow=10,
    )
else:
    engine = None


async def ping_database() -> bool | None:
    """True/False for a configured database, None when there is none."""
    if engine is None:
        return None
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database ping failed")
        return False
    return True


@asynccontextmanager
async def lifespan_db():
    """Startup/shutdown hook for the database engine."""
    if engine is None:
        logger.info("No DATABASE_URL configured, using in-memory repositories")
        yield
        return

    logger.info("Database engine created: %s", engine.url)
    yield
    await engine.dispose()
    logger.info("Database engine disposed")
