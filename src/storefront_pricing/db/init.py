"""
Database initialization and schema management.

Creates the catalog database file, its tables, and verifies connectivity.
"""

import logging
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from storefront_pricing.db.config import DatabaseConfig
from storefront_pricing.db.engine import get_catalog_engine
from storefront_pricing.db.models.base import Base

logger = logging.getLogger(__name__)


def ensure_database_directory(db_path: str | None = None) -> None:
    """
    Ensure the parent directory of the catalog database exists.

    Example:
        >>> ensure_database_directory("data/catalog.db")
        >>> # data/ directory now exists
    """
    path = db_path or DatabaseConfig.CATALOG_DB_PATH
    if path == ":memory:":
        return
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    logger.info(f"Ensured database directory exists: {Path(path).parent}")


async def create_all_tables(engine: AsyncEngine) -> None:
    """
    Create all catalog tables on ``engine``.

    Note:
        This function uses SQLAlchemy's create_all() which is idempotent.
        It will not recreate existing tables.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Created all tables for engine: {engine.url}")


async def init_database(engine: AsyncEngine | None = None) -> None:
    """
    Initialize the catalog database.

    This should be called during application startup.

    Raises:
        Exception: If the connectivity check fails
    """
    logger.info("Initializing catalog database...")

    if engine is None:
        ensure_database_directory()
        engine = get_catalog_engine()

    await create_all_tables(engine)

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info(f"✓ Catalog database initialized: {engine.url}")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
