"""
Database engine creation and management.

Provides async SQLAlchemy engines with SQLite configuration and pragma
enforcement on each new connection.
"""

import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront_pricing.db.config import DatabaseConfig

logger = logging.getLogger(__name__)

# Module-level engine cache
_catalog_engine: AsyncEngine | None = None


def create_engine(
    db_path: str,
    pragmas: dict[str, str | int] | None = None,
    echo: bool = False,
) -> AsyncEngine:
    """
    Create an async SQLAlchemy engine for SQLite.

    The engine uses the aiosqlite driver, a StaticPool (one shared connection,
    which suits SQLite's single-file nature) and applies PRAGMAs whenever a
    connection is opened.

    Args:
        db_path: Path to SQLite database file (":memory:" for tests)
        pragmas: PRAGMA settings; defaults to DatabaseConfig.SQLITE_PRAGMAS
        echo: If True, log all SQL queries

    Returns:
        Configured AsyncEngine instance

    Example:
        >>> engine = create_engine("data/catalog.db")
        >>> async with engine.begin() as conn:
        ...     await conn.execute(text("SELECT 1"))
    """
    if pragmas is None:
        pragmas = DatabaseConfig.SQLITE_PRAGMAS

    engine = create_async_engine(
        DatabaseConfig.get_catalog_db_url(db_path),
        poolclass=StaticPool,
        echo=echo,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        """Set SQLite PRAGMAs on each new connection."""
        cursor = dbapi_connection.cursor()
        try:
            for pragma, value in pragmas.items():
                cursor.execute(f"PRAGMA {pragma}={value}")
            logger.debug(f"Applied {len(pragmas)} PRAGMAs to connection for {db_path}")
        except Exception as e:
            logger.error(f"Failed to apply PRAGMAs to {db_path}: {e}")
            raise
        finally:
            cursor.close()

    logger.info(f"Created async engine for database: {db_path}")
    return engine


def get_catalog_engine(db_path: str | None = None, echo: bool = False) -> AsyncEngine:
    """
    Get or create the catalog database engine (singleton).

    Args:
        db_path: Database path used on first creation only
        echo: Log every SQL statement (first creation only)

    Returns:
        AsyncEngine for the catalog database
    """
    global _catalog_engine

    if _catalog_engine is None:
        _catalog_engine = create_engine(
            db_path=db_path or DatabaseConfig.CATALOG_DB_PATH,
            echo=echo,
        )
        logger.info("Initialized catalog database engine")

    return _catalog_engine


async def dispose_engines() -> None:
    """Dispose of the cached engine and close its connection."""
    global _catalog_engine

    if _catalog_engine is not None:
        await _catalog_engine.dispose()
        logger.info("Disposed catalog database engine")
        _catalog_engine = None

