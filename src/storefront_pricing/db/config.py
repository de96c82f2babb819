"""
Database configuration constants and settings.

Defines the catalog database path and the SQLite pragmas applied to every
connection.
"""

import os


class DatabaseConfig:
    """Configuration for the SQLite catalog database."""

    CATALOG_DB_PATH: str = os.getenv("STOREFRONT_DB_PATH", "data/catalog.db")

    # SQLite pragmas, applied on each connection via event listeners
    SQLITE_PRAGMAS: dict[str, str | int] = {
        # Write-Ahead Logging lets readers proceed during a batch commit
        "journal_mode": "WAL",
        "synchronous": "NORMAL",
        "foreign_keys": 1,
        "temp_store": "MEMORY",
        # Negative value = size in KB (16MB cache)
        "cache_size": -16000,
        # Wait up to 5 seconds when database is locked
        "busy_timeout": 5000,
    }

    @classmethod
    def get_catalog_db_url(cls, db_path: str | None = None) -> str:
        """
        Get SQLAlchemy database URL for the catalog database.

        Args:
            db_path: Database file path, defaults to CATALOG_DB_PATH

        Returns:
            Database URL string
        """
        return f"sqlite+aiosqlite:///{db_path or cls.CATALOG_DB_PATH}"

