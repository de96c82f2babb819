"""
Database connection, schema and repositories for the storefront catalog.

Usage:
    from storefront_pricing.db import (
        CatalogRepository,
        get_catalog_engine,
        init_database,
        make_session_maker,
    )

    engine = get_catalog_engine("data/catalog.db")
    await init_database(engine)
    repo = CatalogRepository(make_session_maker(engine))
    items = await repo.get_all()
"""

from storefront_pricing.db.config import DatabaseConfig
from storefront_pricing.db.engine import (
    create_engine,
    dispose_engines,
    get_catalog_engine,
)
from storefront_pricing.db.init import (
    create_all_tables,
    ensure_database_directory,
    init_database,
)
from storefront_pricing.db.repository import CatalogRepository, SettingsRepository
from storefront_pricing.db.session import make_session_maker

__all__ = [
    # Configuration
    "DatabaseConfig",
    # Engine creation and management
    "create_engine",
    "get_catalog_engine",
    "dispose_engines",
    # Session management
    "make_session_maker",
    # Initialization
    "init_database",
    "create_all_tables",
    "ensure_database_directory",
    # Repositories
    "CatalogRepository",
    "SettingsRepository",
]
