"""
SQLAlchemy ORM models for the storefront catalog.

- base.py: Base class
- catalog.py: Product and StoreSettings tables
"""

from storefront_pricing.db.models.base import Base
from storefront_pricing.db.models.catalog import Product, StoreSettings

__all__ = ["Base", "Product", "StoreSettings"]
