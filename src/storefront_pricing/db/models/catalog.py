"""
SQLAlchemy ORM models for the product catalog and store settings.

This module defines:
- Product (products): one row per sellable game
- StoreSettings (settings): singleton row holding the pricing settings document

Field names match the CatalogItem / PricingSettings pydantic models in
shared/models.py.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storefront_pricing.db.models.base import Base


def _new_id() -> str:
    return uuid4().hex


class Product(Base):
    """
    Product catalog table (products).

    Pricing invariants (enforced by the pricing core, not the database):
    - price <= base_price
    - price and base_price are multiples of 100
    - both are re-derivable from cost/currency/overrides + current settings
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(
        String(32), primary_key=True, default=_new_id, comment="Storage-assigned id"
    )
    sku: Mapped[str | None] = mapped_column(
        String(64), nullable=True, comment="External identifier (barcode)"
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    supplier_name: Mapped[str | None] = mapped_column(String(300), nullable=True)
    slug: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    platform: Mapped[str | None] = mapped_column(String(16), nullable=True)

    # Pricing inputs
    cost_price: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, comment="Supplier cost in `currency`"
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="ARS")
    custom_margin: Mapped[float | None] = mapped_column(Float, nullable=True)
    discount_percentage: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0
    )
    manual_price: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Derived prices
    price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    base_price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    stock: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Display metadata
    image: Mapped[str] = mapped_column(Text, nullable=False, default="")
    trailer_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        Index("idx_product_sku", "sku"),
        Index("idx_product_slug", "slug"),
        Index("idx_product_platform", "platform"),
        {"comment": "Storefront product catalog"},
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, sku='{self.sku}', title='{self.title}', price={self.price})>"


class StoreSettings(Base):
    """Singleton settings row (settings), keyed by ``key='global'``."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(32), primary_key=True, default="global")
    document: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return f"<StoreSettings(key='{self.key}')>"
