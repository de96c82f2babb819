"""
Core data models for the storefront pricing engine.

This module contains the settings snapshot consumed by every pricing
operation, the catalog item record, ephemeral reconciliation rows, and the
result types produced by the reconciler and the batch driver.

Persisted records use camelCase aliases so they line up with the stored
document fields (``costPrice``, ``basePrice``...); Python code uses snake_case.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .number_utils import ZERO, to_decimal, to_non_negative_decimal, to_optional_decimal

# ================================
# ENUMS
# ================================


class Currency(str, Enum):
    """Currency an item's cost is denominated in."""

    LOCAL = "ARS"
    FOREIGN = "USD"


class Platform(str, Enum):
    """Console a game is sold for."""

    PS4 = "PS4"
    PS5 = "PS5"
    SWITCH = "SWITCH"
    SWITCH_2 = "SWITCH_2"


class WriteKind(str, Enum):
    """Kind of staged storage write."""

    CREATE = "create"
    UPDATE = "update"


class UpdateReason(str, Enum):
    """Why the reconciler or a bulk operation staged an item update."""

    MATCHED = "matched"
    UNAVAILABLE = "unavailable"
    BULK_ACTION = "bulk_action"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ================================
# SETTINGS
# ================================


class MarginTier(_CamelModel):
    """Margin applied when the foreign-currency cost is at or below ``max_price``."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    max_price: Decimal = Field(..., ge=0, description="Upper cost bound (foreign currency)")
    percentage: Decimal = Field(..., description="Margin percent for this tier")


class PricingSettings(_CamelModel):
    """
    Immutable snapshot of the store-wide pricing settings.

    Every pricing operation takes one of these explicitly; an edit made while
    an operation is running is only seen by the next invocation.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    global_margin: Decimal = Field(
        Decimal("30"), description="Margin percent used when an item has none"
    )
    vat_rate: Decimal = Field(Decimal("21"), ge=0, description="VAT percent")
    enable_vat_global: bool = Field(
        False, description="Add VAT to every computed (non-manual) base price"
    )
    exchange_rate: Decimal = Field(
        Decimal("1200"),
        gt=0,
        description="Local currency units per unit of foreign currency",
    )
    sheet_url: str = Field("", description="Location of the supplier price feed")
    last_sync: datetime | None = Field(
        None, description="Time of the last successful feed reconciliation"
    )

    enable_tiered_margins: bool = Field(
        False, description="Pick the margin from margin_tiers when no custom margin"
    )
    margin_tiers: tuple[MarginTier, ...] = Field(
        default_factory=tuple, description="Cost-bracketed margin rules"
    )

    auto_exchange_rate: bool = Field(
        False, description="Refresh exchange_rate from the quote API automatically"
    )
    auto_exchange_source: str = Field("blue", description="Quote series to follow")
    last_exchange_update: datetime | None = Field(
        None, description="Time exchange_rate was last refreshed automatically"
    )

    @field_validator("global_margin", "vat_rate", mode="before")
    @classmethod
    def coerce_percent(cls, v) -> Decimal:
        """Accept numeric strings from form posts and stored documents."""
        if v is None:
            # Rejected by field validation
            return v
        return to_decimal(v)

    @field_validator("sheet_url", mode="before")
    @classmethod
    def strip_url(cls, v: str | None) -> str:
        return (v or "").strip()

    def to_document(self) -> dict[str, Any]:
        """Serialise to the camelCase JSON document stored in the settings row."""
        return self.model_dump(mode="json", by_alias=True)


# ================================
# CATALOG
# ================================


class PriceResult(BaseModel):
    """Computed pair of prices, both whole multiples of the rounding unit."""

    model_config = ConfigDict(frozen=True)

    base_price: int = Field(..., ge=0, description="Pre-discount price")
    final_price: int = Field(..., ge=0, description="Price actually charged")


class CatalogItem(_CamelModel):
    """One sellable product as stored in the catalog."""

    id: str = Field(..., min_length=1, description="Storage-assigned identifier")
    sku: str | None = Field(
        None, description="External identifier (barcode) used as reconciliation key"
    )
    title: str = Field("", description="Display title")
    supplier_name: str | None = Field(None, description="Name as written by the supplier")
    slug: str = Field("", description="URL-safe title")
    platform: Platform | None = Field(None, description="Console")

    cost_price: Decimal = Field(ZERO, ge=0, description="Supplier cost")
    currency: Currency = Field(Currency.LOCAL, description="Cost currency")
    custom_margin: Decimal | None = Field(None, description="Item margin override")
    discount_percentage: Decimal = Field(
        ZERO, ge=0, lt=100, description="Discount applied after rounding"
    )
    manual_price: Decimal | None = Field(
        None, description="Merchant-entered base price override"
    )

    price: int = Field(0, ge=0, description="Derived final price")
    base_price: int = Field(0, ge=0, description="Derived pre-discount price")
    stock: bool = Field(True, description="Available from the supplier")
    is_hidden: bool = Field(False, description="Hidden from the storefront")
    created_at: datetime | None = None

    image: str = ""
    trailer_url: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)

    @field_validator("sku", mode="before")
    @classmethod
    def normalize_sku(cls, v) -> str | None:
        """Blank skus count as absent."""
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("cost_price", mode="before")
    @classmethod
    def coerce_cost(cls, v) -> Decimal:
        return to_non_negative_decimal(v)

    @field_validator("custom_margin", "manual_price", mode="before")
    @classmethod
    def coerce_optional(cls, v) -> Decimal | None:
        return to_optional_decimal(v)

    @field_validator("discount_percentage", mode="before")
    @classmethod
    def coerce_discount(cls, v) -> Decimal:
        return to_non_negative_decimal(v)

    @field_validator("currency", mode="before")
    @classmethod
    def default_currency(cls, v):
        return v or Currency.LOCAL

    @property
    def has_discount(self) -> bool:
        return self.price < self.base_price


class ImportCandidate(_CamelModel):
    """A product to create through bulk import."""

    name: str = Field(..., min_length=1, description="Supplier display name")
    cost: Decimal = Field(..., description="Supplier cost")
    sku: str | None = None
    currency: Currency | None = Field(
        None, description="Cost currency; inferred from the amount when absent"
    )
    platform: Platform | None = None
    custom_margin: Decimal | None = None
    discount_percentage: Decimal = Field(
        ZERO, ge=0, lt=100, description="Discount applied after rounding"
    )
    manual_price: Decimal | None = None
    image: str = ""
    trailer_url: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)

    @field_validator("cost", "discount_percentage", mode="before")
    @classmethod
    def coerce_amount(cls, v) -> Decimal:
        return to_non_negative_decimal(v)

    @field_validator("custom_margin", "manual_price", mode="before")
    @classmethod
    def coerce_optional(cls, v) -> Decimal | None:
        return to_optional_decimal(v)

    @field_validator("sku", mode="before")
    @classmethod
    def normalize_sku(cls, v) -> str | None:
        if v is None:
            return None
        text = str(v).strip()
        return text or None


# ================================
# RECONCILIATION
# ================================


class ReconciliationRow(BaseModel):
    """One row of the supplier feed: id, name, category, price (all raw text)."""

    external_id: str = ""
    raw_name: str = ""
    raw_category_text: str = ""
    raw_price_text: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def to_clean_text(cls, v) -> str:
        if v is None:
            return ""
        return str(v).strip()


class MissingProduct(BaseModel):
    """Feed row with no catalog counterpart: a creation candidate."""

    external_id: str
    name: str
    raw_price: str
    cost: Decimal | None = Field(None, description="Parsed cost, None if unparseable")
    platform_guess: Platform | None = None

    def to_candidate(self) -> ImportCandidate:
        """Build a bulk-import candidate, treating an unparseable cost as 0."""
        return ImportCandidate(
            name=self.name,
            cost=self.cost if self.cost is not None else ZERO,
            sku=self.external_id,
            platform=self.platform_guess,
        )


class ItemUpdate(BaseModel):
    """Field changes for one existing catalog item."""

    item_id: str
    fields: dict[str, Any]
    reason: UpdateReason = UpdateReason.MATCHED


class StagedWrite(BaseModel):
    """A write queued for a batched storage transaction."""

    kind: WriteKind
    key: str | None = Field(None, description="Item id for updates, None for creates")
    fields: dict[str, Any]


class ReconciliationStats(BaseModel):
    """Counters describing one reconciliation pass."""

    rows_read: int = 0
    rows_skipped: int = 0
    duplicate_rows: int = 0
    matched: int = 0
    updated: int = 0
    failed: int = 0
    failed_skus: list[str] = Field(default_factory=list)
    deactivated: int = 0
    already_unavailable: int = 0
    unkeyed_items: int = 0
    missing: int = 0
    unknown_platform: int = 0


class ReconciliationResult(BaseModel):
    """Updates to apply to existing items plus feed rows missing from the catalog."""

    updates: list[ItemUpdate] = Field(default_factory=list)
    missing: list[MissingProduct] = Field(default_factory=list)
    stats: ReconciliationStats = Field(default_factory=ReconciliationStats)
