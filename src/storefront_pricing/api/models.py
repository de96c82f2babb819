"""
Pydantic models for FastAPI requests and responses.

This module contains the request and response models for the admin API:
settings edits, price previews, feed sync, missing-product import,
repricing, exchange rate sync and bulk price actions.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..pricing.bulk_actions import BulkAction, PricePreview
from ..shared.models import (
    Currency,
    ImportCandidate,
    MarginTier,
    MissingProduct,
    Platform,
)


class _CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ================================
# SETTINGS
# ================================


class SettingsUpdateRequest(_CamelRequest):
    """Partial settings edit; only fields present in the body are changed."""

    global_margin: Decimal | None = None
    vat_rate: Decimal | None = Field(None, ge=0)
    enable_vat_global: bool | None = None
    exchange_rate: Decimal | None = Field(None, gt=0)
    sheet_url: str | None = None
    enable_tiered_margins: bool | None = None
    margin_tiers: list[MarginTier] | None = None
    auto_exchange_rate: bool | None = None
    auto_exchange_source: str | None = Field(None, min_length=1)


# ================================
# PRICING
# ================================


class PricePreviewRequest(_CamelRequest):
    """Inputs for a one-off price computation under the stored settings."""

    cost: Decimal = Field(..., ge=0, description="Supplier cost")
    currency: Currency = Currency.LOCAL
    custom_margin: Decimal | None = None
    discount_percentage: Decimal = Field(Decimal("0"), ge=0, lt=100)
    manual_price: Decimal | None = None


class PricePreviewResponse(_CamelRequest):
    base_price: int
    final_price: int


# ================================
# SYNC AND IMPORT
# ================================


class MissingProductsResponse(BaseModel):
    """Feed rows with no catalog counterpart."""

    count: int = Field(..., ge=0)
    items: list[MissingProduct]


class ImportRequest(BaseModel):
    """Products to create; either explicit candidates or audited missing rows."""

    candidates: list[ImportCandidate] = Field(default_factory=list)
    missing: list[MissingProduct] = Field(default_factory=list)


class CountResponse(BaseModel):
    """Number of catalog items an operation wrote."""

    count: int = Field(..., ge=0)
    message: str = ""


class ExchangeRateSyncRequest(BaseModel):
    force: bool = Field(True, description="Sync even when automatic sync is off")


# ================================
# BULK ACTIONS
# ================================


class BulkActionRequest(BaseModel):
    """Catalog slice selection plus the action to apply to it."""

    platform: Platform | None = None
    query: str = ""
    action: BulkAction


class BulkActionPreviewResponse(BaseModel):
    count: int = Field(..., ge=0)
    previews: list[PricePreview]


# ================================
# STATUS AND ERRORS
# ================================


class HealthCheckResponse(BaseModel):
    """Response model for health checks."""

    status: str = Field(..., description="Overall health status")
    timestamp: datetime = Field(..., description="Health check timestamp")
    version: str = Field(..., description="Application version")
    checks: dict[str, dict[str, Any]] = Field(
        ..., description="Individual component health checks"
    )


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Error type or code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(None, description="Additional error details")
    timestamp: datetime = Field(..., description="Error timestamp")
