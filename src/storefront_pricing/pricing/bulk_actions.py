"""
Bulk price actions on a filtered slice of the catalog.

An administrator picks a platform and/or a search query, chooses an action
(apply a discount, or set a custom margin) and a value, reviews a preview of
old vs. new prices, then applies it. Applying goes through the batch driver
like any other multi-item write.
"""

from collections.abc import Iterable
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from ..shared.models import (
    CatalogItem,
    ItemUpdate,
    Platform,
    PricingSettings,
    UpdateReason,
)
from .calculator import compute_price


class BulkActionKind(str, Enum):
    DISCOUNT = "DISCOUNT"
    MARGIN = "MARGIN"


class BulkAction(BaseModel):
    """Action to apply to every selected item."""

    kind: BulkActionKind
    value: Decimal = Field(..., description="Discount percent or margin percent")

    @model_validator(mode="after")
    def check_discount_range(self):
        if self.kind == BulkActionKind.DISCOUNT and not 0 <= self.value < 100:
            raise ValueError("Discount must be between 0 and 100")
        return self


class PricePreview(BaseModel):
    """Effect of a bulk action on one item."""

    item_id: str
    sku: str | None
    title: str
    old_price: int
    new_price: int
    new_base_price: int
    changes: dict[str, Decimal | None]


_PLATFORM_SKU_PREFIXES = {
    Platform.PS4: ("PS4",),
    Platform.PS5: ("PS5",),
    Platform.SWITCH: ("NSW", "SW"),
    Platform.SWITCH_2: ("SW2",),
}


def _matches_platform(item: CatalogItem, platform: Platform) -> bool:
    if item.platform is not None:
        return item.platform == platform
    sku = (item.sku or "").upper()
    if platform == Platform.SWITCH and sku.startswith("SW2"):
        return False
    return sku.startswith(_PLATFORM_SKU_PREFIXES[platform])


def filter_items(
    items: Iterable[CatalogItem],
    platform: Platform | None = None,
    query: str = "",
) -> list[CatalogItem]:
    """
    Select items by platform and a case-insensitive title/sku search.

    Items with no platform set are matched on their sku prefix.
    """
    needle = query.strip().lower()
    selected = []
    for item in items:
        if platform is not None and not _matches_platform(item, platform):
            continue
        if needle and needle not in item.title.lower() and needle not in (item.sku or "").lower():
            continue
        selected.append(item)
    return selected


def preview_bulk_action(
    items: Iterable[CatalogItem],
    action: BulkAction,
    settings: PricingSettings,
) -> list[PricePreview]:
    """Compute the prices each item would get under ``action``."""
    previews = []
    for item in items:
        discount = item.discount_percentage
        margin = item.custom_margin
        if action.kind == BulkActionKind.DISCOUNT:
            discount = action.value
        else:
            margin = action.value

        result = compute_price(
            item.cost_price, item.currency, margin, discount, item.manual_price, settings
        )
        previews.append(
            PricePreview(
                item_id=item.id,
                sku=item.sku,
                title=item.title,
                old_price=item.price,
                new_price=result.final_price,
                new_base_price=result.base_price,
                changes={"discount_percentage": discount, "custom_margin": margin},
            )
        )
    return previews


def to_updates(previews: Iterable[PricePreview]) -> list[ItemUpdate]:
    """Turn reviewed previews into driver updates."""
    return [
        ItemUpdate(
            item_id=preview.item_id,
            fields={
                **preview.changes,
                "price": preview.new_price,
                "base_price": preview.new_base_price,
            },
            reason=UpdateReason.BULK_ACTION,
        )
        for preview in previews
    ]
