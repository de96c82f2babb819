"""
Pricing core: price calculation, feed reconciliation, and batched catalog writes.

Nothing in this package reads global state; every operation takes a
``PricingSettings`` snapshot explicitly.
"""

from .bulk_actions import (
    BulkAction,
    BulkActionKind,
    PricePreview,
    filter_items,
    preview_bulk_action,
    to_updates,
)
from .calculator import PricingCalculator, compute_price, prices_differ, reprice_item
from .driver import BatchDriver, CatalogStore, DriverState
from .parsing import (
    detect_platform_from_sku,
    format_title,
    guess_platform,
    infer_currency,
    parse_cost,
    parse_price_text,
    slugify,
)
from .reconciler import reconcile

__all__ = [
    # Calculator
    "compute_price",
    "reprice_item",
    "prices_differ",
    "PricingCalculator",
    # Reconciliation
    "reconcile",
    "parse_price_text",
    "parse_cost",
    "infer_currency",
    "guess_platform",
    "detect_platform_from_sku",
    "slugify",
    "format_title",
    # Driver
    "BatchDriver",
    "CatalogStore",
    "DriverState",
    # Bulk actions
    "BulkAction",
    "BulkActionKind",
    "PricePreview",
    "filter_items",
    "preview_bulk_action",
    "to_updates",
]
