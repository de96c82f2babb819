"""
Catalog reconciliation against the supplier price feed.

Joins feed rows to catalog items on ``external_id == sku`` and classifies
every catalog item and every feed row exactly once:

- matched, price parsed      -> update cost, currency, prices, stock=True
- matched, price unparseable -> counted as failed, item untouched
- not in feed, in stock      -> update stock=False only
- not in feed, out of stock  -> nothing (keeps repeat runs write-free)
- no sku                     -> never touched
- feed row without item      -> reported as missing (creation candidate)

Nothing here performs I/O; the caller commits ``updates`` through the batch
driver and decides what to do with ``missing``.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from ..shared.models import (
    CatalogItem,
    ItemUpdate,
    MissingProduct,
    PricingSettings,
    ReconciliationResult,
    ReconciliationRow,
    ReconciliationStats,
    UpdateReason,
)
from .calculator import compute_price
from .parsing import (
    DEFAULT_HEADER_TOKENS,
    FOREIGN_CURRENCY_THRESHOLD,
    guess_platform,
    infer_currency,
    is_data_row,
    parse_cost,
)

logger = logging.getLogger(__name__)


def index_rows(
    rows: Iterable[ReconciliationRow],
    stats: ReconciliationStats,
    header_tokens: frozenset[str] = DEFAULT_HEADER_TOKENS,
) -> dict[str, ReconciliationRow]:
    """
    Index data rows by external id; the first occurrence of an id wins.

    Header and blank rows are skipped. Counters are recorded on ``stats``.
    """
    index: dict[str, ReconciliationRow] = {}
    for row in rows:
        stats.rows_read += 1
        if not is_data_row(row, header_tokens):
            stats.rows_skipped += 1
            continue
        if row.external_id in index:
            stats.duplicate_rows += 1
            continue
        index[row.external_id] = row
    return index


def reconcile(
    source_rows: Iterable[ReconciliationRow],
    catalog_items: Iterable[CatalogItem],
    settings: PricingSettings,
    *,
    currency_threshold: Decimal = FOREIGN_CURRENCY_THRESHOLD,
    header_tokens: frozenset[str] = DEFAULT_HEADER_TOKENS,
) -> ReconciliationResult:
    """
    Diff the supplier feed against the catalog.

    Args:
        source_rows: Feed rows (id, name, category text, price text)
        catalog_items: Full catalog snapshot
        settings: Pricing settings snapshot used to reprice matched items
        currency_threshold: Costs below this are treated as foreign currency
        header_tokens: Lower-case ids that mark a header row

    Returns:
        ReconciliationResult with item updates, missing rows and counters
    """
    stats = ReconciliationStats()
    index = index_rows(source_rows, stats, header_tokens)

    updates: list[ItemUpdate] = []
    catalog_skus: set[str] = set()

    for item in catalog_items:
        if not item.sku:
            stats.unkeyed_items += 1
            continue

        catalog_skus.add(item.sku)
        row = index.get(item.sku)

        if row is not None:
            stats.matched += 1
            cost = parse_cost(row.raw_price_text)
            if cost is None:
                stats.failed += 1
                stats.failed_skus.append(item.sku)
                logger.debug(
                    f"Unparseable price for sku {item.sku}: {row.raw_price_text!r}"
                )
                continue

            currency = infer_currency(cost, currency_threshold)
            result = compute_price(
                cost,
                currency,
                item.custom_margin,
                item.discount_percentage,
                item.manual_price,
                settings,
            )
            updates.append(
                ItemUpdate(
                    item_id=item.id,
                    fields={
                        "cost_price": cost,
                        "currency": currency,
                        "price": result.final_price,
                        "base_price": result.base_price,
                        "stock": True,
                    },
                    reason=UpdateReason.MATCHED,
                )
            )
            stats.updated += 1
        elif item.stock:
            updates.append(
                ItemUpdate(
                    item_id=item.id,
                    fields={"stock": False},
                    reason=UpdateReason.UNAVAILABLE,
                )
            )
            stats.deactivated += 1
        else:
            stats.already_unavailable += 1

    missing: list[MissingProduct] = []
    for external_id, row in index.items():
        if external_id in catalog_skus:
            continue
        platform = guess_platform(row.raw_category_text)
        if platform is None:
            stats.unknown_platform += 1
        missing.append(
            MissingProduct(
                external_id=external_id,
                name=row.raw_name,
                raw_price=row.raw_price_text,
                cost=parse_cost(row.raw_price_text),
                platform_guess=platform,
            )
        )
    stats.missing = len(missing)

    logger.info(
        f"Reconciled {stats.rows_read} feed rows against catalog: "
        f"{stats.updated} updated, {stats.deactivated} marked unavailable, "
        f"{stats.failed} failed, {stats.missing} missing"
    )

    return ReconciliationResult(updates=updates, missing=missing, stats=stats)
