"""
Price calculation.

Turns a supplier cost plus the item's overrides and the store settings into
the pair of displayed prices:

- Foreign-currency cost is converted with the settings exchange rate
- Manual price > 0 replaces cost + margin + VAT as the base price
- Otherwise base = cost * (1 + margin%) then * (1 + VAT%) when VAT is enabled
- Base price is rounded UP to the next 100
- Discount applies to the rounded base price and is rounded UP again

Always ensure: 0 <= final_price <= base_price, both multiples of 100.
"""

from decimal import Decimal

from ..shared.models import CatalogItem, Currency, PriceResult, PricingSettings
from ..shared.number_utils import (
    HUNDRED,
    ZERO,
    ceil_to_unit,
    to_non_negative_decimal,
    to_optional_decimal,
)

ROUNDING_UNIT = 100


def resolve_margin(
    cost: Decimal,
    currency: Currency,
    custom_margin: Decimal | None,
    settings: PricingSettings,
) -> Decimal:
    """
    Pick the margin percent for a cost-based price.

    Priority: item custom margin, then the first matching tier (when tiers are
    enabled), then the global margin. Tiers are expressed in foreign currency,
    so a local cost is converted back before the lookup.

    Args:
        cost: Cost in its own currency (not converted)
        currency: Currency of ``cost``
        custom_margin: Item override, None when unset
        settings: Pricing settings snapshot

    Returns:
        Margin percent
    """
    if custom_margin is not None:
        return custom_margin

    if settings.enable_tiered_margins and settings.margin_tiers:
        cost_for_tier = cost
        if currency == Currency.LOCAL:
            cost_for_tier = cost / settings.exchange_rate

        for tier in sorted(settings.margin_tiers, key=lambda t: t.max_price):
            if cost_for_tier <= tier.max_price:
                return tier.percentage
        # Above the highest tier: fall through to the global margin

    return settings.global_margin


def compute_price(
    cost,
    currency: Currency | str | None,
    custom_margin,
    discount_percentage,
    manual_price,
    settings: PricingSettings,
) -> PriceResult:
    """
    Compute base and final price for one item.

    Pure and total: malformed or negative numbers are treated as 0 (or as
    "unset" for the optional overrides), so this never raises for bad data.

    Args:
        cost: Supplier cost, in ``currency``
        currency: Currency.LOCAL or Currency.FOREIGN (None means LOCAL)
        custom_margin: Margin override percent, None/blank when unset
        discount_percentage: Discount percent in [0, 100), 0/None for none
        manual_price: Base price override in local currency, 0/None for none
        settings: Pricing settings snapshot

    Returns:
        PriceResult with base_price and final_price

    Example:
        >>> compute_price(60, Currency.FOREIGN, None, 0, None, PricingSettings())
        PriceResult(base_price=93600, final_price=93600)
    """
    raw_cost = to_non_negative_decimal(cost)
    cost_currency = _coerce_currency(currency)

    effective_cost = raw_cost
    if cost_currency == Currency.FOREIGN:
        effective_cost = raw_cost * settings.exchange_rate

    manual = to_optional_decimal(manual_price)
    if manual is not None and manual > ZERO:
        base_raw = manual
    else:
        margin = resolve_margin(
            raw_cost, cost_currency, to_optional_decimal(custom_margin), settings
        )
        base_raw = effective_cost * (1 + margin / HUNDRED)
        if settings.enable_vat_global:
            base_raw = base_raw * (1 + settings.vat_rate / HUNDRED)

    base_price = ceil_to_unit(base_raw, ROUNDING_UNIT)

    discount = min(to_non_negative_decimal(discount_percentage), HUNDRED)
    final_price = base_price
    if discount > ZERO:
        discounted = Decimal(base_price) * (1 - discount / HUNDRED)
        final_price = ceil_to_unit(discounted, ROUNDING_UNIT)

    return PriceResult(base_price=base_price, final_price=final_price)


def _coerce_currency(currency) -> Currency:
    if isinstance(currency, Currency):
        return currency
    try:
        return Currency(currency)
    except ValueError:
        # Accept the member names as well as the stored values
        return Currency.__members__.get(str(currency).upper(), Currency.LOCAL)


def reprice_item(item: CatalogItem, settings: PricingSettings) -> PriceResult:
    """Recompute prices from an item's stored fields."""
    return compute_price(
        item.cost_price,
        item.currency,
        item.custom_margin,
        item.discount_percentage,
        item.manual_price,
        settings,
    )


def prices_differ(item: CatalogItem, result: PriceResult) -> bool:
    """Whether the stored prices of ``item`` disagree with ``result``."""
    return item.price != result.final_price or item.base_price != result.base_price


class PricingCalculator:
    """
    Applies ``compute_price`` with a fixed settings snapshot.

    The snapshot is captured at construction, so one calculator prices a whole
    import or recalculation under a single rule set.
    """

    def __init__(self, settings: PricingSettings):
        self.settings = settings

    def calculate(
        self,
        cost,
        currency: Currency | None = None,
        custom_margin=None,
        discount_percentage=None,
        manual_price=None,
    ) -> PriceResult:
        return compute_price(
            cost, currency, custom_margin, discount_percentage, manual_price, self.settings
        )

    def calculate_item(self, item: CatalogItem) -> PriceResult:
        return reprice_item(item, self.settings)

    def calculate_batch(self, items: list[CatalogItem]) -> list[PriceResult]:
        """Price many items under the same settings snapshot."""
        return [self.calculate_item(item) for item in items]
