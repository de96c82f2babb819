"""
Storefront Pricing

Pricing and catalog synchronization engine for a video game storefront:
- Cost-to-price calculation with margin, VAT, exchange rate and discounts
- Reconciliation of the catalog against a supplier price feed
- Batched bulk import, repricing and bulk price actions
"""

__version__ = "1.0.0"
__author__ = "Storefront Pricing"
