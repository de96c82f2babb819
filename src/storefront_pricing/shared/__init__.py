"""Shared models, exceptions, and utilities for the storefront pricing engine."""

from storefront_pricing.shared.exceptions import (
    BatchCommitError,
    ConfigurationError,
    ExchangeRateError,
    SourceFetchError,
    StorageError,
    StorefrontPricingError,
)

__all__ = [
    "StorefrontPricingError",
    "ConfigurationError",
    "SourceFetchError",
    "ExchangeRateError",
    "StorageError",
    "BatchCommitError",
]
