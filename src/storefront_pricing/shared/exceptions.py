"""
Custom exceptions for the storefront pricing engine.

This module contains specialized exception classes for configuration problems,
source feed failures, storage failures, and multi-batch commit aborts.
Data-quality problems (unparseable prices, unknown categories) are never
raised; they are counted in operation statistics instead.
"""

from typing import Any


class StorefrontPricingError(Exception):
    """Base exception for all storefront pricing errors."""

    pass


class ConfigurationError(StorefrontPricingError):
    """Exception raised when required configuration is missing or invalid.

    Always raised before any I/O is attempted, so no state has changed.
    """

    def __init__(self, message: str, setting: str | None = None):
        self.setting = setting

        if setting:
            message = f"{message} (setting: {setting})"

        super().__init__(message)


class SourceFetchError(StorefrontPricingError):
    """Exception raised when the external price feed cannot be downloaded."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ):
        self.url = url
        self.status_code = status_code
        self.original_error = original_error

        error_parts = [message]

        if url:
            error_parts.append(f"URL: {url}")

        if status_code is not None:
            error_parts.append(f"Status: {status_code}")

        if original_error:
            error_parts.append(f"Original error: {original_error}")

        super().__init__(" | ".join(error_parts))


class ExchangeRateError(SourceFetchError):
    """Exception raised when the exchange rate quote cannot be fetched or read."""

    pass


class StorageError(StorefrontPricingError):
    """Exception raised when the catalog or settings storage fails."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        original_error: Exception | None = None,
    ):
        self.operation = operation
        self.original_error = original_error

        if operation:
            message = f"Storage error during '{operation}': {message}"

        if original_error:
            message = f"{message} (Original error: {original_error})"

        super().__init__(message)


class BatchCommitError(StorefrontPricingError):
    """Exception raised when a batch fails during a multi-batch commit.

    Batches before ``batch_index`` are durable; no further batches were issued.
    """

    def __init__(
        self,
        batch_index: int,
        total_batches: int,
        committed_items: int,
        total_items: int,
        original_error: Exception | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.batch_index = batch_index
        self.total_batches = total_batches
        self.committed_items = committed_items
        self.total_items = total_items
        self.original_error = original_error
        self.context = context or {}

        message = (
            f"Batch {batch_index + 1} of {total_batches} failed; "
            f"{committed_items}/{total_items} items already committed"
        )

        if self.context:
            details = ", ".join(f"{key}: {value}" for key, value in self.context.items())
            message = f"{message} ({details})"

        if original_error:
            message = f"{message} (Original error: {original_error})"

        super().__init__(message)
