"""External data sources: the supplier price feed and the exchange rate quote API."""

from storefront_pricing.sources.exchange import (
    ExchangeQuote,
    ExchangeRateClient,
    ExchangeSyncResult,
    sync_exchange_rate,
)
from storefront_pricing.sources.feed import FeedVerification, SourceFeedClient, parse_feed

__all__ = [
    "SourceFeedClient",
    "FeedVerification",
    "parse_feed",
    "ExchangeRateClient",
    "ExchangeQuote",
    "ExchangeSyncResult",
    "sync_exchange_rate",
]
