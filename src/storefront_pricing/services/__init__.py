"""Application services orchestrating the pricing core, sources and storage."""

from storefront_pricing.services.sync_service import PriceSyncService, SyncReport

__all__ = ["PriceSyncService", "SyncReport"]
