"""
Price sync orchestration.

This module provides the PriceSyncService class that coordinates the feed
client, the catalog and settings repositories, the reconciler and the batch
driver to run the admin workflows end to end.

The PriceSyncService brings together:
- Source feed client (SourceFeedClient) for downloading supplier rows
- Reconciler for diffing rows against the catalog
- Batch driver (BatchDriver) for committing updates and creations

Usage:
    from storefront_pricing.db import CatalogRepository, SettingsRepository
    from storefront_pricing.services import PriceSyncService
    from storefront_pricing.sources import SourceFeedClient

    service = PriceSyncService(catalog, settings_repo, SourceFeedClient())
    report = await service.sync_from_sheet(
        progress_callback=lambda done, total: print(f"{done}/{total}")
    )
"""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from storefront_pricing.db.repository import CatalogRepository, SettingsRepository
from storefront_pricing.pricing.driver import (
    DEFAULT_BATCH_SIZE,
    BatchDriver,
    ProgressCallback,
)
from storefront_pricing.pricing.parsing import (
    DEFAULT_HEADER_TOKENS,
    FOREIGN_CURRENCY_THRESHOLD,
)
from storefront_pricing.pricing.reconciler import reconcile
from storefront_pricing.shared.exceptions import ConfigurationError
from storefront_pricing.shared.logging_utils import get_structured_logger
from storefront_pricing.shared.models import (
    ImportCandidate,
    MissingProduct,
    PricingSettings,
    ReconciliationResult,
    ReconciliationStats,
)
from storefront_pricing.sources.feed import FeedVerification, SourceFeedClient


class SyncReport(BaseModel):
    """Outcome of one feed sync."""

    correlation_id: str
    rows: int = 0
    matched: int = 0
    updated: int = 0
    failed: int = 0
    failed_skus: list[str] = Field(default_factory=list)
    deactivated: int = 0
    missing: int = 0
    committed: int = 0
    synced_at: datetime | None = None
    stats: ReconciliationStats = Field(default_factory=ReconciliationStats)


class PriceSyncService:
    """
    Runs sync, missing-product audit, import and repricing against the catalog.

    Each public method reads a fresh settings snapshot at start and uses it
    for the whole operation.

    Attributes:
        catalog: Catalog repository used for reads and batched writes
        settings_repo: Settings repository
        feed_client: Supplier feed client
        batch_size: Writes per storage transaction
    """

    def __init__(
        self,
        catalog: CatalogRepository,
        settings_repo: SettingsRepository,
        feed_client: SourceFeedClient,
        batch_size: int = DEFAULT_BATCH_SIZE,
        currency_threshold: Decimal = FOREIGN_CURRENCY_THRESHOLD,
        header_tokens: frozenset[str] = DEFAULT_HEADER_TOKENS,
    ):
        self.catalog = catalog
        self.settings_repo = settings_repo
        self.feed_client = feed_client
        self.batch_size = batch_size
        self.currency_threshold = currency_threshold
        self.header_tokens = header_tokens
        self.log = get_structured_logger(__name__)

    def _driver(self, progress_callback: ProgressCallback | None) -> BatchDriver:
        return BatchDriver(
            self.catalog,
            batch_size=self.batch_size,
            progress_callback=progress_callback,
            currency_threshold=self.currency_threshold,
        )

    async def _require_feed_settings(self) -> PricingSettings:
        settings = await self.settings_repo.get()
        if not settings.sheet_url:
            raise ConfigurationError("No price feed URL configured", setting="sheetUrl")
        return settings

    async def _reconcile(self, settings: PricingSettings) -> ReconciliationResult:
        rows = await self.feed_client.fetch_rows(settings.sheet_url)
        items = await self.catalog.get_all()
        return reconcile(
            rows,
            items,
            settings,
            currency_threshold=self.currency_threshold,
            header_tokens=self.header_tokens,
        )

    async def sync_from_sheet(
        self, progress_callback: ProgressCallback | None = None
    ) -> SyncReport:
        """
        Update catalog prices and availability from the supplier feed.

        Raises:
            ConfigurationError: If no feed URL is configured (nothing is fetched)
            SourceFetchError: If the feed cannot be downloaded
            StorageError: If the catalog cannot be read
            BatchCommitError: If a batch fails; earlier batches remain committed
        """
        with self.log.run("price_sync", prefix="SYNC") as correlation_id:
            settings = await self._require_feed_settings()
            self.log.info("Price sync started", exchange_rate=settings.exchange_rate)

            result = await self._reconcile(settings)
            committed = await self._driver(progress_callback).apply_updates(result.updates)

            synced = await self.settings_repo.mark_synced()
            stats = result.stats
            report = SyncReport(
                correlation_id=correlation_id,
                rows=stats.rows_read,
                matched=stats.matched,
                updated=stats.updated,
                failed=stats.failed,
                failed_skus=list(stats.failed_skus),
                deactivated=stats.deactivated,
                missing=stats.missing,
                committed=committed,
                synced_at=synced.last_sync,
                stats=stats,
            )
            self.log.info(
                "Price sync completed",
                updated=report.updated,
                deactivated=report.deactivated,
                failed=report.failed,
                missing=report.missing,
            )
            return report

    async def verify_feed(self, url: str | None = None) -> FeedVerification:
        """Check that a feed URL (the stored one by default) downloads and parses."""
        if url is None:
            url = (await self._require_feed_settings()).sheet_url
        verification = await self.feed_client.verify(url)
        self.log.info("Price feed verified", rows=verification.row_count)
        return verification

    async def find_missing(self) -> list[MissingProduct]:
        """Feed rows with no catalog item, without writing anything."""
        with self.log.run("missing_audit", prefix="AUDIT"):
            settings = await self._require_feed_settings()
            result = await self._reconcile(settings)
            self.log.info("Missing product audit", missing=len(result.missing))
            return result.missing

    async def import_missing(
        self,
        candidates: Iterable[ImportCandidate | MissingProduct | dict[str, Any]],
        progress_callback: ProgressCallback | None = None,
    ) -> int:
        """
        Create catalog items from import candidates or audited missing rows.

        Returns:
            Number of items created
        """
        prepared = [
            c.to_candidate() if isinstance(c, MissingProduct) else c for c in candidates
        ]
        with self.log.run("bulk_import", prefix="IMPORT"):
            settings = await self.settings_repo.get()
            created = await self._driver(progress_callback).bulk_import(prepared, settings)
            self.log.info("Bulk import completed", candidates=len(prepared), created=created)
            return created

    async def recalculate_prices(
        self, progress_callback: ProgressCallback | None = None
    ) -> int:
        """Reprice every item under the current settings; returns items changed."""
        with self.log.run("recalculate", prefix="RECALC"):
            settings = await self.settings_repo.get()
            changed = await self._driver(progress_callback).recalculate_all(settings)
            self.log.info("Recalculation completed", changed=changed)
            return changed
