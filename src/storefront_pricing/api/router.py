"""
FastAPI router for the pricing admin endpoints.

Domain exceptions raised here are translated to HTTP responses by the
handlers registered in main.py.
"""

import logging

from fastapi import APIRouter, Depends, status

from ..config.models import AppConfig
from ..db.repository import CatalogRepository, SettingsRepository
from ..pricing.bulk_actions import filter_items, preview_bulk_action, to_updates
from ..pricing.calculator import compute_price
from ..pricing.driver import BatchDriver
from ..services.sync_service import PriceSyncService, SyncReport
from ..shared.dependencies import (
    get_catalog_repository,
    get_config,
    get_exchange_client,
    get_settings_repository,
    get_sync_service,
)
from ..shared.models import PricingSettings
from ..sources.exchange import ExchangeRateClient, ExchangeSyncResult, sync_exchange_rate
from ..sources.feed import FeedVerification
from .models import (
    BulkActionPreviewResponse,
    BulkActionRequest,
    CountResponse,
    ExchangeRateSyncRequest,
    ImportRequest,
    MissingProductsResponse,
    PricePreviewRequest,
    PricePreviewResponse,
    SettingsUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# ================================
# SETTINGS
# ================================


@router.get(
    "/settings",
    summary="Get pricing settings",
    description="Store-wide margin, VAT, exchange rate and feed settings",
)
async def get_settings(
    settings_repo: SettingsRepository = Depends(get_settings_repository),
):
    settings = await settings_repo.get()
    return settings.to_document()


@router.put("/settings", summary="Update pricing settings")
async def update_settings(
    request: SettingsUpdateRequest,
    settings_repo: SettingsRepository = Depends(get_settings_repository),
):
    """Apply a partial settings edit. Item prices change only after a recalculation."""
    changes = request.model_dump(exclude_unset=True)
    settings = await settings_repo.update(**changes)
    logger.info(f"Settings updated: {sorted(changes)}")
    return settings.to_document()


# ================================
# PRICING
# ================================


@router.post(
    "/prices/preview",
    response_model=PricePreviewResponse,
    response_model_by_alias=True,
    summary="Compute a price without storing it",
)
async def preview_price(
    request: PricePreviewRequest,
    settings_repo: SettingsRepository = Depends(get_settings_repository),
):
    settings: PricingSettings = await settings_repo.get()
    result = compute_price(
        request.cost,
        request.currency,
        request.custom_margin,
        request.discount_percentage,
        request.manual_price,
        settings,
    )
    return PricePreviewResponse(
        base_price=result.base_price, final_price=result.final_price
    )


@router.post(
    "/recalculate",
    response_model=CountResponse,
    summary="Reprice the whole catalog under the current settings",
)
async def recalculate(service: PriceSyncService = Depends(get_sync_service)):
    changed = await service.recalculate_prices()
    return CountResponse(count=changed, message=f"{changed} items repriced")


# ================================
# FEED SYNC
# ================================


@router.post(
    "/sync",
    response_model=SyncReport,
    summary="Sync prices and availability from the supplier feed",
)
async def sync_from_sheet(service: PriceSyncService = Depends(get_sync_service)):
    return await service.sync_from_sheet()


@router.get(
    "/sync/verify",
    response_model=FeedVerification,
    summary="Check that a price feed URL is readable",
    description="Uses the stored feed URL unless ``url`` is given",
)
async def verify_feed(
    url: str | None = None,
    service: PriceSyncService = Depends(get_sync_service),
):
    return await service.verify_feed(url)


@router.get(
    "/sync/missing",
    response_model=MissingProductsResponse,
    summary="List feed products missing from the catalog",
)
async def find_missing(service: PriceSyncService = Depends(get_sync_service)):
    missing = await service.find_missing()
    return MissingProductsResponse(count=len(missing), items=missing)


@router.post(
    "/import",
    response_model=CountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Bulk import products",
)
async def import_products(
    request: ImportRequest,
    service: PriceSyncService = Depends(get_sync_service),
):
    created = await service.import_missing([*request.candidates, *request.missing])
    return CountResponse(count=created, message=f"{created} items created")


@router.post(
    "/exchange-rate/sync",
    response_model=ExchangeSyncResult,
    summary="Refresh the exchange rate from the quote API",
)
async def sync_exchange(
    request: ExchangeRateSyncRequest | None = None,
    settings_repo: SettingsRepository = Depends(get_settings_repository),
    client: ExchangeRateClient = Depends(get_exchange_client),
):
    force = request.force if request is not None else True
    return await sync_exchange_rate(settings_repo, client, force=force)


# ================================
# BULK ACTIONS
# ================================


@router.post(
    "/bulk-actions/preview",
    response_model=BulkActionPreviewResponse,
    summary="Preview a bulk discount or margin change",
)
async def preview_bulk(
    request: BulkActionRequest,
    catalog: CatalogRepository = Depends(get_catalog_repository),
    settings_repo: SettingsRepository = Depends(get_settings_repository),
):
    settings = await settings_repo.get()
    items = filter_items(await catalog.get_all(), request.platform, request.query)
    previews = preview_bulk_action(items, request.action, settings)
    return BulkActionPreviewResponse(count=len(previews), previews=previews)


@router.post(
    "/bulk-actions/apply",
    response_model=CountResponse,
    summary="Apply a bulk discount or margin change",
)
async def apply_bulk(
    request: BulkActionRequest,
    catalog: CatalogRepository = Depends(get_catalog_repository),
    settings_repo: SettingsRepository = Depends(get_settings_repository),
    config: AppConfig = Depends(get_config),
):
    settings = await settings_repo.get()
    items = filter_items(await catalog.get_all(), request.platform, request.query)
    updates = to_updates(preview_bulk_action(items, request.action, settings))
    driver = BatchDriver(catalog, batch_size=config.storage.batch_size)
    applied = await driver.apply_updates(updates)
    logger.info(f"Bulk {request.action.kind.value} applied to {applied} items")
    return CountResponse(count=applied, message=f"{applied} items updated")
