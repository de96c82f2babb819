"""
FastAPI dependencies for the storefront pricing API.

Each dependency builds one collaborator from the application config; tests
replace them through ``app.dependency_overrides``.
"""

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config.models import AppConfig
from ..config.settings import load_config_with_fallback
from ..db.engine import get_catalog_engine
from ..db.repository import CatalogRepository, SettingsRepository
from ..db.session import make_session_maker
from ..services.sync_service import PriceSyncService
from ..sources.exchange import ExchangeRateClient
from ..sources.feed import SourceFeedClient

logger = logging.getLogger(__name__)

_config: AppConfig | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_config() -> AppConfig:
    """Get the application configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config_with_fallback()
        logger.info("Application configuration loaded")
    return _config


def set_config(config: AppConfig) -> None:
    """Replace the active configuration and drop the cached session factory."""
    global _config, _session_maker
    _config = config
    _session_maker = None


def get_session_maker(
    config: AppConfig = Depends(get_config),
) -> async_sessionmaker[AsyncSession]:
    global _session_maker
    if _session_maker is None:
        engine = get_catalog_engine(
            config.storage.db_path, echo=config.storage.echo_sql
        )
        _session_maker = make_session_maker(engine)
    return _session_maker


def get_catalog_repository(
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
    config: AppConfig = Depends(get_config),
) -> CatalogRepository:
    return CatalogRepository(session_maker, max_batch_size=config.storage.batch_size)


def get_settings_repository(
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> SettingsRepository:
    return SettingsRepository(session_maker)


def get_feed_client(config: AppConfig = Depends(get_config)) -> SourceFeedClient:
    return SourceFeedClient(
        timeout_seconds=config.feed.timeout_seconds,
        delimiter=config.feed.delimiter,
    )


def get_exchange_client(config: AppConfig = Depends(get_config)) -> ExchangeRateClient:
    return ExchangeRateClient(
        base_url=config.exchange.base_url,
        timeout_seconds=config.exchange.timeout_seconds,
    )


def get_sync_service(
    catalog: CatalogRepository = Depends(get_catalog_repository),
    settings_repo: SettingsRepository = Depends(get_settings_repository),
    feed_client: SourceFeedClient = Depends(get_feed_client),
    config: AppConfig = Depends(get_config),
) -> PriceSyncService:
    return PriceSyncService(
        catalog,
        settings_repo,
        feed_client,
        batch_size=config.storage.batch_size,
        currency_threshold=config.feed.foreign_currency_threshold,
        header_tokens=config.feed.header_token_set(),
    )
