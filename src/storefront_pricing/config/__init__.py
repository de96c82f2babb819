"""Application configuration models and loaders."""

from .models import AppConfig, ExchangeConfig, FeedConfig, LoggingConfig, StorageConfig
from .settings import create_default_config, load_config, load_config_with_fallback

__all__ = [
    "AppConfig",
    "StorageConfig",
    "FeedConfig",
    "ExchangeConfig",
    "LoggingConfig",
    "load_config",
    "load_config_with_fallback",
    "create_default_config",
]
