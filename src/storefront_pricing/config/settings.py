"""
Configuration loading and management for the storefront pricing engine.

This module provides utilities for locating, loading, and writing the
application config.json.
"""

import logging
import os
from pathlib import Path

from .models import AppConfig

logger = logging.getLogger(__name__)


def load_config(
    config_path: str | Path | None = None, config_name: str = "config.json"
) -> AppConfig:
    """
    Load configuration from file with path resolution.

    Args:
        config_path: Explicit path to config file or directory containing config
        config_name: Name of config file (default: "config.json")

    Returns:
        AppConfig: Loaded and validated configuration

    Raises:
        FileNotFoundError: If no configuration file is found
        ValueError: If configuration is invalid
    """
    if config_path is None:
        search_paths = [
            Path.cwd() / config_name,
            Path.cwd() / "config" / config_name,
        ]

        for path in search_paths:
            if path.exists():
                config_path = path
                break
        else:
            raise FileNotFoundError(
                f"Configuration file '{config_name}' not found in any of: "
                f"{[str(p) for p in search_paths]}"
            )

    config_path = Path(config_path)

    if config_path.is_dir():
        config_path = config_path / config_name

    return AppConfig.from_file(config_path)


def create_default_config(output_path: str | Path) -> AppConfig:
    """
    Create a default configuration file.

    Args:
        output_path: Where to save the default config file

    Returns:
        AppConfig: The default configuration
    """
    default_config = AppConfig()
    default_config.to_file(output_path)
    return default_config


def load_config_with_fallback(config_path: str | Path | None = None) -> AppConfig:
    """
    Load configuration, falling back to built-in defaults.

    Priority order:
    1. Explicit config file path
    2. Environment variable STOREFRONT_CONFIG_FILE
    3. Default locations (config.json, config/config.json)
    4. Built-in defaults

    Args:
        config_path: Optional explicit path to config file

    Returns:
        AppConfig: Loaded configuration
    """
    if config_path:
        try:
            return load_config(config_path)
        except FileNotFoundError:
            logger.warning(f"Config file {config_path} not found, trying defaults")

    env_path = os.getenv("STOREFRONT_CONFIG_FILE")
    if env_path:
        try:
            return load_config(env_path)
        except FileNotFoundError:
            logger.warning(f"STOREFRONT_CONFIG_FILE points to missing file {env_path}")

    try:
        return load_config()
    except FileNotFoundError:
        logger.info("No config.json found, using built-in defaults")

    return AppConfig()
