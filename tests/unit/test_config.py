"""Tests for application configuration models and loading."""

import json
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from storefront_pricing.config.models import (
    AppConfig,
    FeedConfig,
    LoggingConfig,
    StorageConfig,
)
from storefront_pricing.config.settings import (
    create_default_config,
    load_config,
    load_config_with_fallback,
)


class TestStorageConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("STOREFRONT_DB_PATH", raising=False)
        config = StorageConfig()
        assert config.db_path == "data/catalog.db"
        assert config.batch_size == 450

    def test_env_overrides_db_path(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_DB_PATH", "/tmp/other.db")
        assert StorageConfig(db_path="data/catalog.db").db_path == "/tmp/other.db"

    def test_batch_size_capped_at_backend_limit(self):
        with pytest.raises(ValidationError):
            StorageConfig(batch_size=501)
        with pytest.raises(ValidationError):
            StorageConfig(batch_size=0)


class TestFeedConfig:
    def test_header_tokens_lowercased(self):
        config = FeedConfig(header_tokens=[" SKU ", "EAN", ""])
        assert config.header_token_set() == frozenset({"sku", "ean"})

    def test_threshold_default(self):
        assert FeedConfig().foreign_currency_threshold == Decimal("2000")

    def test_delimiter_single_character(self):
        with pytest.raises(ValidationError):
            FeedConfig(delimiter=";;")


class TestLoggingConfig:
    def test_level_normalised(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_unknown_level_rejected(self):
        with pytest.raises(ValidationError):
            LoggingConfig(level="chatty")


class TestConfigFiles:
    def test_round_trip_through_file(self, tmp_path: Path):
        path = tmp_path / "config.json"
        config = create_default_config(path)
        assert path.exists()
        assert AppConfig.from_file(path) == config

    def test_from_file_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            AppConfig.from_file(tmp_path / "nope.json")

    def test_from_file_invalid_json(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            AppConfig.from_file(path)

    def test_load_config_from_directory(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("STOREFRONT_DB_PATH", raising=False)
        (tmp_path / "config.json").write_text(
            json.dumps({"storage": {"batch_size": 100}, "logging": {"level": "warning"}})
        )
        config = load_config(tmp_path)
        assert config.storage.batch_size == 100
        assert config.logging.level == "WARNING"

    def test_fallback_to_defaults(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("STOREFRONT_CONFIG_FILE", raising=False)
        config = load_config_with_fallback(tmp_path / "missing.json")
        assert config == AppConfig()

    def test_env_config_file(self, tmp_path: Path, monkeypatch):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"exchange": {"timeout_seconds": 3}}))
        monkeypatch.setenv("STOREFRONT_CONFIG_FILE", str(path))
        assert load_config_with_fallback().exchange.timeout_seconds == 3
