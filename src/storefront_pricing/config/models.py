"""
Configuration models for the storefront pricing engine.

These models define the structure and validation for the config.json file.
Store-wide pricing settings (margin, VAT, exchange rate, feed URL) are not
part of this file: they live in the database and are edited by administrators.
"""

import json
import logging
import os
from decimal import Decimal
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class StorageConfig(BaseModel):
    """Configuration for the catalog database and batched writes."""

    db_path: str = Field(
        "data/catalog.db",
        min_length=1,
        description="SQLite database file (STOREFRONT_DB_PATH overrides)",
    )
    batch_size: int = Field(
        450,
        gt=0,
        le=500,
        description="Writes per transaction; kept under the backend limit of 500",
    )
    echo_sql: bool = Field(False, description="Log every SQL statement")

    @field_validator("db_path", mode="before")
    @classmethod
    def load_db_path_from_env(cls, v: str | None) -> str:
        """Prefer the STOREFRONT_DB_PATH environment variable when set."""
        env_value = os.getenv("STOREFRONT_DB_PATH", "").strip()
        if env_value:
            return env_value
        return v or "data/catalog.db"


class FeedConfig(BaseModel):
    """Configuration for downloading and parsing the supplier price feed."""

    timeout_seconds: float = Field(
        30.0, gt=0.0, description="HTTP timeout for the feed download"
    )
    delimiter: str = Field(",", min_length=1, max_length=1, description="CSV delimiter")
    header_tokens: list[str] = Field(
        default_factory=lambda: ["sku", "codigo", "código", "ean", "id", "barcode"],
        description="Identifier values (case-insensitive) that mark a header row",
    )
    foreign_currency_threshold: Decimal = Field(
        Decimal("2000"),
        gt=0,
        description="Feed costs below this are treated as foreign currency",
    )

    @field_validator("header_tokens")
    @classmethod
    def lowercase_tokens(cls, v: list[str]) -> list[str]:
        return [token.strip().lower() for token in v if token and token.strip()]

    def header_token_set(self) -> frozenset[str]:
        return frozenset(self.header_tokens)


class ExchangeConfig(BaseModel):
    """Configuration for the exchange rate quote API."""

    base_url: str = Field(
        "https://dolarapi.com/v1/dolares",
        min_length=1,
        description="Quote endpoint; the series name is appended",
    )
    timeout_seconds: float = Field(10.0, gt=0.0, description="HTTP timeout")


class LoggingConfig(BaseModel):
    """Configuration for application logging."""

    level: str = Field("INFO", description="Root log level")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class AppConfig(BaseModel):
    """Main configuration model for the storefront pricing engine."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    exchange: ExchangeConfig = Field(default_factory=ExchangeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, file_path: str | Path) -> "AppConfig":
        """
        Load configuration from a JSON file.

        Args:
            file_path: Path to the configuration JSON file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the JSON is invalid or doesn't match the schema
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        try:
            with path.open("r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")

        return cls(**data)

    def to_file(self, file_path: str | Path) -> None:
        """
        Save configuration to a JSON file.

        Args:
            file_path: Path where to save the configuration file
        """
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with path.open("w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)
