"""
Repositories over the catalog database.

CatalogRepository implements the batch store used by the pricing driver:
full catalog reads and all-or-nothing batched writes. SettingsRepository
reads and updates the singleton pricing settings document.
"""

import logging
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront_pricing.db.models import Product, StoreSettings
from storefront_pricing.pricing.driver import DEFAULT_BATCH_SIZE
from storefront_pricing.shared.exceptions import ConfigurationError, StorageError
from storefront_pricing.shared.models import (
    CatalogItem,
    PricingSettings,
    StagedWrite,
    WriteKind,
)

logger = logging.getLogger(__name__)

SETTINGS_KEY = "global"

# Columns a staged write may touch; "id" is storage-assigned
WRITABLE_COLUMNS = frozenset(
    column.name for column in Product.__table__.columns if column.name != "id"
)


def _to_column_value(value: Any) -> Any:
    """Convert pydantic-side values to what the ORM columns store."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (list, tuple)):
        return [_to_column_value(v) for v in value]
    return value


def _row_values(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - WRITABLE_COLUMNS
    if unknown:
        raise StorageError(
            f"Unknown catalog fields: {', '.join(sorted(unknown))}",
            operation="write_batch",
        )
    return {name: _to_column_value(value) for name, value in fields.items()}


def _to_item(row: Product) -> CatalogItem:
    try:
        return _validate_row(row)
    except ValidationError as e:
        raise StorageError(
            f"Stored item {row.id} is invalid",
            operation="read_item",
            original_error=e,
        ) from e


def _validate_row(row: Product) -> CatalogItem:
    return CatalogItem(
        id=row.id,
        sku=row.sku,
        title=row.title,
        supplier_name=row.supplier_name,
        slug=row.slug,
        platform=row.platform,
        cost_price=row.cost_price,
        currency=row.currency,
        custom_margin=row.custom_margin,
        discount_percentage=row.discount_percentage,
        manual_price=row.manual_price,
        price=row.price,
        base_price=row.base_price,
        stock=row.stock,
        is_hidden=row.is_hidden,
        created_at=row.created_at,
        image=row.image or "",
        trailer_url=row.trailer_url or "",
        description=row.description or "",
        tags=list(row.tags or []),
    )


class CatalogRepository:
    """
    Catalog store backed by the ``products`` table.

    Each ``write_batch`` call runs in a single transaction: either every write
    in the batch lands or none does.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        max_batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self.session_maker = session_maker
        self.max_batch_size = max_batch_size

    async def get_all(self) -> list[CatalogItem]:
        """Read the whole catalog."""
        try:
            async with self.session_maker() as session:
                result = await session.execute(select(Product).order_by(Product.title))
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise StorageError(
                "Failed to read catalog", operation="get_all", original_error=e
            ) from e

        return [_to_item(row) for row in rows]

    async def get(self, item_id: str) -> CatalogItem | None:
        try:
            async with self.session_maker() as session:
                row = await session.get(Product, item_id)
        except SQLAlchemyError as e:
            raise StorageError(
                f"Failed to read item {item_id}", operation="get", original_error=e
            ) from e
        return _to_item(row) if row is not None else None

    async def write_batch(self, writes: list[StagedWrite]) -> None:
        """
        Apply creates and updates atomically.

        Raises:
            StorageError: If the batch exceeds ``max_batch_size``, names an
                unknown field, targets a missing item, or the database fails.
                Nothing from the batch is persisted in that case.
        """
        if len(writes) > self.max_batch_size:
            raise StorageError(
                f"Batch of {len(writes)} writes exceeds limit of {self.max_batch_size}",
                operation="write_batch",
            )
        if not writes:
            return

        try:
            async with self.session_maker() as session:
                async with session.begin():
                    for write in writes:
                        values = _row_values(write.fields)
                        if write.kind == WriteKind.CREATE:
                            session.add(Product(**values))
                            continue

                        if not write.key:
                            raise StorageError(
                                "Update write without an item id",
                                operation="write_batch",
                            )
                        if not values:
                            continue
                        result = await session.execute(
                            update(Product)
                            .where(Product.id == write.key)
                            .values(**values)
                        )
                        if result.rowcount == 0:
                            raise StorageError(
                                f"Item {write.key} not found",
                                operation="write_batch",
                            )
        except SQLAlchemyError as e:
            raise StorageError(
                "Batch write failed", operation="write_batch", original_error=e
            ) from e

        logger.debug(f"Committed batch of {len(writes)} writes")


class SettingsRepository:
    """Singleton pricing settings stored as a JSON document."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def get(self) -> PricingSettings:
        """Return the current settings, creating the default document if absent."""
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    row = await session.get(StoreSettings, SETTINGS_KEY)
                    if row is None:
                        settings = PricingSettings()
                        session.add(
                            StoreSettings(
                                key=SETTINGS_KEY,
                                document=settings.to_document(),
                                updated_at=datetime.now(UTC),
                            )
                        )
                        logger.info("Created default pricing settings")
                        return settings
                    document = dict(row.document or {})
        except SQLAlchemyError as e:
            raise StorageError(
                "Failed to read settings", operation="get_settings", original_error=e
            ) from e

        try:
            return PricingSettings.model_validate(document)
        except ValidationError as e:
            raise ConfigurationError(f"Stored settings are invalid: {e}") from e

    async def save(self, settings: PricingSettings) -> PricingSettings:
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    row = await session.get(StoreSettings, SETTINGS_KEY)
                    if row is None:
                        row = StoreSettings(key=SETTINGS_KEY)
                        session.add(row)
                    row.document = settings.to_document()
                    row.updated_at = datetime.now(UTC)
        except SQLAlchemyError as e:
            raise StorageError(
                "Failed to save settings", operation="save_settings", original_error=e
            ) from e
        return settings

    async def update(self, **changes: Any) -> PricingSettings:
        """
        Merge ``changes`` (snake_case or camelCase keys) into the stored settings.

        Raises:
            ConfigurationError: If a key is unknown or the merged settings
                fail validation.
        """
        current = await self.get()
        data = current.model_dump()
        fields = PricingSettings.model_fields
        by_alias = {info.alias: name for name, info in fields.items() if info.alias}

        for key, value in changes.items():
            name = by_alias.get(key, key)
            if name not in fields:
                raise ConfigurationError(f"Unknown setting: {key}", setting=key)
            data[name] = value

        try:
            updated = PricingSettings.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings: {e}") from e

        return await self.save(updated)

    async def mark_synced(self, when: datetime | None = None) -> PricingSettings:
        """Record the time of a successful feed reconciliation."""
        return await self.update(last_sync=when or datetime.now(UTC))
