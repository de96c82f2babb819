"""
Tests for the SQLite-backed catalog and settings repositories.

Each test gets a fresh temp-file database.
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from storefront_pricing.shared.exceptions import ConfigurationError, StorageError
from storefront_pricing.shared.models import (
    Currency,
    Platform,
    StagedWrite,
    WriteKind,
)


def _create(**fields) -> StagedWrite:
    data = {
        "sku": "PS5-ER",
        "title": "Elden Ring",
        "slug": "elden-ring",
        "platform": Platform.PS5,
        "cost_price": Decimal("60"),
        "currency": Currency.FOREIGN,
        "price": 93600,
        "base_price": 93600,
        "created_at": datetime(2026, 1, 1, tzinfo=UTC),
        "tags": ["rpg"],
    }
    data.update(fields)
    return StagedWrite(kind=WriteKind.CREATE, fields=data)


class TestCatalogRepository:
    @pytest.mark.asyncio
    async def test_create_and_read_back(self, catalog_repo):
        await catalog_repo.write_batch([_create()])

        [item] = await catalog_repo.get_all()
        assert item.id
        assert item.sku == "PS5-ER"
        assert item.platform == Platform.PS5
        assert item.currency == Currency.FOREIGN
        assert item.cost_price == Decimal("60")
        assert item.custom_margin is None
        assert item.base_price == 93600
        assert item.stock is True
        assert item.tags == ["rpg"]

    @pytest.mark.asyncio
    async def test_update_changes_only_given_fields(self, catalog_repo):
        await catalog_repo.write_batch([_create()])
        [item] = await catalog_repo.get_all()

        await catalog_repo.write_batch(
            [StagedWrite(kind=WriteKind.UPDATE, key=item.id, fields={"stock": False})]
        )

        updated = await catalog_repo.get(item.id)
        assert updated.stock is False
        assert updated.price == 93600

    @pytest.mark.asyncio
    async def test_batch_is_all_or_nothing(self, catalog_repo):
        await catalog_repo.write_batch([_create()])
        [item] = await catalog_repo.get_all()

        with pytest.raises(StorageError):
            await catalog_repo.write_batch(
                [
                    StagedWrite(kind=WriteKind.UPDATE, key=item.id, fields={"price": 1}),
                    StagedWrite(kind=WriteKind.UPDATE, key="missing", fields={"price": 2}),
                ]
            )

        assert (await catalog_repo.get(item.id)).price == 93600

    @pytest.mark.asyncio
    async def test_rejects_oversized_batch(self, session_maker):
        from storefront_pricing.db.repository import CatalogRepository

        repo = CatalogRepository(session_maker, max_batch_size=2)
        with pytest.raises(StorageError, match="exceeds limit"):
            await repo.write_batch([_create(), _create(), _create()])
        assert await repo.get_all() == []

    @pytest.mark.asyncio
    async def test_rejects_unknown_fields(self, catalog_repo):
        with pytest.raises(StorageError, match="Unknown catalog fields"):
            await catalog_repo.write_batch([_create(colour="red")])

    @pytest.mark.asyncio
    async def test_out_of_range_stored_row_raises_storage_error(self, catalog_repo):
        await catalog_repo.write_batch([_create(discount_percentage=Decimal("150"))])

        with pytest.raises(StorageError, match="is invalid"):
            await catalog_repo.get_all()

    @pytest.mark.asyncio
    async def test_import_rejects_discount_of_100_or_more(self, catalog_repo, settings):
        from pydantic import ValidationError

        from storefront_pricing.pricing.driver import BatchDriver

        driver = BatchDriver(catalog_repo)
        with pytest.raises(ValidationError):
            await driver.bulk_import(
                [{"name": "Game", "cost": 60, "discountPercentage": 150}], settings
            )

        assert await catalog_repo.get_all() == []

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, catalog_repo):
        assert await catalog_repo.get("nope") is None

    @pytest.mark.asyncio
    async def test_empty_batch_is_a_no_op(self, catalog_repo):
        await catalog_repo.write_batch([])
        assert await catalog_repo.get_all() == []


class TestSettingsRepository:
    @pytest.mark.asyncio
    async def test_defaults_created_on_first_read(self, settings_repo):
        settings = await settings_repo.get()
        assert settings.global_margin == Decimal("30")
        assert (await settings_repo.get()) == settings

    @pytest.mark.asyncio
    async def test_update_accepts_snake_and_camel_case(self, settings_repo):
        await settings_repo.update(global_margin=Decimal("40"), sheetUrl="https://feed")
        settings = await settings_repo.get()
        assert settings.global_margin == Decimal("40")
        assert settings.sheet_url == "https://feed"

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_setting(self, settings_repo):
        with pytest.raises(ConfigurationError) as exc_info:
            await settings_repo.update(youtubeApiKey="x")
        assert exc_info.value.setting == "youtubeApiKey"

    @pytest.mark.asyncio
    async def test_update_rejects_invalid_value(self, settings_repo):
        with pytest.raises(ConfigurationError):
            await settings_repo.update(exchange_rate=Decimal("-1"))
        assert (await settings_repo.get()).exchange_rate == Decimal("1200")

    @pytest.mark.asyncio
    async def test_null_required_setting_is_rejected(self, settings_repo):
        with pytest.raises(ConfigurationError):
            await settings_repo.update(globalMargin=None, vatRate=None)

        settings = await settings_repo.get()
        assert settings.global_margin == Decimal("30")
        assert settings.vat_rate == Decimal("21")

    @pytest.mark.asyncio
    async def test_mark_synced(self, settings_repo):
        when = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
        settings = await settings_repo.mark_synced(when)
        assert settings.last_sync == when
        assert (await settings_repo.get()).last_sync == when


@pytest.mark.asyncio
async def test_catalog_engine_uses_configured_echo(tmp_path, monkeypatch):
    monkeypatch.delenv("STOREFRONT_DB_PATH", raising=False)
    from storefront_pricing.config.models import AppConfig
    from storefront_pricing.db.engine import dispose_engines, get_catalog_engine

    config = AppConfig.model_validate(
        {"storage": {"db_path": str(tmp_path / "echo.db"), "echo_sql": True}}
    )
    await dispose_engines()
    try:
        engine = get_catalog_engine(config.storage.db_path, echo=config.storage.echo_sql)
        assert engine.echo is True
        assert engine.url.database == str(tmp_path / "echo.db")
    finally:
        await dispose_engines()
