"""
Pytest configuration and fixtures for storefront pricing tests.

Provides settings snapshots, catalog item factories, an in-memory catalog
store, and temp-file SQLite databases.
"""

import sys
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

import pytest
import pytest_asyncio

# Ensure src/ is on sys.path for local test runs without installation
_SRC = Path(__file__).resolve().parents[1] / "src"
if _SRC.exists() and str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from storefront_pricing.db.engine import create_engine  # noqa: E402
from storefront_pricing.db.init import create_all_tables  # noqa: E402
from storefront_pricing.db.repository import (  # noqa: E402
    CatalogRepository,
    SettingsRepository,
)
from storefront_pricing.db.session import make_session_maker  # noqa: E402
from storefront_pricing.shared.models import (  # noqa: E402
    CatalogItem,
    Currency,
    PricingSettings,
    ReconciliationRow,
    StagedWrite,
    WriteKind,
)


@pytest.fixture
def settings() -> PricingSettings:
    """Default store settings: 30% margin, no VAT, 1200 exchange rate."""
    return PricingSettings(
        global_margin=Decimal("30"),
        vat_rate=Decimal("21"),
        enable_vat_global=False,
        exchange_rate=Decimal("1200"),
        sheet_url="https://feed.example.com/prices.csv",
    )


@pytest.fixture
def make_item():
    """Factory for catalog items with sensible defaults."""

    def _make(**overrides) -> CatalogItem:
        data = {
            "id": uuid4().hex,
            "sku": "7791234567890",
            "title": "Test Game",
            "cost_price": Decimal("60"),
            "currency": Currency.FOREIGN,
            "price": 93600,
            "base_price": 93600,
            "stock": True,
        }
        data.update(overrides)
        return CatalogItem(**data)

    return _make


@pytest.fixture
def make_row():
    def _make(external_id="7791234567890", name="Test Game", category="PS5", price="$ 60") -> ReconciliationRow:
        return ReconciliationRow(
            external_id=external_id,
            raw_name=name,
            raw_category_text=category,
            raw_price_text=price,
        )

    return _make


class InMemoryCatalogStore:
    """
    Catalog store keeping items in a dict.

    ``fail_on_batch`` makes the given (0-based) write_batch call raise.
    """

    def __init__(self, items: list[CatalogItem] | None = None, fail_on_batch: int | None = None):
        self.items: dict[str, CatalogItem] = {item.id: item for item in items or []}
        self.fail_on_batch = fail_on_batch
        self.batches: list[list[StagedWrite]] = []

    async def get_all(self) -> list[CatalogItem]:
        return list(self.items.values())

    async def write_batch(self, writes: list[StagedWrite]) -> None:
        if self.fail_on_batch is not None and len(self.batches) == self.fail_on_batch:
            raise RuntimeError("storage unavailable")
        self.batches.append(list(writes))
        for write in writes:
            if write.kind == WriteKind.CREATE:
                item_id = uuid4().hex
                self.items[item_id] = CatalogItem(id=item_id, **write.fields)
            else:
                current = self.items[write.key]
                self.items[write.key] = current.model_copy(update=write.fields)


@pytest.fixture
def memory_store():
    return InMemoryCatalogStore


@pytest_asyncio.fixture
async def engine(tmp_path: Path):
    """Temp-file SQLite engine with all tables created."""
    db_engine = create_engine(str(tmp_path / "catalog.db"))
    await create_all_tables(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_maker(engine):
    return make_session_maker(engine)


@pytest.fixture
def catalog_repo(session_maker) -> CatalogRepository:
    return CatalogRepository(session_maker)


@pytest.fixture
def settings_repo(session_maker) -> SettingsRepository:
    return SettingsRepository(session_maker)


@pytest.fixture
def sample_feed_csv() -> str:
    """Supplier feed with a header, a blank line, a duplicate and a ragged row."""
    return (
        "SKU,Producto,Categoria,Precio\n"
        "7791234567890,Elden Ring PS5,PS5,$ 60\n"
        "\n"
        "7790000000001,Mario Kart World,SWITCH 2,$ 75\n"
        "7791234567890,Elden Ring duplicate,PS5,$ 99\n"
        "7790000000002,FIFA 25,PS4,\"$ 45.000,00\",extra\n"
        "7790000000003,Broken Price,PS4,consultar\n"
    )
