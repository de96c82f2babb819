"""Tests for bulk discount/margin actions."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from storefront_pricing.pricing.bulk_actions import (
    BulkAction,
    BulkActionKind,
    filter_items,
    preview_bulk_action,
    to_updates,
)
from storefront_pricing.shared.models import Platform, UpdateReason


@pytest.fixture
def catalog(make_item):
    return [
        make_item(sku="PS5-ER", title="Elden Ring", platform=Platform.PS5),
        make_item(sku="NSW-MK", title="Mario Kart 8", platform=None),
        make_item(sku="SW2-MKW", title="Mario Kart World", platform=None),
        make_item(sku="7791", title="FIFA 25", platform=Platform.PS4),
    ]


class TestFilterItems:
    def test_by_platform_field(self, catalog):
        assert [i.sku for i in filter_items(catalog, Platform.PS5)] == ["PS5-ER"]

    def test_switch_prefix_excludes_switch_2(self, catalog):
        assert [i.sku for i in filter_items(catalog, Platform.SWITCH)] == ["NSW-MK"]
        assert [i.sku for i in filter_items(catalog, Platform.SWITCH_2)] == ["SW2-MKW"]

    def test_query_matches_title_or_sku(self, catalog):
        assert len(filter_items(catalog, query="mario")) == 2
        assert [i.title for i in filter_items(catalog, query="7791")] == ["FIFA 25"]

    def test_no_filters_returns_everything(self, catalog):
        assert len(filter_items(catalog)) == 4


class TestBulkAction:
    def test_discount_must_be_below_100(self):
        with pytest.raises(ValidationError):
            BulkAction(kind=BulkActionKind.DISCOUNT, value=Decimal("100"))

    def test_margin_has_no_upper_bound(self):
        BulkAction(kind=BulkActionKind.MARGIN, value=Decimal("250"))


class TestPreviewAndApply:
    def test_discount_preview(self, settings, make_item):
        item = make_item()
        action = BulkAction(kind=BulkActionKind.DISCOUNT, value=Decimal("10"))

        [preview] = preview_bulk_action([item], action, settings)

        assert preview.old_price == 93600
        assert preview.new_base_price == 93600
        assert preview.new_price == 84300
        assert preview.changes["discount_percentage"] == Decimal("10")

    def test_margin_preview_keeps_existing_discount(self, settings, make_item):
        item = make_item(discount_percentage=Decimal("10"))
        action = BulkAction(kind=BulkActionKind.MARGIN, value=Decimal("50"))

        [preview] = preview_bulk_action([item], action, settings)

        assert preview.new_base_price == 108000
        assert preview.new_price == 97200
        assert preview.changes == {
            "discount_percentage": Decimal("10"),
            "custom_margin": Decimal("50"),
        }

    def test_to_updates(self, settings, make_item):
        item = make_item()
        action = BulkAction(kind=BulkActionKind.DISCOUNT, value=Decimal("10"))

        [update] = to_updates(preview_bulk_action([item], action, settings))

        assert update.item_id == item.id
        assert update.reason == UpdateReason.BULK_ACTION
        assert update.fields["price"] == 84300
        assert update.fields["base_price"] == 93600
