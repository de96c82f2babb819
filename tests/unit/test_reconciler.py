"""
Tests for feed reconciliation.

The reconciler never raises for data problems; everything is reported
through the updates, missing list and stats it returns.
"""

from decimal import Decimal

from storefront_pricing.pricing.reconciler import index_rows, reconcile
from storefront_pricing.shared.models import (
    Currency,
    Platform,
    ReconciliationStats,
    UpdateReason,
)


class TestIndexRows:
    def test_first_occurrence_wins(self, make_row):
        stats = ReconciliationStats()
        rows = [make_row(price="$ 60"), make_row(price="$ 99")]
        index = index_rows(rows, stats)
        assert index["7791234567890"].raw_price_text == "$ 60"
        assert stats.duplicate_rows == 1

    def test_header_and_blank_rows_skipped(self, make_row):
        stats = ReconciliationStats()
        rows = [make_row(external_id="SKU", name="Producto"), make_row(external_id="", name="")]
        assert index_rows(rows, stats) == {}
        assert stats.rows_read == 2
        assert stats.rows_skipped == 2


class TestMatchedItems:
    def test_matched_item_is_repriced_and_restocked(self, settings, make_item, make_row):
        item = make_item(stock=False, price=0, base_price=0)
        result = reconcile([make_row(price="$ 60")], [item], settings)

        assert len(result.updates) == 1
        update = result.updates[0]
        assert update.item_id == item.id
        assert update.reason == UpdateReason.MATCHED
        assert update.fields == {
            "cost_price": Decimal("60"),
            "currency": Currency.FOREIGN,
            "price": 93600,
            "base_price": 93600,
            "stock": True,
        }
        assert result.stats.updated == 1

    def test_local_cost_detected_by_threshold(self, settings, make_item, make_row):
        item = make_item()
        result = reconcile([make_row(price="$ 45.000")], [item], settings)
        fields = result.updates[0].fields
        assert fields["currency"] == Currency.LOCAL
        assert fields["base_price"] == 58500

    def test_item_overrides_are_respected(self, settings, make_item, make_row):
        item = make_item(discount_percentage=Decimal("10"), custom_margin=Decimal("50"))
        result = reconcile([make_row(price="$ 60")], [item], settings)
        fields = result.updates[0].fields
        # 60 * 1200 * 1.5 = 108000, then -10% = 97200
        assert fields["base_price"] == 108000
        assert fields["price"] == 97200

    def test_unchanged_item_still_emits_update(self, settings, make_item, make_row):
        item = make_item()
        result = reconcile([make_row(price="$ 60")], [item], settings)
        assert len(result.updates) == 1

    def test_unparseable_price_is_counted_not_raised(self, settings, make_item, make_row):
        item = make_item()
        result = reconcile([make_row(price="consultar")], [item], settings)
        assert result.updates == []
        assert result.stats.failed == 1
        assert result.stats.failed_skus == ["7791234567890"]
        assert result.stats.deactivated == 0


class TestUnavailableItems:
    def test_item_absent_from_feed_marked_out_of_stock(self, settings, make_item):
        item = make_item(sku="7791234567890", stock=True)
        result = reconcile([], [item], settings)
        assert len(result.updates) == 1
        assert result.updates[0].fields == {"stock": False}
        assert result.updates[0].reason == UpdateReason.UNAVAILABLE

    def test_rerun_after_applying_emits_nothing(self, settings, make_item):
        item = make_item(sku="7791234567890", stock=True)
        first = reconcile([], [item], settings)
        applied = item.model_copy(update=first.updates[0].fields)

        second = reconcile([], [applied], settings)
        assert second.updates == []
        assert second.stats.already_unavailable == 1

    def test_items_without_sku_are_ignored(self, settings, make_item):
        result = reconcile([], [make_item(sku=None), make_item(sku="  ")], settings)
        assert result.updates == []
        assert result.stats.unkeyed_items == 2


class TestMissingProducts:
    def test_unknown_row_reported_with_switch_2_guess(self, settings, make_row):
        row = make_row(external_id="7790000000001", name="Test Game", category="NINTENDO SWITCH 2", price="$ 75")
        result = reconcile([row], [], settings)

        assert len(result.missing) == 1
        missing = result.missing[0]
        assert missing.external_id == "7790000000001"
        assert missing.name == "Test Game"
        assert missing.platform_guess == Platform.SWITCH_2
        assert missing.cost == Decimal("75")

    def test_missing_row_with_bad_price_has_no_cost(self, settings, make_row):
        result = reconcile([make_row(external_id="1", price="N/A", category="XBOX")], [], settings)
        assert result.missing[0].cost is None
        assert result.stats.unknown_platform == 1

    def test_missing_becomes_import_candidate(self, settings, make_row):
        result = reconcile([make_row(external_id="PS5-1", category="PS5", price="$ 50")], [], settings)
        candidate = result.missing[0].to_candidate()
        assert candidate.sku == "PS5-1"
        assert candidate.cost == Decimal("50")
        assert candidate.platform == Platform.PS5
        assert candidate.currency is None


class TestReconcileIdempotence:
    def test_applying_updates_then_rerunning_is_stable(self, settings, make_item, make_row):
        in_feed = make_item(sku="A1", price=0, base_price=0)
        gone = make_item(sku="B2")
        rows = [make_row(external_id="A1", price="$ 60"), make_row(external_id="C3", category="PS4")]

        first = reconcile(rows, [in_feed, gone], settings)
        by_id = {u.item_id: u.fields for u in first.updates}
        after = [
            in_feed.model_copy(update=by_id[in_feed.id]),
            gone.model_copy(update=by_id[gone.id]),
        ]

        second = reconcile(rows, after, settings)
        assert [u.fields for u in second.updates] == [by_id[in_feed.id]]
        assert [m.external_id for m in second.missing] == ["C3"]
        assert second.stats.deactivated == 0
