"""Tests for feed text parsing: prices, currency, platforms, slugs and titles."""

from decimal import Decimal

import pytest

from storefront_pricing.pricing.parsing import (
    FOREIGN_CURRENCY_THRESHOLD,
    clean_title,
    detect_platform_from_sku,
    format_title,
    guess_platform,
    infer_currency,
    is_data_row,
    parse_cost,
    parse_price_text,
    slugify,
)
from storefront_pricing.shared.models import Currency, Platform, ReconciliationRow


class TestParsePriceText:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("$ 60", Decimal("60")),
            ("$1.234,50", Decimal("1234.50")),
            ("45.000", Decimal("45000")),
            ("12,5", Decimal("12.5")),
            ("  75 ", Decimal("75")),
            ("1,2,3", Decimal("1.2")),
            ("60usd", Decimal("60")),
            ("-5", Decimal("-5")),
        ],
    )
    def test_parses_supplier_formats(self, raw, expected):
        assert parse_price_text(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "$", "consultar", "N/A"])
    def test_unparseable_returns_none(self, raw):
        assert parse_price_text(raw) is None

    def test_parse_cost_rejects_non_positive(self):
        assert parse_cost("$ 0") is None
        assert parse_cost("-10") is None
        assert parse_cost("$ 10") == Decimal("10")


class TestInferCurrency:
    def test_below_threshold_is_foreign(self):
        assert infer_currency(Decimal("1999.99")) == Currency.FOREIGN

    def test_threshold_itself_is_local(self):
        assert infer_currency(FOREIGN_CURRENCY_THRESHOLD) == Currency.LOCAL

    def test_custom_threshold(self):
        assert infer_currency(Decimal("2500"), threshold=Decimal("3000")) == Currency.FOREIGN


class TestGuessPlatform:
    @pytest.mark.parametrize(
        "category,expected",
        [
            ("Juegos PS5", Platform.PS5),
            ("ps4 fisico", Platform.PS4),
            ("NINTENDO SWITCH 2", Platform.SWITCH_2),
            ("Switch2", Platform.SWITCH_2),
            ("SW2 - Lanzamiento", Platform.SWITCH_2),
            ("Nintendo Switch", Platform.SWITCH),
            ("NSW", Platform.SWITCH),
            ("Xbox", None),
            ("", None),
            (None, None),
        ],
    )
    def test_category_keywords(self, category, expected):
        assert guess_platform(category) == expected

    def test_switch_2_never_read_as_switch_1(self):
        assert guess_platform("SWITCH 2") is Platform.SWITCH_2


class TestDetectPlatformFromSku:
    @pytest.mark.parametrize(
        "sku,expected",
        [
            ("PS5-001", Platform.PS5),
            ("ps4abc", Platform.PS4),
            ("SW2-ZELDA", Platform.SWITCH_2),
            ("NSW-MARIO", Platform.SWITCH),
            ("7791234567890", None),
            (None, None),
        ],
    )
    def test_prefixes(self, sku, expected):
        assert detect_platform_from_sku(sku) == expected


class TestIsDataRow:
    def test_header_tokens_are_case_insensitive(self):
        assert not is_data_row(ReconciliationRow(external_id="SKU", raw_name="Producto"))
        assert not is_data_row(ReconciliationRow(external_id="Código", raw_name="Nombre"))

    def test_blank_id_or_name_skipped(self):
        assert not is_data_row(ReconciliationRow(external_id="", raw_name="Game"))
        assert not is_data_row(ReconciliationRow(external_id="123", raw_name=""))

    def test_regular_row(self):
        assert is_data_row(ReconciliationRow(external_id="123", raw_name="Game"))


class TestSlugAndTitle:
    def test_slugify(self):
        assert slugify("  The Legend of Zelda: TOTK  ") == "the-legend-of-zelda-totk"
        assert slugify("Pokémon -- Scarlet!!") == "pokmon-scarlet"

    def test_clean_title_strips_console_region_and_edition(self):
        assert clean_title("PS5 Elden Ring (Fisico) [EU] Game of the Year Edition") == "Elden Ring"
        assert clean_title("Mario Kart World SW2") == "Mario Kart World"
        assert clean_title(None) == ""

    def test_format_title_capitalises_words(self):
        assert format_title("GOD OF WAR ragnarok PS4") == "God Of War Ragnarok"
