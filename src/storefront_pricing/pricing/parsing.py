"""
Parsing rules for supplier feed text.

Covers the price text format, the currency heuristic, platform guesses from
free-text categories and sku prefixes, and the slug/title clean-up applied to
supplier names on import.
"""

import re
from decimal import Decimal, InvalidOperation

from ..shared.models import Currency, Platform, ReconciliationRow

# Costs below this amount are assumed to be quoted in the foreign currency.
# The feed carries no currency column, so this is a heuristic.
FOREIGN_CURRENCY_THRESHOLD = Decimal("2000")

DEFAULT_HEADER_TOKENS = frozenset({"sku", "codigo", "código", "ean", "id", "barcode"})

_PRICE_STRIP_RE = re.compile(r"[$.\s]")
_LEADING_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)")

_SWITCH_2_KEYWORDS = ("SWITCH 2", "SWITCH2", "SW2")
_SWITCH_1_KEYWORDS = ("SWITCH", "NSW")

_SKU_PREFIXES = (
    ("PS4", Platform.PS4),
    ("PS5", Platform.PS5),
    ("SW2", Platform.SWITCH_2),
    ("NSW", Platform.SWITCH),
)

_REGION_RE = re.compile(r"\b(EU|EUR|USA|US|JP|JPN|PAL|NTSC|NA|UK|ASIA)\b", re.IGNORECASE)
_EDITION_RE = re.compile(
    r"\s+(Complete|GOTY|Game of the Year|Edition|Remastered|Definitive).*$",
    re.IGNORECASE,
)


def parse_price_text(raw: str | None) -> Decimal | None:
    """
    Parse supplier price text into a number.

    Currency symbols, dots (thousands separators) and spaces are removed, then
    the first comma becomes the decimal point. Like a lenient float parse, a
    leading number followed by junk is accepted.

    Args:
        raw: Price text such as ``"$ 1.234,50"``

    Returns:
        Parsed amount, or None if no number could be read

    Example:
        >>> parse_price_text("$ 1.234,50")
        Decimal('1234.50')
    """
    if raw is None:
        return None

    cleaned = _PRICE_STRIP_RE.sub("", str(raw)).replace(",", ".", 1)
    match = _LEADING_NUMBER_RE.match(cleaned)
    if not match:
        return None

    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return None


def parse_cost(raw: str | None) -> Decimal | None:
    """Parse price text, rejecting anything that is not strictly positive."""
    value = parse_price_text(raw)
    if value is None or value <= 0:
        return None
    return value


def infer_currency(
    cost: Decimal, threshold: Decimal = FOREIGN_CURRENCY_THRESHOLD
) -> Currency:
    """Classify a feed cost: below ``threshold`` is foreign, otherwise local."""
    return Currency.FOREIGN if cost < threshold else Currency.LOCAL


def guess_platform(category_text: str | None) -> Platform | None:
    """
    Guess the console from free-text category.

    Switch 2 keywords are checked before the plain Switch keywords so a
    "SWITCH 2" category is never read as a Switch 1 title.
    """
    if not category_text:
        return None

    text = category_text.upper()

    if "PS5" in text:
        return Platform.PS5
    if "PS4" in text:
        return Platform.PS4
    if any(keyword in text for keyword in _SWITCH_2_KEYWORDS):
        return Platform.SWITCH_2
    if any(keyword in text for keyword in _SWITCH_1_KEYWORDS):
        return Platform.SWITCH
    return None


def detect_platform_from_sku(sku: str | None) -> Platform | None:
    """Guess the console from a supplier sku prefix (PS4, PS5, NSW, SW2)."""
    if not sku:
        return None

    upper_sku = sku.upper()
    for prefix, platform in _SKU_PREFIXES:
        if upper_sku.startswith(prefix):
            return platform
    return None


def is_data_row(
    row: ReconciliationRow, header_tokens: frozenset[str] = DEFAULT_HEADER_TOKENS
) -> bool:
    """False for header rows and rows with no identifier or no name."""
    if not row.external_id or not row.raw_name:
        return False
    return row.external_id.lower() not in header_tokens


def slugify(text: str) -> str:
    """
    Build a URL-safe slug.

    Lowercase, whitespace to hyphens, drop non-word characters, collapse
    repeated hyphens, trim hyphens from both ends.

    Example:
        >>> slugify("  The Legend of Zelda: TOTK  ")
        'the-legend-of-zelda-totk'
    """
    slug = str(text).lower()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w\-]+", "", slug, flags=re.ASCII)
    slug = re.sub(r"\-\-+", "-", slug)
    return slug.strip("-")


def clean_title(raw_name: str | None) -> str:
    """Strip console tags, bracketed notes, region codes and edition suffixes."""
    if not raw_name:
        return ""

    title = re.sub(r"\s+(PS4|PS5|NSW|SW2|Switch|Playstation)$", "", raw_name, flags=re.IGNORECASE)
    title = re.sub(r"^(PS4|PS5|NSW|SW2)\s+", "", title, flags=re.IGNORECASE)
    title = re.sub(r"\s*\(.*?\)\s*", " ", title)
    title = re.sub(r"\s*\[.*?\]\s*", " ", title)
    title = _REGION_RE.sub("", title)
    title = _EDITION_RE.sub("", title)
    title = re.sub(r"\s*-\s*$", "", title)
    return re.sub(r"\s{2,}", " ", title).strip()


def format_title(raw_name: str | None) -> str:
    """Clean a supplier name and capitalise each word for display."""
    cleaned = clean_title(raw_name)
    return re.sub(
        r"\w\S*", lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), cleaned
    )
