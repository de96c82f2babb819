"""
Numeric coercion and rounding helpers shared by pricing and parsing code.

All money math runs on ``Decimal`` so that ceiling rounding never bumps a value
that is an exact multiple of the rounding unit because of binary float noise.
"""

import math
from decimal import Decimal, InvalidOperation

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value, default: Decimal = ZERO) -> Decimal:
    """
    Coerce an arbitrary value to a finite Decimal.

    Strings are stripped; ``None``, empty strings, booleans, NaN, infinities and
    anything unparseable fall back to ``default``.

    Args:
        value: Number, numeric string, or anything else
        default: Value returned when coercion fails

    Returns:
        Finite Decimal
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        return Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            return default
        # str() keeps the shortest repr, so 1.3 becomes Decimal("1.3")
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            result = Decimal(text)
        except InvalidOperation:
            return default
    else:
        return default

    if not result.is_finite():
        return default
    return result


def to_non_negative_decimal(value) -> Decimal:
    """Coerce to Decimal, mapping negatives and junk to zero."""
    result = to_decimal(value)
    return result if result > ZERO else ZERO


def to_optional_decimal(value) -> Decimal | None:
    """Coerce to Decimal, keeping "not set" (None / blank / junk) as None."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    result = to_decimal(value, default=None)
    return result


def ceil_to_unit(value: Decimal, unit: int = 100) -> int:
    """
    Round a non-negative amount up to the next multiple of ``unit``.

    Exact multiples are returned unchanged.

    Example:
        >>> ceil_to_unit(Decimal("93600"))
        93600
        >>> ceil_to_unit(Decimal("84240"))
        84300
    """
    if value <= ZERO:
        return 0
    step = Decimal(unit)
    units = (value / step).to_integral_value(rounding="ROUND_CEILING")
    return int(units) * unit
