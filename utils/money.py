"""
Money parsing and rounding.

Amounts are Decimal end to end. Rounding happens only at presentation and
settlement boundaries, never on stored or propagated values.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any

MONEY_PLACES = 2

# Largest quantity, price or rate accepted from input. Keeps products of
# two inputs well inside Decimal's exponent range.
MAX_NUMBER = Decimal("1e12")

_ZERO = Decimal("0")


def parse_number(raw: Any) -> Decimal:
    """
    Coerce user input into a non-negative finite Decimal.

    The one place permissive numeric coercion happens. Form fields are
    transiently blank while someone types, so blank, unparsable, NaN,
    infinite, negative and absurdly large (above MAX_NUMBER) values all
    become zero instead of raising.

    Args:
        raw: str, int, float, Decimal or None

    Returns:
        Parsed value, or Decimal("0")
    """
    if raw is None or isinstance(raw, bool):
        return _ZERO

    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)):
        # str() first so 0.1 stays 0.1 rather than its binary expansion
        value = _to_decimal(str(raw))
    elif isinstance(raw, str):
        value = _to_decimal(raw.strip().replace(",", ""))
    else:
        return _ZERO

    if value is None or not value.is_finite() or value < 0 or value > MAX_NUMBER:
        return _ZERO
    return value


def _to_decimal(text: str) -> Decimal | None:
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def round_money(value: Decimal, places: int = MONEY_PLACES) -> Decimal:
    """
    Round half-up to the currency's minor unit. Presentation only.

    Precision is widened to fit every integer digit, so large totals round
    instead of raising InvalidOperation.
    """
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + places + 2)
        return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def has_sub_minor_units(value: Decimal, places: int = MONEY_PLACES) -> bool:
    """Whether value carries precision finer than the minor unit (e.g. 10.005)."""
    return value != round_money(value, places)


def to_minor_units(value: Decimal, places: int = MONEY_PLACES) -> int:
    """Convert to integer minor units (cents) for card processors."""
    return int(round_money(value, places).scaleb(places))
