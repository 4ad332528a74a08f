# Overview: Exact decimal handling for stock levels and recipe quantities.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP


ZERO = Decimal("0")


def to_quantity(value) -> Decimal:
    """
    Coerce a stock level or recipe quantity to Decimal.

    Floats go through str() so 0.01 stays 0.01 instead of its binary expansion.
    Raises ValueError for anything that is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError("quantity must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"invalid quantity: {value!r}")
    else:
        raise ValueError(f"invalid quantity: {value!r}")

    if not result.is_finite():
        raise ValueError(f"invalid quantity: {value!r}")
    return result


def round_cents(value) -> int:
    """Nearest-cent rounding (half-up) of a fractional cent amount."""
    return int(to_quantity(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def quantity_to_json(value):
    """Render a quantity for JSON: ints stay ints, fractions become floats."""
    if value is None:
        return None
    value = to_quantity(value)
    if value == value.to_integral_value():
        return int(value)
    return float(value)
