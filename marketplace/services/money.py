"""
Money Utilities - Decimal arithmetic for prices and cart totals.

Floats never enter a total; values from JSON are converted via str.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Union

MONEY_PRECISION = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[str, int, float, Decimal, None]


def to_decimal(value: Number) -> Decimal:
    """
    Convert a value to Decimal.

    None and unparseable input become Decimal("0").
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def round_money(value: Number) -> Decimal:
    """Quantize to cents, half-up."""
    return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def line_total(unit_price: Number, quantity: int) -> Decimal:
    """unit_price x quantity, rounded to cents."""
    return round_money(to_decimal(unit_price) * quantity)


def sum_money(values: Iterable[Number]) -> Decimal:
    """Sum of monetary values, rounded to cents. Empty input gives 0.00."""
    total = Decimal("0")
    for value in values:
        total += to_decimal(value)
    return round_money(total)


def to_float(value: Number) -> float:
    """Float for JSON responses. Never feed the result back into arithmetic."""
    return float(round_money(value))


def format_money(value: Number, symbol: str = "$") -> str:
    """Format as e.g. "$1,299.50"."""
    return f"{symbol}{round_money(value):,.2f}"
