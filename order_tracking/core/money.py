"""Currency arithmetic: two decimal places, half-up rounding."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Tuple, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

MoneyLike = Union[Decimal, int, float, str]


def to_money(value: MoneyLike) -> Decimal:
    """
    Convert `value` to a Decimal quantized to cents.

    Floats go through `str()` so 0.1 becomes Decimal("0.10"), not its binary expansion.
    Raises ValueError for booleans, non-numeric strings, NaN and infinities.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Not a monetary amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(quantity: int, unit_price: Decimal) -> Decimal:
    return to_money(unit_price * quantity)


def sum_lines(lines: Iterable[Tuple[int, Decimal]]) -> Decimal:
    """Exact total of (quantity, unit_price) pairs."""
    total = ZERO
    for quantity, unit_price in lines:
        total += line_total(quantity, unit_price)
    return to_money(total)


def mean(total: Decimal, count: int) -> Decimal:
    return to_money(total / count)
