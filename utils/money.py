"""
Fixed-point money helpers.

Every amount is a ``Decimal``. Sums keep full precision; rounding to two
places happens once, when a value is formatted or persisted as a row amount.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from configs.settings import CURRENCY_SYMBOL

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CURRENCY_PLACES = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Convert ints, strings, floats and None to an exact Decimal."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Cannot use a boolean as a money amount: {value!r}")
    if isinstance(value, float):
        # str() keeps the short repr so 0.1 stays 0.1
        return Decimal(str(value))
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Not a valid amount: {value!r}")


def add(*values: Any) -> Decimal:
    total = ZERO
    for value in values:
        total += to_decimal(value)
    return total


def subtract(minuend: Any, subtrahend: Any) -> Decimal:
    return to_decimal(minuend) - to_decimal(subtrahend)


def multiply(amount: Any, factor: Any) -> Decimal:
    return to_decimal(amount) * to_decimal(factor)


def percentage_of(amount: Any, percent: Any) -> Decimal:
    """``amount × percent / 100`` without rounding."""
    return to_decimal(amount) * to_decimal(percent) / HUNDRED


def safe_divide(numerator: Any, denominator: Any) -> Decimal:
    """Proportional allocation only. A zero denominator yields zero."""
    denominator = to_decimal(denominator)
    if denominator == ZERO:
        return ZERO
    return to_decimal(numerator) / denominator


def round_currency(value: Any) -> Decimal:
    return to_decimal(value).quantize(CURRENCY_PLACES, rounding=ROUND_HALF_UP)


def _group_indian(digits: str) -> str:
    # 1234567 -> 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_currency(value: Any, symbol: str | None = None) -> str:
    """Format an amount as ``₹1,23,456.78``."""
    symbol = CURRENCY_SYMBOL if symbol is None else symbol
    rounded = round_currency(value)
    sign = "-" if rounded < ZERO else ""
    whole, fraction = f"{abs(rounded):.2f}".split(".")
    return f"{sign}{symbol}{_group_indian(whole)}.{fraction}"


def format_quantity(value: Any) -> str:
    return f"{round_currency(value):.2f}"
