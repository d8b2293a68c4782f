"""Conversion helpers for common type coercion."""

from decimal import Decimal, InvalidOperation
from typing import Optional


def coerce_int(value: object) -> Optional[int]:
    """Return an int for valid string/int inputs, otherwise None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except (TypeError, ValueError):
            return None
    return None


def coerce_decimal(value: object) -> Optional[Decimal]:
    """Return a Decimal for numeric or numeric-string inputs, otherwise None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None


def money(value: object) -> Decimal:
    """Quantize an amount to two decimal places; invalid input becomes 0.00."""
    amount = coerce_decimal(value)
    if amount is None:
        amount = Decimal("0")
    return amount.quantize(Decimal("0.01"))


def to_float(value: object) -> float:
    amount = coerce_decimal(value)
    return float(amount) if amount is not None else 0.0
