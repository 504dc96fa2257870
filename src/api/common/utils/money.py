from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TWO_PLACES = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """
    Convert an upstream amount or rate to Decimal.

    Missing or non-numeric values (None, "", "abc", NaN, Infinity) become 0
    so a corrupt catalog value never leaks into contract totals.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError, TypeError):
            return ZERO
    if not result.is_finite():
        return ZERO
    return result


def round2(value: Any) -> Decimal:
    """Round to two decimal places, half-up"""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    return amount * rate / HUNDRED


def to_rate(value: Any) -> Decimal:
    """Tax rate as Decimal; negative or malformed rates become 0"""
    return max(to_decimal(value), ZERO)
