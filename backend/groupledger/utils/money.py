"""Currency helpers. Amounts live as integer cents inside the ledger."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from groupledger.errors import InvalidInputError

CENT = Decimal("0.01")
# Largest magnitude accepted for any amount or percentage
MAX_VALUE = Decimal("1000000000000")


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(f"{field} must be a number")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInputError(f"{field} must be a number, got {value!r}")
    if not number.is_finite():
        raise InvalidInputError(f"{field} must be finite")
    if abs(number) > MAX_VALUE:
        raise InvalidInputError(f"{field} is out of range")
    return number


def to_cents(value: Any, field: str = "amount") -> int:
    """Round a currency value half-up to two decimals and return cents."""
    try:
        number = to_decimal(value, field).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidInputError(f"{field} is out of range")
    return int(number * 100)


def from_cents(cents: int) -> float:
    return float(Decimal(cents) / 100)


def format_currency(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    return f"{sign}${Decimal(abs(cents)) / 100:,.2f}"
