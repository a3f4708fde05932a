# Overview: Exact decimal helpers for money values.

"""
All money is handled as ``decimal.Decimal`` quantized to two places.
JSON bodies carry money as strings so no float ever touches an amount.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Maximum amount accepted on input (fits Numeric(14, 2))
MAX_AMOUNT = Decimal("999999999999.99")


def to_decimal(value, field: str = "amount", *, allow_negative: bool = False) -> Decimal:
    """
    Parse client input into a quantized Decimal.

    Accepts Decimal, int and numeric strings. Floats are converted through
    their repr so 0.1 stays 0.1. Booleans and garbage raise ValidationError.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be a number")
        try:
            amount = Decimal(stripped)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0 and not allow_negative:
        raise ValidationError(f"{field} must not be negative")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{field} is too large")

    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def money_str(value: Decimal | None) -> str | None:
    if value is None:
        return None
    return str(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def format_rupiah(value: Decimal) -> str:
    """Rp 45.000 style formatting (no minor units, dot thousands separator)."""
    amount = Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    digits = f"{abs(amount):,}".replace(",", ".")
    return f"{sign}Rp {digits}"
