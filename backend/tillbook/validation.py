from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .errors import ValidationError

CENT = Decimal("0.01")

# Matches Numeric(14, 2): twelve integer digits. Prevents column overflow and
# nonsensical amounts.
MAX_AMOUNT = Decimal("999999999999.99")


def to_money(value: Decimal) -> Decimal:
    """Quantize to two fractional digits, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_money(value: Any, field: str, *, allow_zero: bool = True) -> Decimal:
    """
    Strict decimal coercion for client-supplied amounts.

    Accepts Decimal, int, float and numeric strings. Rejects bools, NaN,
    infinities, negatives and anything above MAX_AMOUNT.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", details={"field": field})

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            # str() keeps floats from dragging binary noise into the decimal
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number", details={"field": field}) from None
    else:
        raise ValidationError(f"{field} must be a number", details={"field": field})

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number", details={"field": field})
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative", details={"field": field})
    if amount == 0 and not allow_zero:
        raise ValidationError(f"{field} must be greater than 0", details={"field": field})
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} exceeds maximum of {MAX_AMOUNT}", details={"field": field})

    return to_money(amount)


def parse_int(value: Any, field: str = "quantity") -> int:
    """
    Strict integer coercion, sign allowed.

    Integers pass through; digit strings (optionally with a leading '-') are
    parsed; floats are accepted only when integral (2.0). Bools are rejected.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", details={"field": field})

    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        digits = text[1:] if text.startswith("-") else text
        if digits.isdecimal():
            return int(text)
    raise ValidationError(f"{field} must be an integer", details={"field": field})


def parse_quantity(value: Any, field: str = "quantity") -> int:
    """Strict positive integer coercion; zero and negatives are rejected."""
    qty = parse_int(value, field)
    if qty <= 0:
        raise ValidationError(f"{field} must be greater than 0", details={"field": field})
    return qty


def parse_id(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError(f"{field} is required", details={"field": field})
    if isinstance(value, str):
        if not value.strip().isdigit():
            raise ValidationError(f"{field} must be an integer id", details={"field": field})
        value = int(value.strip())
    if value <= 0:
        raise ValidationError(f"{field} must be a positive id", details={"field": field})
    return value


def clean_text(value: Any, max_length: int) -> str | None:
    """Trim free text; empty becomes None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text[:max_length]
