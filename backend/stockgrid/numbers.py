from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .services.errors import ValidationError


def to_decimal(value: Any, *, field: str = "value") -> Decimal:
    """
    Coerce API input to Decimal without going through float.

    Accepts Decimal, int and numeric strings ("12.50"). Floats are converted
    via repr so 0.1 stays 0.1. Booleans and non-finite values are rejected.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number", details={field: value})
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number", details={field: value})
    else:
        raise ValidationError(f"{field} must be a number", details={field: value})
    if not result.is_finite():
        raise ValidationError(f"{field} must be finite", details={field: str(value)})
    return result


def optional_decimal(value: Any, *, field: str = "value") -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return to_decimal(value, field=field)


def decimal_to_str(value: Optional[Decimal | int]) -> Optional[str]:
    """Serialize without exponent or trailing zeros: Decimal('95.000') -> '95'."""
    if value is None:
        return None
    if not isinstance(value, Decimal):
        value = Decimal(value)
    normalized = value.normalize()
    if normalized == normalized.to_integral_value():
        return str(normalized.quantize(Decimal(1)))
    return format(normalized, "f")
