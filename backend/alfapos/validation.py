from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from .errors import ValidationError


# Maximum money amount accepted on any field (fits Numeric(14, 2))
MAX_AMOUNT = Decimal("999999999999.99")

# Signed 64-bit range of an INTEGER/BIGINT column
MAX_INT = 2 ** 63 - 1
MIN_INT = -(2 ** 63)


def pick(data: Mapping[str, Any] | None, *keys: str, default=None):
    """
    First present, non-None value among keys.

    The mobile client sends snake_case (price_per_item) while newer clients
    use camelCase (pricePerItem); routes accept both.
    """
    if not data:
        return default
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def parse_int(value: Any, field: str) -> int:
    """
    Strict integer coercion: rejects bools, floats, decimals, scientific
    notation and values outside the signed 64-bit range.
    """
    number = _coerce_int(value, field)
    if not MIN_INT <= number <= MAX_INT:
        raise ValidationError(f"{field} is out of range")
    return number


def _coerce_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def parse_quantity(value: Any, field: str = "quantity", *, allow_zero: bool = False) -> int:
    qty = parse_int(value, field)
    if qty < 0 or (qty == 0 and not allow_zero):
        raise ValidationError(f"{field} must be {'>= 0' if allow_zero else '> 0'}")
    return qty


def parse_amount(value: Any, field: str) -> Decimal:
    """
    Money amount as a Decimal with two places.

    Floats go through str() first so 0.1 stays 0.1.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} exceeds the maximum amount")
    return amount.quantize(Decimal("0.01"))


def parse_optional_amount(value: Any, field: str) -> Decimal | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_amount(value, field)


def clean_str(value: Any, *, max_length: int | None = None, field: str = "value") -> str | None:
    """Strip strings; blank becomes None."""
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    if max_length is not None and len(s) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return s
