from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import ValidationError
from .money import quantize
from .time_utils import parse_iso_date


# Maximum amount: $9.999.999.999,99 (fits Numeric(12, 2))
MAX_AMOUNT = Decimal("9999999999.99")

# Largest integer a quantity, stock count or id may take (signed 32-bit column)
MAX_INT = 2**31 - 1


def require_json_object(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Cuerpo JSON inválido.")
    return payload


def parse_amount(
    value: Any,
    field: str,
    *,
    allow_zero: bool = True,
    required: bool = True,
) -> Decimal | None:
    """
    Parse a money amount from JSON input.

    Accepts ints, floats and numeric strings; rejects booleans, NaN/Infinity,
    negatives, and (unless allow_zero) zero. Floats go through str() so
    1000.1 becomes Decimal("1000.1"), not its binary expansion.
    """
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} es requerido.")
        return None

    if isinstance(value, bool):
        raise ValidationError(f"{field} debe ser un número.")

    try:
        if isinstance(value, float):
            amount = Decimal(str(value))
        else:
            amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} debe ser un número.")

    if not amount.is_finite():
        raise ValidationError(f"{field} debe ser un número.")

    if amount < 0:
        raise ValidationError(f"{field} no puede ser negativo.")
    if not allow_zero and amount == 0:
        raise ValidationError(f"{field} debe ser positivo.")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} excede el máximo permitido.")

    return quantize(amount)


def parse_int(
    value: Any,
    field: str,
    *,
    minimum: int | None = None,
    maximum: int | None = MAX_INT,
    required: bool = True,
) -> int | None:
    """Strict integer parsing: floats with a fractional part and bools are rejected."""
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} es requerido.")
        return None

    if isinstance(value, bool):
        raise ValidationError(f"{field} debe ser un entero.")

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} debe ser un entero.")
        parsed = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped.lstrip("-").isdigit():
            raise ValidationError(f"{field} debe ser un entero.")
        parsed = int(stripped)
    else:
        raise ValidationError(f"{field} debe ser un entero.")

    if minimum is not None and parsed < minimum:
        raise ValidationError(f"{field} debe ser mayor o igual a {minimum}.")
    if maximum is not None and parsed > maximum:
        raise ValidationError(f"{field} excede el máximo permitido.")

    return parsed


def parse_text(value: Any, field: str, *, required: bool = True, max_length: int | None = None) -> str | None:
    if value is None:
        if required:
            raise ValidationError(f"{field} es requerido.")
        return None
    text = str(value).strip()
    if not text:
        if required:
            raise ValidationError(f"{field} es requerido.")
        return None
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{field} excede el largo máximo de {max_length}.")
    return text


def parse_date(value: Any, field: str, *, required: bool = False) -> date | None:
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} es requerido.")
        return None
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field} debe ser una fecha ISO-8601 (AAAA-MM-DD).")


def parse_list(value: Any, field: str, *, allow_empty: bool = False) -> list:
    if not isinstance(value, list):
        raise ValidationError(f"{field} debe ser una lista.")
    if not value and not allow_empty:
        raise ValidationError(f"{field} no puede estar vacío.")
    for entry in value:
        if not isinstance(entry, dict):
            raise ValidationError(f"{field} contiene un elemento inválido.")
    return value
