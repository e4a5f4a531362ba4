"""Decimal coercion and storage for balances and quantities.

Amounts carry four decimal places and are persisted as integer counts of
ten-thousandths, so SQL arithmetic on them is exact on every backend.
"""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy import BigInteger
from sqlalchemy.types import TypeDecorator

from .errors import ValidationError

SCALE = 4
QUANTUM = Decimal(1).scaleb(-SCALE)
# Exclusive bound of NUMERIC(18, 4); scaled values stay well inside a signed 64-bit integer.
MAX_AMOUNT = Decimal(10) ** (18 - SCALE)


def to_amount(value: Any, *, field: str) -> Decimal:
    """Coerce *value* to a finite Decimal rounded to the storage scale.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than its binary expansion. Booleans are rejected even though they are ints.
    """

    if value is None or isinstance(value, bool):
        raise ValidationError("A numeric value is required", field=field)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"'{value}' is not a number", field=field) from exc
    if not amount.is_finite():
        raise ValidationError("The value must be a finite number", field=field)
    if in_range(amount):
        try:
            amount = amount.quantize(QUANTUM, rounding=ROUND_HALF_EVEN)
        except InvalidOperation as exc:  # pragma: no cover - bounded by in_range
            raise ValidationError(f"'{value}' cannot be represented", field=field) from exc
    # Rounding can carry a value just below the bound onto it.
    if not in_range(amount):
        raise ValidationError(f"The value must be smaller than {MAX_AMOUNT:,.0f} in magnitude", field=field)
    return amount


def in_range(amount: Decimal) -> bool:
    return abs(amount) < MAX_AMOUNT


def from_column(value: Any) -> Decimal:
    """Normalise an aggregate or column value read back from the database."""

    if value is None:
        return Decimal("0").quantize(QUANTUM)
    if isinstance(value, Decimal):
        return value.quantize(QUANTUM, rounding=ROUND_HALF_EVEN)
    return Decimal(str(value)).quantize(QUANTUM, rounding=ROUND_HALF_EVEN)


class Amount(TypeDecorator):
    """``Decimal`` stored as a ``BIGINT`` count of ten-thousandths."""

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> Optional[int]:
        if value is None:
            return None
        return int(from_column(value).scaleb(SCALE))

    def process_result_value(self, value: Any, dialect) -> Optional[Decimal]:
        if value is None:
            return None
        return Decimal(int(value)).scaleb(-SCALE).quantize(QUANTUM)
