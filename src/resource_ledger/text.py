"""Free text normalisation shared by the resource store and the ledger."""

from __future__ import annotations

from typing import Optional

from .errors import ValidationError


def clean_text(value: Optional[str], *, limit: Optional[int] = None, field: Optional[str] = None) -> Optional[str]:
    """Strip *value*; blank becomes ``None``. Longer than *limit* is a :class:`ValidationError`."""

    if value is None:
        return None
    value = value.strip()
    if limit is not None and len(value) > limit:
        raise ValidationError(f"Must be at most {limit} characters", field=field)
    return value or None
