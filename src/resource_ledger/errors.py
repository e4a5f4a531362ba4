"""Error taxonomy for the ledger.

Every failure surfaced by the resource store, the movement ledger and the
balance engine is one of the types below. Each carries a machine readable
``code`` and, where it makes sense, the ``field`` the problem belongs to so the
HTTP layer can render field-level details without parsing messages.
"""

from __future__ import annotations

from typing import Optional


class LedgerError(Exception):
    """Base class for all ledger errors."""

    code = "ledger_error"

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def as_details(self) -> dict[str, list[str]]:
        return {self.field: [self.message]} if self.field else {}


class ValidationError(LedgerError):
    """Malformed input: blank name, bad quantity, missing reference."""

    code = "validation_error"


class NotFoundError(LedgerError):
    """A referenced resource, department or user does not exist."""

    code = "not_found"


class ConflictError(LedgerError):
    """Slug collision on creation, or a balance update that lost a race."""

    code = "conflict"


class StorageError(LedgerError):
    """The backing store failed or is unavailable."""

    code = "storage_error"


class PermissionDeniedError(LedgerError):
    """The acting role is not allowed to perform the requested action."""

    code = "permission_denied"


class LedgerIntegrityError(LedgerError):
    """Replaying a resource's movements does not reproduce its current balance."""

    code = "integrity_violation"


__all__ = [
    "ConflictError",
    "LedgerError",
    "LedgerIntegrityError",
    "NotFoundError",
    "PermissionDeniedError",
    "StorageError",
    "ValidationError",
]
