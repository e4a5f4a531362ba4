"""Enumerations shared across the ledger modules."""

from __future__ import annotations

from enum import Enum

# Label of the first point of every reconstructed balance series.
INITIAL_POINT_LABEL = "initial"

NAME_MAX_LENGTH = 120
SLUG_MAX_LENGTH = 80
DESCRIPTION_MAX_LENGTH = 500
NOTES_MAX_LENGTH = 500
REFERENCE_PERIOD_MAX_LENGTH = 50


class Role(str, Enum):
    """Closed set of principal roles known to the HR application."""

    CANDIDATE = "candidate"
    EMPLOYEE = "employee"
    MANAGER = "manager"
    HR = "hr"
    FINANCE = "finance"
    ADMIN = "admin"


class ResourceStatus(str, Enum):
    """Lifecycle label of a resource. Informational only."""

    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"


class MovementType(str, Enum):
    """The three kinds of balance-changing movements."""

    ENTRY = "ENTRY"
    EXIT = "EXIT"
    ADJUSTMENT = "ADJUSTMENT"


__all__ = [
    "DESCRIPTION_MAX_LENGTH",
    "INITIAL_POINT_LABEL",
    "MovementType",
    "NAME_MAX_LENGTH",
    "NOTES_MAX_LENGTH",
    "REFERENCE_PERIOD_MAX_LENGTH",
    "ResourceStatus",
    "Role",
    "SLUG_MAX_LENGTH",
]
