"""Role based access policy for the ledger.

The matrix below has one row per :class:`Role`; ``PERMISSIONS`` is checked at
import time so adding a role without deciding its permissions fails loudly.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .constants import Role
from .errors import PermissionDeniedError


class Action(str, Enum):
    READ = "read"
    CREATE_MOVEMENT = "create_movement"
    CREATE_RESOURCE = "create_resource"


@dataclass(frozen=True, slots=True)
class Permissions:
    read: bool
    create_movement: bool
    create_resource: bool

    def allows(self, action: Action) -> bool:
        return bool(getattr(self, action.value))


PERMISSIONS: dict[Role, Permissions] = {
    Role.ADMIN: Permissions(read=True, create_movement=True, create_resource=True),
    Role.HR: Permissions(read=True, create_movement=True, create_resource=True),
    Role.MANAGER: Permissions(read=True, create_movement=True, create_resource=False),
    Role.EMPLOYEE: Permissions(read=True, create_movement=True, create_resource=False),
    Role.FINANCE: Permissions(read=True, create_movement=False, create_resource=False),
    Role.CANDIDATE: Permissions(read=True, create_movement=False, create_resource=False),
}

_missing = set(Role) - set(PERMISSIONS)
if _missing:  # pragma: no cover - guards future edits of Role
    raise RuntimeError(f"No permissions declared for roles: {sorted(r.value for r in _missing)}")

_DENIED_MESSAGES = {
    Action.READ: "You do not have permission to view ledger data",
    Action.CREATE_MOVEMENT: "You do not have permission to record movements",
    Action.CREATE_RESOURCE: "You do not have permission to create strategic resources",
}


def _permissions_for(role: Role | str) -> Permissions:
    return PERMISSIONS[Role(role)]


def can_read(role: Role | str) -> bool:
    return _permissions_for(role).read


def can_create_movement(role: Role | str) -> bool:
    return _permissions_for(role).create_movement


def can_create_resource(role: Role | str) -> bool:
    return _permissions_for(role).create_resource


def require(role: Role | str, action: Action) -> None:
    """Raise :class:`PermissionDeniedError` unless *role* may perform *action*."""

    if not _permissions_for(role).allows(action):
        raise PermissionDeniedError(_DENIED_MESSAGES[action])


__all__ = [
    "Action",
    "PERMISSIONS",
    "Permissions",
    "can_create_movement",
    "can_create_resource",
    "can_read",
    "require",
]
