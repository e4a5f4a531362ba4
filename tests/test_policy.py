import pytest

from resource_ledger import policy
from resource_ledger.constants import Role
from resource_ledger.errors import PermissionDeniedError


@pytest.mark.parametrize("role", list(Role))
def test_every_role_can_read(role: Role) -> None:
    assert policy.can_read(role)


@pytest.mark.parametrize(
    ("role", "expected"),
    [
        (Role.ADMIN, True),
        (Role.HR, True),
        (Role.MANAGER, True),
        (Role.EMPLOYEE, True),
        (Role.FINANCE, False),
        (Role.CANDIDATE, False),
    ],
)
def test_movement_permission(role: Role, expected: bool) -> None:
    assert policy.can_create_movement(role) is expected


@pytest.mark.parametrize(
    ("role", "expected"),
    [
        (Role.ADMIN, True),
        (Role.HR, True),
        (Role.MANAGER, False),
        (Role.EMPLOYEE, False),
        (Role.FINANCE, False),
        (Role.CANDIDATE, False),
    ],
)
def test_resource_permission(role: Role, expected: bool) -> None:
    assert policy.can_create_resource(role) is expected


def test_permission_matrix_covers_all_roles() -> None:
    assert set(policy.PERMISSIONS) == set(Role)


def test_roles_accept_plain_strings() -> None:
    assert policy.can_create_resource("admin")
    assert not policy.can_create_movement("finance")


def test_require_raises_for_denied_action() -> None:
    policy.require(Role.EMPLOYEE, policy.Action.CREATE_MOVEMENT)
    with pytest.raises(PermissionDeniedError) as excinfo:
        policy.require(Role.EMPLOYEE, policy.Action.CREATE_RESOURCE)
    assert excinfo.value.code == "permission_denied"
