from __future__ import annotations

import pytest

from wineclub.auth.permissions import (
    PERMISSIONS,
    Permission,
    allowed_roles,
    has_permission,
    is_admin,
    is_owner,
    permissions_for_role,
)
from wineclub.core.roles import (
    ASSIGNABLE_ROLES,
    BusinessRole,
    get_role_label,
    is_assignable_role,
    parse_role,
)

ROLES = list(BusinessRole)

EXPECTED = {
    "settings.general": {"OWNER", "ADMIN"},
    "settings.branding": {"OWNER", "ADMIN"},
    "settings.notifications": {"OWNER", "ADMIN", "STAFF"},
    "settings.team": {"OWNER", "ADMIN"},
    "members.view": {"OWNER", "ADMIN", "STAFF"},
    "members.edit": {"OWNER", "ADMIN"},
    "members.notes": {"OWNER", "ADMIN"},
    "members.cancel": {"OWNER", "ADMIN"},
    "plans.view": {"OWNER", "ADMIN", "STAFF"},
    "plans.create": {"OWNER", "ADMIN"},
    "plans.edit": {"OWNER", "ADMIN"},
    "plans.delete": {"OWNER", "ADMIN"},
    "transactions.view": {"OWNER", "ADMIN", "STAFF"},
    "transactions.refund": {"OWNER", "ADMIN"},
    "dashboard.view": {"OWNER", "ADMIN", "STAFF"},
    "dashboard.metrics": {"OWNER", "ADMIN", "STAFF"},
    "team.view": {"OWNER", "ADMIN"},
    "team.invite": {"OWNER", "ADMIN"},
    "team.remove": {"OWNER", "ADMIN"},
    "team.changeRole": {"OWNER"},
}


def test_table_covers_every_permission():
    assert set(PERMISSIONS) == set(Permission)
    assert {p.value for p in Permission} == set(EXPECTED)


@pytest.mark.parametrize("permission", list(Permission), ids=lambda p: p.value)
@pytest.mark.parametrize("role", ROLES, ids=lambda r: r.value)
def test_has_permission_matches_table(role, permission):
    assert has_permission(role, permission) is (role.value in EXPECTED[permission.value])


@pytest.mark.parametrize("permission", list(Permission), ids=lambda p: p.value)
def test_every_permission_grantable_and_owner_covers_admin(permission):
    roles = PERMISSIONS[permission]
    assert roles, "permission must be grantable to at least one role"
    assert BusinessRole.OWNER in roles
    if BusinessRole.ADMIN in roles:
        assert BusinessRole.OWNER in roles


def test_only_owner_changes_roles():
    assert allowed_roles("team.changeRole") == frozenset({BusinessRole.OWNER})
    assert not has_permission("ADMIN", "team.changeRole")


def test_string_arguments_are_accepted():
    assert has_permission("ADMIN", "plans.edit")
    assert has_permission("staff", "members.view")
    assert not has_permission("STAFF", "plans.edit")


@pytest.mark.parametrize("permission", ["plans.nuke", "", "team.*", None, 42])
def test_unknown_permission_fails_closed(permission):
    assert allowed_roles(permission) == frozenset()
    for role in ROLES:
        assert has_permission(role, permission) is False


@pytest.mark.parametrize("role", ["SUPERUSER", "", None, 1])
def test_unknown_role_has_nothing(role):
    assert has_permission(role, Permission.DASHBOARD_VIEW) is False
    assert permissions_for_role(role) == []
    assert is_admin(role) is False
    assert is_owner(role) is False


@pytest.mark.parametrize(
    "role,admin,owner",
    [
        (BusinessRole.OWNER, True, True),
        (BusinessRole.ADMIN, True, False),
        (BusinessRole.STAFF, False, False),
    ],
)
def test_role_predicates(role, admin, owner):
    assert is_admin(role) is admin
    assert is_owner(role) is owner
    assert is_admin(role.value) is admin
    assert is_owner(role.value) is owner


def test_role_labels():
    assert get_role_label("OWNER") == "Owner"
    assert get_role_label(BusinessRole.ADMIN) == "Admin"
    assert get_role_label("STAFF") == "Employee"
    assert get_role_label("ROOT") == "Unknown"


def test_owner_is_never_assignable():
    assert [r for r, _ in ASSIGNABLE_ROLES] == [BusinessRole.ADMIN, BusinessRole.STAFF]
    assert is_assignable_role("admin")
    assert is_assignable_role("STAFF")
    assert not is_assignable_role("OWNER")
    assert not is_assignable_role("MANAGER")


def test_permissions_for_staff_are_read_only():
    staff = set(permissions_for_role("STAFF"))
    assert staff == {name for name, roles in EXPECTED.items() if "STAFF" in roles}
    assert permissions_for_role("OWNER") == [p.value for p in Permission]


def test_parse_role_normalizes():
    assert parse_role(" admin ") is BusinessRole.ADMIN
    assert parse_role("nobody") is None
