"""
Role-based permission table for business dashboards.

Roles:
  OWNER  - business creator, full access, cannot be removed
  ADMIN  - settings, team management, actions on members and transactions
  STAFF  - read-only dashboard access plus their own notification preferences

Imported by request handlers and by UI-gating endpoints alike, so it must
stay free of database/settings imports.
"""

from __future__ import annotations

import enum
from types import MappingProxyType
from typing import FrozenSet, List, Mapping

from wineclub.core.roles import BusinessRole, parse_role

OWNER = BusinessRole.OWNER
ADMIN = BusinessRole.ADMIN
STAFF = BusinessRole.STAFF


class Permission(str, enum.Enum):
    # settings.*
    SETTINGS_GENERAL = "settings.general"
    SETTINGS_BRANDING = "settings.branding"
    SETTINGS_NOTIFICATIONS = "settings.notifications"
    SETTINGS_TEAM = "settings.team"

    # members.*
    MEMBERS_VIEW = "members.view"
    MEMBERS_EDIT = "members.edit"
    MEMBERS_NOTES = "members.notes"
    MEMBERS_CANCEL = "members.cancel"

    # plans.*
    PLANS_VIEW = "plans.view"
    PLANS_CREATE = "plans.create"
    PLANS_EDIT = "plans.edit"
    PLANS_DELETE = "plans.delete"

    # transactions.*
    TRANSACTIONS_VIEW = "transactions.view"
    TRANSACTIONS_REFUND = "transactions.refund"

    # dashboard.*
    DASHBOARD_VIEW = "dashboard.view"
    DASHBOARD_METRICS = "dashboard.metrics"

    # team.*
    TEAM_VIEW = "team.view"
    TEAM_INVITE = "team.invite"
    TEAM_REMOVE = "team.remove"
    TEAM_CHANGE_ROLE = "team.changeRole"


_ALL = frozenset({OWNER, ADMIN, STAFF})
_ADMINS = frozenset({OWNER, ADMIN})
_OWNER_ONLY = frozenset({OWNER})

PERMISSIONS: Mapping[Permission, FrozenSet[BusinessRole]] = MappingProxyType(
    {
        Permission.SETTINGS_GENERAL: _ADMINS,
        Permission.SETTINGS_BRANDING: _ADMINS,
        Permission.SETTINGS_NOTIFICATIONS: _ALL,  # own prefs only
        Permission.SETTINGS_TEAM: _ADMINS,

        Permission.MEMBERS_VIEW: _ALL,
        Permission.MEMBERS_EDIT: _ADMINS,
        Permission.MEMBERS_NOTES: _ADMINS,
        Permission.MEMBERS_CANCEL: _ADMINS,

        Permission.PLANS_VIEW: _ALL,
        Permission.PLANS_CREATE: _ADMINS,
        Permission.PLANS_EDIT: _ADMINS,
        Permission.PLANS_DELETE: _ADMINS,

        Permission.TRANSACTIONS_VIEW: _ALL,
        Permission.TRANSACTIONS_REFUND: _ADMINS,

        Permission.DASHBOARD_VIEW: _ALL,
        Permission.DASHBOARD_METRICS: _ALL,

        Permission.TEAM_VIEW: _ADMINS,
        Permission.TEAM_INVITE: _ADMINS,
        Permission.TEAM_REMOVE: _ADMINS,
        # ADMIN deliberately excluded: role changes stay with the owner
        Permission.TEAM_CHANGE_ROLE: _OWNER_ONLY,
    }
)


def parse_permission(permission) -> Permission | None:
    if isinstance(permission, Permission):
        return permission
    if not isinstance(permission, str):
        return None
    try:
        return Permission(permission.strip())
    except ValueError:
        return None


def allowed_roles(permission) -> FrozenSet[BusinessRole]:
    """
    Roles granted `permission`. Unknown permissions grant nothing.
    """
    p = parse_permission(permission)
    if p is None:
        return frozenset()
    return PERMISSIONS.get(p, frozenset())


def has_permission(role, permission) -> bool:
    r = parse_role(role)
    if r is None:
        return False
    return r in allowed_roles(permission)


def permissions_for_role(role) -> List[str]:
    """
    Every permission the role holds, in table order.
    """
    r = parse_role(role)
    if r is None:
        return []
    return [p.value for p, roles in PERMISSIONS.items() if r in roles]


def is_admin(role) -> bool:
    return parse_role(role) in {OWNER, ADMIN}


def is_owner(role) -> bool:
    return parse_role(role) == OWNER
