# wineclub/core/roles.py

import enum
from typing import List, Tuple


class BusinessRole(str, enum.Enum):
    OWNER = "OWNER"   # business creator; cannot be removed or re-roled
    ADMIN = "ADMIN"   # trusted manager; settings, team, members, transactions
    STAFF = "STAFF"   # employee; read-only dashboard + own notification prefs


ROLE_LABELS = {
    BusinessRole.OWNER: "Owner",
    BusinessRole.ADMIN: "Admin",
    BusinessRole.STAFF: "Employee",
}

# Roles an inviter / role-changer may hand out. OWNER is never assignable.
ASSIGNABLE_ROLES: List[Tuple[BusinessRole, str]] = [
    (BusinessRole.ADMIN, ROLE_LABELS[BusinessRole.ADMIN]),
    (BusinessRole.STAFF, ROLE_LABELS[BusinessRole.STAFF]),
]

# Team listing order: OWNER first, then ADMIN, then STAFF
ROLE_SORT_ORDER = {
    BusinessRole.OWNER: 0,
    BusinessRole.ADMIN: 1,
    BusinessRole.STAFF: 2,
}


def parse_role(role) -> BusinessRole | None:
    """
    Normalize a stored or submitted role. Unknown values return None.
    """
    if isinstance(role, BusinessRole):
        return role
    if not isinstance(role, str):
        return None
    try:
        return BusinessRole(role.strip().upper())
    except ValueError:
        return None


def is_assignable_role(role) -> bool:
    r = parse_role(role)
    return r is not None and r in {value for value, _ in ASSIGNABLE_ROLES}


def get_role_label(role) -> str:
    """
    Human-readable label for a role (used by dashboard UIs).
    """
    r = parse_role(role)
    if r is None:
        return "Unknown"
    return ROLE_LABELS[r]
