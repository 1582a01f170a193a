"""Role and capability based access control for Electrofun.

Roles are stored on the profile. Each role grants a fixed set of
capabilities, and endpoints depend on a capability rather than comparing
role names inline.
"""

from enum import Enum


class UserRole(str, Enum):
    """Profile roles."""

    STUDENT = "student"  # Default role for every signed-in user
    ADMIN = "admin"  # Catalog and platform administration


class Capability(str, Enum):
    """Actions guarded by a role check."""

    MANAGE_CATALOG = "manage_catalog"  # Kits, codes, official courses
    GRANT_KIT_ACCESS = "grant_kit_access"  # Manual entitlement grants
    MANAGE_ANY_LESSON_FILE = "manage_any_lesson_file"  # Upload/delete on any lesson
    VIEW_PURCHASES = "view_purchases"  # Purchase ledger


ROLE_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    UserRole.STUDENT: frozenset(),
    UserRole.ADMIN: frozenset(Capability),
}


def parse_role(role: UserRole | str | None) -> UserRole:
    """Parse a stored role, falling back to STUDENT for unknown values."""
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return UserRole.STUDENT


def has_capability(role: UserRole | str | None, capability: Capability) -> bool:
    """Check whether a role grants a capability.

    Examples:
        >>> has_capability("admin", Capability.MANAGE_CATALOG)
        True
        >>> has_capability("student", Capability.MANAGE_CATALOG)
        False
    """
    return capability in ROLE_CAPABILITIES[parse_role(role)]


def is_admin(role: UserRole | str | None) -> bool:
    """Check if role is ADMIN."""
    return parse_role(role) == UserRole.ADMIN
