"""Role-based access control (RBAC).

Hierarchical roles:
- ADMIN (level 2): Full system access, every class
- PROFESSOR (level 1): Authors and grades the classes they own
- STUDENT (level 0): Works through classes with an active enrollment
"""

from enum import Enum
from uuid import UUID


class UserRole(str, Enum):
    """User roles with hierarchical levels."""

    STUDENT = "student"
    PROFESSOR = "professor"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.STUDENT: 0,
    UserRole.PROFESSOR: 1,
    UserRole.ADMIN: 2,
}


def get_role_level(role: UserRole | str) -> int:
    """Get the permission level for a role.

    Unknown role strings map to -1 so they never satisfy any requirement.
    """
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return -1
    return ROLE_HIERARCHY.get(role, -1)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.PROFESSOR)
        True
        >>> has_permission(UserRole.STUDENT, UserRole.PROFESSOR)
        False
        >>> has_permission("professor", "student")
        True
    """
    return get_role_level(user_role) >= get_role_level(required_role) >= 0


def is_admin(role: UserRole | str) -> bool:
    """Check if role is ADMIN."""
    return get_role_level(role) == ROLE_HIERARCHY[UserRole.ADMIN]


def can_manage_class(
    user_id: UUID | str, role: UserRole | str, professor_id: UUID | str
) -> bool:
    """Admins manage every class; professors only the classes they own."""
    if is_admin(role):
        return True
    return get_role_level(role) == ROLE_HIERARCHY[UserRole.PROFESSOR] and str(
        user_id
    ) == str(professor_id)
