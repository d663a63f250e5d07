"""Authentication and role-based access control."""

from lms.auth.permissions import UserRole, can_manage_class, has_permission
from lms.auth.schemas import UserResponse


__all__ = ["UserResponse", "UserRole", "can_manage_class", "has_permission"]
