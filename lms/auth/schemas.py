"""Pydantic schemas for the authenticated principal."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from lms.auth.permissions import UserRole


class UserResponse(BaseModel):
    """Authenticated user as described by the access token claims."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    role: UserRole
    name: str | None = None

    @property
    def display_name(self) -> str:
        """Full name when known, otherwise the email local part."""
        return self.name or self.email.split("@")[0]
