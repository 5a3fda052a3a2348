"""Authenticated dashboard user as resolved from a Supabase access token."""

from pydantic import BaseModel

from app.models.enums import UserRole


class AuthenticatedUser(BaseModel):
    """Identity attached to a request by ``get_current_user``."""
    id: str
    email: str | None = None
    role: UserRole = UserRole.user

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin
