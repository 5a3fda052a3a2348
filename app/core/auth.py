"""Authentication dependencies.

Access tokens are issued by Supabase Auth; ``get_current_user`` resolves the
token to a user and reads the dashboard role from ``user_profiles``.
"""

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.constants import USER_PROFILES_TABLE
from app.db.supabase import get_supabase
from app.models.enums import UserRole
from app.models.user import AuthenticatedUser

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def _lookup_role(user_id: str) -> UserRole:
    """Return the role stored for *user_id*, defaulting to ``user``."""
    client = await get_supabase()
    result = (
        await client.table(USER_PROFILES_TABLE)
        .select("role")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        return UserRole.user
    try:
        return UserRole(result.data[0].get("role") or UserRole.user)
    except ValueError:
        return UserRole.user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AuthenticatedUser:
    """Resolve the bearer token to an ``AuthenticatedUser`` or answer 401."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        client = await get_supabase()
        response = await client.auth.get_user(credentials.credentials)
    except Exception as exc:
        logger.warning("auth_token_rejected", extra={"error_message": str(exc)})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    user = getattr(response, "user", None)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    role = await _lookup_role(str(user.id))
    return AuthenticatedUser(id=str(user.id), email=getattr(user, "email", None), role=role)


async def require_admin(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Allow only admins through; everyone else gets 403."""
    if not current_user.is_admin:
        logger.warning("admin_access_denied", extra={"user_id": current_user.id})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")
    return current_user
