"""
Security guards for role-based and self-scoped access control.

Provides dependencies for protecting endpoints.
"""

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.core.dependencies import get_current_principal
from backend.app.core.exceptions import InsufficientPermissionsError
from backend.app.core.identity import Principal
from backend.app.db.session import get_db
from backend.app.models.enums import UserRole
from backend.app.models.user import User


async def require_admin(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
) -> Principal:
    """
    Dependency for admin-only endpoints.

    Usage:
        @router.patch("/users/{user_id}/role")
        async def update_role(
            user_id: int,
            admin: Principal = Depends(require_admin)
        ):
            ...

    The role is read from the users table on every call, so a demotion
    takes effect immediately.

    Raises:
        InsufficientPermissionsError: 403 if the caller is not an admin
    """
    if not await is_admin(db, principal):
        raise InsufficientPermissionsError()

    return principal


async def is_admin(db: AsyncSession, principal: Principal) -> bool:
    result = await db.execute(select(User).where(User.email == principal.email))
    user = result.scalar_one_or_none()
    return bool(user) and user.role == UserRole.ADMIN


def ensure_same_email(principal: Principal, email: str) -> None:
    """Reject queries scoped to an account other than the caller's."""
    if email != principal.email:
        raise InsufficientPermissionsError()
