"""
User API Endpoints.

Records users who signed in with the identity provider and exposes the
role lookups the dashboard uses to pick a view.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_principal
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.core.guards import require_admin
from backend.app.core.identity import Principal
from backend.app.db.session import get_db
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.schemas.user import RoleResponse, RoleUpdate, UserCreate, UserResponse
from backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Record a signed-in user.

    Every new account starts with the ``user`` role. Signing in again is
    not an error: an existing email answers 200 with ``user exists``.
    """
    result = await db.execute(select(User).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        return JSONResponse(status_code=status.HTTP_200_OK, content={"message": "user exists"})

    user = User(**user_data.model_dump(), role=UserRole.USER)
    db.add(user)
    await db.commit()
    await db.refresh(user)

    return UserResponse.model_validate(user)


@router.get("", response_model=List[UserResponse])
async def search_users(
    search_text: Optional[str] = Query(None, description="Matches display name or email"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Case-insensitive user search for signed-in callers."""
    query = select(User)

    if search_text:
        pattern = f"%{search_text}%"
        query = query.where(or_(User.display_name.ilike(pattern), User.email.ilike(pattern)))

    query = query.order_by(User.created_at.desc(), User.id.desc())
    result = await db.execute(query)
    return [UserResponse.model_validate(u) for u in result.scalars().all()]


@router.get("/{email}/role", response_model=RoleResponse)
async def get_user_role(
    email: str = Path(..., description="User email"),
    db: AsyncSession = Depends(get_db)
):
    """Role for an email; unknown users are plain ``user``."""
    result = await db.execute(select(User.role).where(User.email == email))
    role = result.scalar_one_or_none()
    return RoleResponse(role=role or UserRole.USER)


@router.patch("/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: int = Path(..., description="User ID"),
    update: RoleUpdate = ...,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Change a user's role (admin-only)."""
    user = await db.get(User, user_id)
    if not user:
        raise ResourceNotFoundError("User", user_id)

    previous_role = user.role
    user.role = update.role
    await db.commit()
    await db.refresh(user)

    await log_event(
        db=db,
        action=AuditAction.ROLE_CHANGED,
        actor_email=admin.email,
        target_type="user",
        target_id=user.id,
        metadata={"from": previous_role.value, "to": update.role.value}
    )

    return UserResponse.model_validate(user)
