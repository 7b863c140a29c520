"""
User Pydantic schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from backend.app.models.enums import UserRole


class UserCreate(BaseModel):
    """
    Schema for recording a user after they sign in with the identity provider.

    The role is always ``user`` on creation and is not accepted here.
    """
    email: EmailStr
    display_name: Optional[str] = Field(None, max_length=255)
    photo_url: Optional[str] = Field(None, max_length=1000)


class RoleUpdate(BaseModel):
    """Schema for a privileged role change."""
    role: UserRole


class RoleResponse(BaseModel):
    role: UserRole


class UserResponse(BaseModel):
    """Schema for user response."""
    id: int
    email: str
    display_name: Optional[str]
    photo_url: Optional[str]
    role: UserRole
    created_at: datetime

    class Config:
        from_attributes = True
