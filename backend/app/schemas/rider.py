"""
Rider Pydantic schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from backend.app.models.rider_enums import RiderStatus, RiderWorkStatus


class RiderApplication(BaseModel):
    """Schema for a rider application."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    nid: Optional[str] = Field(None, max_length=100, description="National ID number")
    bike_registration: Optional[str] = Field(None, max_length=100)
    region: Optional[str] = Field(None, max_length=100)
    district: Optional[str] = Field(None, max_length=100)


class RiderStatusUpdate(BaseModel):
    """Schema for an admin approval decision."""
    status: RiderStatus
    email: Optional[EmailStr] = Field(None, description="Account to promote on approval (defaults to the rider's email)")


class RiderResponse(BaseModel):
    """Schema for rider response."""
    id: int
    name: str
    email: str
    phone: Optional[str]
    nid: Optional[str]
    bike_registration: Optional[str]
    region: Optional[str]
    district: Optional[str]
    status: RiderStatus
    work_status: Optional[RiderWorkStatus]
    created_at: datetime

    class Config:
        from_attributes = True
