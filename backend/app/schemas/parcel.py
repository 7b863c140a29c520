"""
Parcel Pydantic schemas.

Defines request and response models for parcel management and tracking.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from backend.app.models.parcel_enums import PaymentStatus
from backend.app.schemas.rider import RiderResponse


class ParcelCreate(BaseModel):
    """Schema for booking a new parcel."""
    parcel_name: str = Field(..., min_length=1, max_length=255, description="What is being sent")
    parcel_type: Optional[str] = Field(None, max_length=50, description="document / non-document")
    parcel_weight: Optional[float] = Field(None, gt=0, description="Weight in kilograms")
    cost: float = Field(..., gt=0, description="Delivery cost in major currency units")

    sender_name: Optional[str] = Field(None, max_length=255)
    sender_email: EmailStr = Field(..., description="Email of the account booking the parcel")
    sender_region: Optional[str] = Field(None, max_length=100)
    sender_district: Optional[str] = Field(None, max_length=100)
    sender_address: Optional[str] = Field(None, max_length=500)

    receiver_name: str = Field(..., min_length=1, max_length=255)
    receiver_email: Optional[EmailStr] = None
    receiver_phone: Optional[str] = Field(None, max_length=50)
    receiver_region: Optional[str] = Field(None, max_length=100)
    receiver_district: Optional[str] = Field(None, max_length=100)
    receiver_address: Optional[str] = Field(None, max_length=500)


class ParcelResponse(BaseModel):
    """Schema for parcel response."""
    id: int
    tracking_id: Optional[str]
    parcel_name: str
    parcel_type: Optional[str]
    parcel_weight: Optional[float]
    cost: float
    sender_name: Optional[str]
    sender_email: str
    sender_region: Optional[str]
    sender_district: Optional[str]
    sender_address: Optional[str]
    receiver_name: str
    receiver_email: Optional[str]
    receiver_phone: Optional[str]
    receiver_region: Optional[str]
    receiver_district: Optional[str]
    receiver_address: Optional[str]
    delivery_status: str
    payment_status: PaymentStatus
    rider_id: Optional[int]
    rider_name: Optional[str]
    rider_email: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class RiderAssignment(BaseModel):
    """Schema for assigning a rider to a parcel."""
    rider_id: int
    rider_name: Optional[str] = Field(None, max_length=255)
    rider_email: Optional[EmailStr] = None


class RiderAssignmentResponse(BaseModel):
    """Response after rider assignment."""
    parcel_id: int
    tracking_id: Optional[str]
    delivery_status: str
    previous_work_status: Optional[str]  # Rider availability before the assignment
    rider: RiderResponse


class StatusUpdate(BaseModel):
    """Schema for advancing a parcel's delivery status."""
    delivery_status: str = Field(..., min_length=1, max_length=64, description="Known status or custom in-transit stage")
    rider_id: Optional[int] = Field(None, description="Rider to release when the parcel is delivered")


class TrackingLogResponse(BaseModel):
    """Schema for a tracking log entry."""
    tracking_id: str
    status: str
    details: str
    created_at: datetime

    class Config:
        from_attributes = True
