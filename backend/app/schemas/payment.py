"""
Payment Schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from backend.app.schemas.parcel import ParcelResponse


class CheckoutSessionCreate(BaseModel):
    """Schema for starting a gateway checkout for a parcel."""
    parcel_id: int
    parcel_name: str = Field(..., min_length=1, max_length=255)
    cost: float = Field(..., gt=0, description="Amount in major currency units")
    sender_email: EmailStr


class CheckoutSessionResponse(BaseModel):
    url: str


class PaymentReceiptResponse(BaseModel):
    """Schema for displaying payment receipts."""
    id: int
    transaction_id: str
    parcel_id: int
    parcel_name: Optional[str]
    tracking_id: Optional[str]
    amount: float
    currency: str
    customer_email: Optional[str]
    payment_status: str
    paid_at: datetime

    class Config:
        from_attributes = True


class ReconciliationResponse(BaseModel):
    """Outcome of confirming a checkout session."""
    success: bool
    already_processed: bool = False
    message: Optional[str] = None
    tracking_id: Optional[str] = None
    transaction_id: Optional[str] = None
    parcel: Optional[ParcelResponse] = None
    payment: Optional[PaymentReceiptResponse] = None
