"""
Parcel database model.

A parcel is a shipment booked by a sender, paid through the payment
gateway, and carried by a rider.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.parcel_enums import DeliveryStatus, PaymentStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Parcel(Base):
    """
    Parcel model.

    ``tracking_id`` is assigned once when the parcel is created and never
    changes. ``delivery_status`` is a string so custom in-transit stages
    can be stored alongside the known vocabulary.
    """
    __tablename__ = "parcels"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Parcel identification
    tracking_id = Column(String(32), unique=True, nullable=True, index=True)
    parcel_name = Column(String(255), nullable=False)
    parcel_type = Column(String(50), nullable=True)  # document / non-document
    parcel_weight = Column(Float, nullable=True)
    cost = Column(Float, nullable=False)

    # Sender
    sender_name = Column(String(255), nullable=True)
    sender_email = Column(String(255), nullable=False, index=True)
    sender_region = Column(String(100), nullable=True)
    sender_district = Column(String(100), nullable=True)
    sender_address = Column(String(500), nullable=True)

    # Receiver
    receiver_name = Column(String(255), nullable=False)
    receiver_email = Column(String(255), nullable=True)
    receiver_phone = Column(String(50), nullable=True)
    receiver_region = Column(String(100), nullable=True)
    receiver_district = Column(String(100), nullable=True)
    receiver_address = Column(String(500), nullable=True)

    # Status
    delivery_status = Column(String(64), default=DeliveryStatus.PARCEL_CREATED.value, nullable=False, index=True)
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.UNPAID, nullable=False, index=True)

    # Assigned rider
    rider_id = Column(Integer, ForeignKey('riders.id'), nullable=True, index=True)
    rider_name = Column(String(255), nullable=True)
    rider_email = Column(String(255), nullable=True, index=True)

    # Timestamps (Python-side so ordering is stable within a second)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Parcel(id={self.id}, tracking_id='{self.tracking_id}', status='{self.delivery_status}')>"
