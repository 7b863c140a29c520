"""
Rider database model.

A rider applies through the public form, is approved by an admin, and
then carries parcels.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.rider_enums import RiderStatus, RiderWorkStatus


class Rider(Base):
    """
    Rider model.

    ``status`` is the approval decision; ``work_status`` tracks whether the
    rider is free or carrying a parcel and is only written by the rider
    availability service.
    """
    __tablename__ = "riders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    nid = Column(String(100), nullable=True)
    bike_registration = Column(String(100), nullable=True)
    region = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True, index=True)

    status = Column(Enum(RiderStatus), default=RiderStatus.PENDING, nullable=False, index=True)
    work_status = Column(Enum(RiderWorkStatus), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        work_status = self.work_status.value if self.work_status else None
        return f"<Rider(id={self.id}, email='{self.email}', status='{self.status.value}', work_status='{work_status}')>"
