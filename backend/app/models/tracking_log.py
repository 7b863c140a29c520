"""
Tracking Log database model.

Append-only history of delivery status changes, keyed by tracking id.
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from backend.app.db.session import Base


class TrackingLog(Base):
    """
    Tracking Log model.

    Rows are inserted once and never updated or deleted. There is no
    foreign key to parcels: history outlives a deleted parcel.
    """
    __tablename__ = "tracking_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    tracking_id = Column(String(32), nullable=False, index=True)
    status = Column(String(64), nullable=False)
    details = Column(String(255), nullable=False)  # Human readable form of status

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<TrackingLog(tracking_id='{self.tracking_id}', status='{self.status}')>"
