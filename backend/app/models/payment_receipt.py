"""
Payment Receipt database model.

Immutable record of a confirmed gateway payment.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime
from sqlalchemy.sql import func
from backend.app.db.session import Base


class PaymentReceipt(Base):
    """
    Payment Receipt model.

    ``transaction_id`` is the gateway payment intent and is unique, so a
    gateway callback delivered twice can never be credited twice.
    Receipts are kept after the parcel is deleted.
    """
    __tablename__ = "payment_receipts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    transaction_id = Column(String(255), nullable=False, unique=True, index=True)
    parcel_id = Column(Integer, nullable=False, index=True)
    parcel_name = Column(String(255), nullable=True)
    tracking_id = Column(String(32), nullable=True, index=True)

    # Financials (major currency units)
    amount = Column(Float, nullable=False)
    currency = Column(String(10), nullable=False)
    customer_email = Column(String(255), nullable=True, index=True)
    payment_status = Column(String(50), nullable=False)

    paid_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<PaymentReceipt(transaction_id='{self.transaction_id}', parcel_id={self.parcel_id}, amount={self.amount})>"
